from sqlalchemy import Column, DateTime, Integer, String

from app.db.base_class import Base


class PasswordReset(Base):
    __tablename__ = "password_resets"

    user_id = Column(Integer, nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
