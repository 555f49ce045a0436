from sqlalchemy import Boolean, Column, String

from app.db.base_class import Base, JSONDocument


class User(Base):
    __tablename__ = "users"

    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)  # Nullable for social login
    is_active = Column(Boolean, default=True, nullable=False)
    device_token = Column(String, nullable=True)
    google_id = Column(String, unique=True, nullable=True)
    auth_provider = Column(String, default="local", nullable=False)  # local, google
    agree_to_terms = Column(Boolean, default=False, nullable=False)
    # [{token, device_id, expires_at}]
    refresh_tokens = Column(JSONDocument, default=list, nullable=False)
