from sqlalchemy import Column, Integer, String, Text

from app.db.base_class import Base, JSONDocument


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(Integer, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    bio = Column(Text)
    account_type = Column(Integer, default=0, nullable=False)  # 0 public, 1 private
    role = Column(String)
    location = Column(String)
    social_links = Column(JSONDocument, default=dict, nullable=False)
    # [{title, details: [...]}], one entry per title
    custom_sections = Column(JSONDocument, default=list, nullable=False)
