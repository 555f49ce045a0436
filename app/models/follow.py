from sqlalchemy import Column, Integer

from app.db.base_class import Base, JSONDocument


class Follow(Base):
    __tablename__ = "follows"

    user_id = Column(Integer, unique=True, index=True, nullable=False)
    following = Column(JSONDocument, default=list, nullable=False)
    followers = Column(JSONDocument, default=list, nullable=False)
    requests = Column(JSONDocument, default=list, nullable=False)
