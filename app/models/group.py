from sqlalchemy import Column, Integer, String, Text

from app.db.base_class import Base, JSONDocument


class Group(Base):
    __tablename__ = "groups"

    group_name = Column(String, nullable=False, index=True)
    bio = Column(Text)
    owners = Column(JSONDocument, default=list, nullable=False)
    members = Column(JSONDocument, default=list, nullable=False)
    requests = Column(JSONDocument, default=list, nullable=False)
    account_type = Column(Integer, default=0, nullable=False)
    version = Column(Integer, default=1, nullable=False)


class UserGroups(Base):
    __tablename__ = "user_groups"

    user_id = Column(Integer, unique=True, index=True, nullable=False)
    groups = Column(JSONDocument, default=list, nullable=False)
