from sqlalchemy import Column, DateTime, Integer, String, Text

from app.db.base_class import Base, JSONDocument


class Event(Base):
    __tablename__ = "events"

    title = Column(String, nullable=False)
    admin = Column(JSONDocument, default=list, nullable=False)
    invitees = Column(JSONDocument, default=list, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    location = Column(String)
    description = Column(Text)
    tags = Column(JSONDocument, default=list, nullable=False)
    # [{alert_time, is_completed}]
    alerts = Column(JSONDocument, default=list, nullable=False)


class UserEvent(Base):
    __tablename__ = "user_events"

    user_id = Column(Integer, unique=True, index=True, nullable=False)
    # [{event_id, status}]
    events = Column(JSONDocument, default=list, nullable=False)
