from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.enums import EventStatus
from app.schemas.base import BaseResponseSchema


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps from clients are taken as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class AlertSchema(BaseModel):
    alert_time: datetime
    is_completed: bool = False

    @field_validator("alert_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    admin: List[str] = Field(..., min_length=1)
    invitees: List[str] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    alerts: List[AlertSchema] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_schedule(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    alerts: Optional[List[AlertSchema]] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventResponse(BaseResponseSchema):
    title: str
    admin: List[str]
    invitees: List[str]
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    alerts: List[AlertSchema] = Field(default_factory=list)


class UserEventResponse(BaseModel):
    event: EventResponse
    status: EventStatus
