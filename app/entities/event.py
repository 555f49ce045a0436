from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from app.core.enums import EventStatus
from app.core.errors import FieldError
from app.entities.validation import collect, require


@dataclass(frozen=True)
class Alert:
    alert_time: datetime
    is_completed: bool = False


@dataclass(frozen=True)
class Event:
    id: int
    title: str
    start_time: datetime
    end_time: datetime
    admin: List[int] = field(default_factory=list)
    invitees: List[int] = field(default_factory=list)
    location: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    alerts: List[Alert] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_admin(self, user_id: int) -> bool:
        return user_id in self.admin

    @property
    def participants(self) -> List[int]:
        return list(dict.fromkeys(self.admin + self.invitees))


@dataclass(frozen=True)
class UserEventEntry:
    event_id: int
    status: EventStatus


@dataclass(frozen=True)
class UserEvents:
    id: int
    user_id: int
    events: List[UserEventEntry] = field(default_factory=list)

    def find(self, event_id: int) -> Optional[UserEventEntry]:
        return next((e for e in self.events if e.event_id == event_id), None)


@dataclass(frozen=True)
class UserEventDetails:
    """An event joined with the viewing user's status for it."""

    event: Event
    status: EventStatus


def validate_event(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(require(document, ["title", "start_time", "end_time"]))
    if not document.get("admin"):
        errors.append(FieldError(field="admin", message="An event needs at least one admin"))
    start, end = document.get("start_time"), document.get("end_time")
    if start is not None and end is not None and end < start:
        errors.append(FieldError(field="end_time", message="End time must not be before start time", value=str(end)))
    return errors


def validate_user_events(document: Mapping[str, Any]) -> List[FieldError]:
    errors = require(document, ["user_id"])
    valid_statuses = {s.value for s in EventStatus}
    for index, entry in enumerate(document.get("events") or []):
        if entry.get("status") not in valid_statuses:
            errors.append(
                FieldError(field=f"events.{index}.status", message="Invalid event status", value=entry.get("status"))
            )
    return errors
