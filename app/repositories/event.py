from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import EventStatus
from app.entities.event import (
    Alert,
    Event,
    UserEventDetails,
    UserEventEntry,
    UserEvents,
    validate_event,
    validate_user_events,
)
from app.models.event import Event as EventModel
from app.models.event import UserEvent as UserEventModel
from app.repositories.base import BaseRepository, aware, dump_datetime, id_strs, keyset_page, load_datetime
from app.schemas.event import AlertSchema, EventCreate, EventResponse, UserEventResponse


class EventRepository(BaseRepository[EventModel, Event]):

    def __init__(self):
        super().__init__(EventModel, validate_event)

    def to_document(self, request: EventCreate) -> Dict[str, Any]:
        admins = self.to_object_ids(request.admin, "admin")
        invitees = [i for i in self.to_object_ids(request.invitees, "invitees") if i not in admins]
        return {
            "title": request.title.strip(),
            "admin": list(dict.fromkeys(admins)),
            "invitees": list(dict.fromkeys(invitees)),
            "start_time": request.start_time,
            "end_time": request.end_time,
            "location": request.location,
            "description": request.description,
            "tags": list(request.tags),
            "alerts": self.dump_alerts(request.alerts),
        }

    @staticmethod
    def dump_alerts(alerts: List[AlertSchema]) -> List[Dict[str, Any]]:
        return [{"alert_time": dump_datetime(a.alert_time), "is_completed": a.is_completed} for a in alerts]

    def to_entity(self, row: Optional[EventModel]) -> Optional[Event]:
        if row is None:
            return None
        return Event(
            id=row.id,
            title=row.title,
            start_time=aware(row.start_time),
            end_time=aware(row.end_time),
            admin=list(row.admin or []),
            invitees=list(row.invitees or []),
            location=row.location,
            description=row.description,
            tags=list(row.tags or []),
            alerts=[
                Alert(alert_time=load_datetime(a["alert_time"]), is_completed=a.get("is_completed", False))
                for a in row.alerts or []
            ],
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(event: Event) -> EventResponse:
        return EventResponse(
            id=str(event.id),
            title=event.title,
            admin=id_strs(event.admin),
            invitees=id_strs(event.invitees),
            start_time=event.start_time,
            end_time=event.end_time,
            location=event.location,
            description=event.description,
            tags=event.tags,
            alerts=[AlertSchema(alert_time=a.alert_time, is_completed=a.is_completed) for a in event.alerts],
            created_at=event.created_at,
            updated_at=event.updated_at,
        )


class UserEventRepository(BaseRepository[UserEventModel, UserEvents]):
    """Each user's personal event list: ``[{event_id, status}]``."""

    def __init__(self, events: Optional[EventRepository] = None):
        super().__init__(UserEventModel, validate_user_events)
        self.events = events or EventRepository()

    def to_entity(self, row: Optional[UserEventModel]) -> Optional[UserEvents]:
        if row is None:
            return None
        return UserEvents(
            id=row.id,
            user_id=row.user_id,
            events=[UserEventEntry(event_id=e["event_id"], status=EventStatus(e["status"])) for e in row.events or []],
        )

    @staticmethod
    def to_response(details: UserEventDetails) -> UserEventResponse:
        return UserEventResponse(event=EventRepository.to_response(details.event), status=details.status)

    async def find_by_user_id(self, db: AsyncSession, user_id: int) -> Optional[UserEvents]:
        return await self.find_one(db, user_id=user_id)

    async def add_event(self, db: AsyncSession, user_id: int, event_id: int, status: EventStatus) -> UserEvents:
        """Record ``event_id`` for the user, creating their list on first use."""
        entry = {"event_id": event_id, "status": int(status)}
        row = await self._find_one_row(db, for_update=True, user_id=user_id)
        if row is None:
            return await self.create(db, {"user_id": user_id, "events": [entry]})
        entries = [e for e in row.events or [] if e["event_id"] != event_id]
        entries.append(entry)
        return await self._apply(db, row, {"events": entries})

    async def update_status(
        self, db: AsyncSession, user_id: int, event_id: int, status: EventStatus
    ) -> Optional[UserEvents]:
        """Set the status of an existing entry. ``None`` when the user has no such entry."""
        row = await self._find_one_row(db, for_update=True, user_id=user_id)
        if row is None or not any(e["event_id"] == event_id for e in row.events or []):
            return None
        entries = [
            {**e, "status": int(status)} if e["event_id"] == event_id else e
            for e in row.events
        ]
        return await self._apply(db, row, {"events": entries})

    async def remove_event_from_users(self, db: AsyncSession, user_ids: List[int], event_id: int) -> int:
        stmt = (
            select(UserEventModel)
            .where(UserEventModel.user_id.in_(user_ids))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        rows = result.scalars().all()
        for row in rows:
            row.events = [e for e in row.events or [] if e["event_id"] != event_id]
        await db.flush()
        return len(rows)

    async def get_user_event_details(
        self, db: AsyncSession, user_id: int, event_id: int
    ) -> Optional[UserEventDetails]:
        user_events = await self.find_by_user_id(db, user_id)
        entry = user_events.find(event_id) if user_events else None
        if entry is None:
            return None
        event = await self.events.find_by_id(db, event_id)
        if event is None:
            return None
        return UserEventDetails(event=event, status=entry.status)

    async def get_user_events_with_details_paginated(
        self, db: AsyncSession, user_id: int, limit: int, cursor: Optional[str] = None
    ) -> Tuple[List[UserEventDetails], bool]:
        """
        The user's entries joined to their events, newest event first.

        Entries whose event has been deleted are skipped.
        """
        user_events = await self.find_by_user_id(db, user_id)
        if user_events is None or not user_events.events:
            return [], False

        statuses = {e.event_id: e.status for e in user_events.events}
        stmt = select(EventModel).where(EventModel.id.in_(list(statuses)))
        rows, has_next = await keyset_page(db, stmt, EventModel.created_at, EventModel.id, limit, cursor)

        details = []
        for row in rows:
            event = self.events.to_entity(row)
            details.append(UserEventDetails(event=event, status=statuses[event.id]))
        return details, has_next
