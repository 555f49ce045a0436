"""
Events and each participant's personal event list.

Creating an event fans out one write per participant: admins get the event as
Accepted, invitees as Pending. Deleting an event pulls it from every list.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import ErrorMessage, EventStatus
from app.core.errors import APIError
from app.db.transaction import TransactionCoordinator
from app.entities.event import Event
from app.repositories.event import EventRepository, UserEventRepository
from app.schemas.base import MessageResponse, PaginatedResponse, PaginationInfo
from app.schemas.event import EventCreate, EventResponse, EventUpdate, UserEventResponse
from app.services.async_error_handler import handle_service_errors
from app.utils.cursor import CursorUtils, validate_limit
from app.utils.logger import AppLogger


class AsyncEventService:

    def __init__(self, db: AsyncSession, transactions: TransactionCoordinator, logger: AppLogger):
        self.db = db
        self.transactions = transactions
        self.logger = logger.child("event")
        self.events = EventRepository()
        self.user_events = UserEventRepository(self.events)

    @handle_service_errors("add_event", "Error creating event")
    async def add_event(self, request: EventCreate) -> EventResponse:
        document = self.events.to_document(request)

        async def create(session: AsyncSession) -> Event:
            return await self.events.create(session, document)

        def fan_out(session: AsyncSession, event: Event):
            writes = [
                (lambda user_id=user_id: self.user_events.add_event(session, user_id, event.id, EventStatus.Accepted))
                for user_id in event.admin
            ]
            writes += [
                (lambda user_id=user_id: self.user_events.add_event(session, user_id, event.id, EventStatus.Pending))
                for user_id in event.invitees
            ]
            return writes

        event = await self.transactions.execute("add_event", create, fan_out, "Error creating event")
        self.logger.success(
            "Event created", event_id=event.id, admins=len(event.admin), invitees=len(event.invitees)
        )
        return self.events.to_response(event)

    @handle_service_errors("get_user_events", "Error fetching user events")
    async def get_user_events(
        self, user_id, limit: Optional[int] = None, cursor: Optional[str] = None
    ) -> PaginatedResponse[UserEventResponse]:
        user_id = self.events.to_object_id(user_id, "user_id")
        limit = validate_limit(limit, settings.EVENT_PAGE_MAX_LIMIT, settings.EVENT_PAGE_MAX_LIMIT)
        CursorUtils.parse_cursor(cursor)

        details, has_next = await self.user_events.get_user_events_with_details_paginated(
            self.db, user_id, limit, cursor
        )
        next_cursor = None
        if has_next and details:
            last = details[-1].event
            next_cursor = CursorUtils.create_cursor(last.id, last.created_at)

        return PaginatedResponse[UserEventResponse](
            data=[self.user_events.to_response(d) for d in details],
            pagination=PaginationInfo(
                has_next_page=has_next,
                has_previous_page=bool(cursor),
                next_cursor=next_cursor,
                previous_cursor=cursor,
            ),
        )

    @handle_service_errors("get_user_event", "Error fetching user event")
    async def get_user_event(self, user_id, event_id) -> UserEventResponse:
        details = await self.user_events.get_user_event_details(
            self.db,
            self.events.to_object_id(user_id, "user_id"),
            self.events.to_object_id(event_id, "event_id"),
        )
        if details is None:
            raise APIError.not_found(ErrorMessage.EVENT_NOT_FOUND)
        return self.user_events.to_response(details)

    @handle_service_errors("update_user_event_status", "Error updating event status")
    async def update_user_event_status(self, user_id, event_id, status: EventStatus) -> UserEventResponse:
        user_id = self.events.to_object_id(user_id, "user_id")
        event_id = self.events.to_object_id(event_id, "event_id")

        updated = await self.user_events.update_status(self.db, user_id, event_id, EventStatus(status))
        if updated is None:
            raise APIError.not_found(ErrorMessage.EVENT_NOT_FOUND)
        await self.db.commit()

        details = await self.user_events.get_user_event_details(self.db, user_id, event_id)
        if details is None:
            raise APIError.not_found(ErrorMessage.EVENT_NOT_FOUND)
        return self.user_events.to_response(details)

    @handle_service_errors("update_event", "Error updating event")
    async def update_event(self, event_id, request: EventUpdate, caller_id) -> EventResponse:
        event = await self._require_admin(event_id, caller_id)

        values = request.model_dump(exclude_unset=True, exclude={"alerts"})
        if values.get("title") is not None:
            values["title"] = values["title"].strip()
        if request.alerts is not None:
            values["alerts"] = self.events.dump_alerts(request.alerts)

        updated = await self.events.update_by_id(self.db, event.id, values)
        if updated is None:
            raise APIError.not_found(ErrorMessage.EVENT_NOT_FOUND)
        await self.db.commit()
        return self.events.to_response(updated)

    @handle_service_errors("delete_event", "Error deleting event")
    async def delete_event(self, event_id, caller_id) -> MessageResponse:
        event = await self._require_admin(event_id, caller_id)

        async def delete(session: AsyncSession) -> int:
            removed = await self.user_events.remove_event_from_users(session, event.participants, event.id)
            if not await self.events.delete_by_id(session, event.id):
                raise APIError.not_found(ErrorMessage.EVENT_NOT_FOUND)
            return removed

        removed = await self.transactions.execute("delete_event", delete, failure_message="Error deleting event")
        self.logger.info("Event deleted", event_id=event.id, user_lists_updated=removed)
        return MessageResponse(message="Event deleted")

    async def _require_admin(self, event_id, caller_id) -> Event:
        event = await self.events.find_by_id(self.db, self.events.to_object_id(event_id, "event_id"))
        if event is None:
            raise APIError.not_found(ErrorMessage.EVENT_NOT_FOUND)
        if not event.is_admin(self.events.to_object_id(caller_id, "caller_id")):
            raise APIError.forbidden(ErrorMessage.EVENT_ADMIN_ONLY)
        return event
