from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_event_service
from app.entities.user import User
from app.schemas.base import MessageResponse, PaginatedResponse
from app.schemas.event import EventCreate, EventResponse, EventStatusUpdate, EventUpdate, UserEventResponse
from app.services.async_auth import get_current_active_user_async
from app.services.async_event import AsyncEventService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=EventResponse)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(get_current_active_user_async),
    event_service: AsyncEventService = Depends(get_event_service),
) -> Any:
    """Create an event and add it to every admin's and invitee's list."""
    return await event_service.add_event(event_data)


@router.get("/user/{user_id}", response_model=PaginatedResponse[UserEventResponse])
async def get_user_events(
    user_id: str,
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user_async),
    event_service: AsyncEventService = Depends(get_event_service),
) -> Any:
    return await event_service.get_user_events(user_id, limit, cursor)


@router.get("/{event_id}", response_model=UserEventResponse)
async def get_user_event(
    event_id: str,
    current_user: User = Depends(get_current_active_user_async),
    event_service: AsyncEventService = Depends(get_event_service),
) -> Any:
    return await event_service.get_user_event(current_user.id, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    current_user: User = Depends(get_current_active_user_async),
    event_service: AsyncEventService = Depends(get_event_service),
) -> Any:
    return await event_service.update_event(event_id, event_data, current_user.id)


@router.put("/{event_id}/status", response_model=UserEventResponse)
async def update_event_status(
    event_id: str,
    status_data: EventStatusUpdate,
    current_user: User = Depends(get_current_active_user_async),
    event_service: AsyncEventService = Depends(get_event_service),
) -> Any:
    """Accept or reject an invitation."""
    return await event_service.update_user_event_status(current_user.id, event_id, status_data.status)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: str,
    current_user: User = Depends(get_current_active_user_async),
    event_service: AsyncEventService = Depends(get_event_service),
) -> Any:
    return await event_service.delete_event(event_id, current_user.id)
