from typing import Any

from fastapi import APIRouter, Depends, status

from app.api.deps import get_group_service
from app.entities.user import User
from app.schemas.base import MessageResponse
from app.schemas.group import GroupCreate, GroupProfileUpdate, GroupResponse
from app.services.async_auth import get_current_active_user_async
from app.services.async_group import AsyncGroupService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=GroupResponse)
async def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    """Create a group owned by the current user."""
    return await group_service.create_group(group_data, current_user.id)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    return await group_service.get_group(group_id)


@router.put("/{group_id}/join", response_model=GroupResponse)
async def join_group(
    group_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    """Join a public group."""
    return await group_service.join_group(group_id, current_user.id)


@router.put("/{group_id}/request-join", response_model=MessageResponse)
async def request_to_join(
    group_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    """Ask to join a private group."""
    return await group_service.request_to_join(group_id, current_user.id)


@router.put("/{group_id}/accept-request/{requester_id}", response_model=GroupResponse)
async def accept_join_request(
    group_id: str,
    requester_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    return await group_service.accept_join_request(group_id, requester_id, current_user.id)


@router.delete("/{group_id}/reject-request/{requester_id}", response_model=MessageResponse)
async def reject_join_request(
    group_id: str,
    requester_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    return await group_service.reject_join_request(group_id, requester_id, current_user.id)


@router.delete("/{group_id}/leave", response_model=MessageResponse)
async def leave_group(
    group_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    return await group_service.leave_group(group_id, current_user.id)


@router.delete("/{group_id}/members/{member_id}", response_model=MessageResponse)
async def remove_member(
    group_id: str,
    member_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    return await group_service.remove_member(group_id, member_id, current_user.id)


@router.delete("/{group_id}", response_model=MessageResponse)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    return await group_service.delete_group(group_id, current_user.id)


@router.put("/{group_id}/profile", response_model=GroupResponse)
async def update_group_profile(
    group_id: str,
    profile_data: GroupProfileUpdate,
    current_user: User = Depends(get_current_active_user_async),
    group_service: AsyncGroupService = Depends(get_group_service),
) -> Any:
    """
    Update name, bio or account type.

    Send ``expected_version`` to reject the update when the group changed
    since it was read.
    """
    return await group_service.update_group_profile(group_id, profile_data, current_user.id)
