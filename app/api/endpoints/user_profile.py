from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_follow_service, get_user_profile_service
from app.core.enums import CustomSectionTitle
from app.entities.user import User
from app.schemas.base import MessageResponse, PaginatedResponse
from app.schemas.group import UserGroupsResponse
from app.schemas.user_profile import (
    BasicInfoUpdate,
    CustomSectionSchema,
    CustomSectionUpdate,
    FollowStatsResponse,
    FollowUserInfo,
    UserProfileResponse,
    UserProfileUpdate,
)
from app.services.async_auth import get_current_active_user_async
from app.services.async_follow import AsyncFollowService
from app.services.async_user_profile import AsyncUserProfileService

router = APIRouter()


# Own profile

@router.get("/me", response_model=UserProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.get_user_profile(current_user.id)


@router.put("/me", response_model=UserProfileResponse)
async def update_my_profile(
    profile_data: UserProfileUpdate,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.update_user_profile(current_user.id, profile_data)


@router.put("/me/basic", response_model=UserProfileResponse)
async def update_my_basic_info(
    profile_data: BasicInfoUpdate,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    """Update name, bio and account type only."""
    return await profile_service.update_basic_info(current_user.id, profile_data)


@router.get("/me/custom-sections", response_model=List[CustomSectionSchema])
async def get_custom_sections(
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.get_custom_sections(current_user.id)


@router.post("/me/custom-sections", response_model=List[CustomSectionSchema])
async def create_custom_section(
    section: CustomSectionSchema,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.create_custom_section(current_user.id, section)


@router.put("/me/custom-sections/{title}", response_model=List[CustomSectionSchema])
async def update_custom_section(
    title: CustomSectionTitle,
    section: CustomSectionUpdate,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.update_custom_section(current_user.id, title.value, section)


@router.delete("/me/custom-sections/{title}", response_model=List[CustomSectionSchema])
async def delete_custom_section(
    title: CustomSectionTitle,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.delete_custom_section(current_user.id, title.value)


# Follow actions taken by the current user

@router.post("/follow/{user_id}", response_model=MessageResponse)
async def follow_user(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.follow_user(current_user.id, user_id)


@router.post("/follow-request/{user_id}", response_model=MessageResponse)
async def request_to_follow(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    """Ask to follow a private account."""
    return await follow_service.request_to_follow(current_user.id, user_id)


@router.put("/follow-requests/{follower_id}/accept", response_model=MessageResponse)
async def accept_follow_request(
    follower_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.accept_follow_request(current_user.id, follower_id)


@router.delete("/follow-requests/{follower_id}", response_model=MessageResponse)
async def reject_follow_request(
    follower_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.reject_follow_request(current_user.id, follower_id)


@router.delete("/follow/{user_id}", response_model=MessageResponse)
async def unfollow_user(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.unfollow_user(current_user.id, user_id)


@router.delete("/followers/{follower_id}", response_model=MessageResponse)
async def remove_follower(
    follower_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.remove_follower(current_user.id, follower_id)


# Any user

@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user_profile(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.get_user_profile(user_id)


@router.get("/{user_id}/groups", response_model=UserGroupsResponse)
async def get_user_groups(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    profile_service: AsyncUserProfileService = Depends(get_user_profile_service),
) -> Any:
    return await profile_service.fetch_user_groups(user_id)


@router.get("/{user_id}/follow-stats", response_model=FollowStatsResponse)
async def get_follow_stats(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.get_follow_stats(user_id, current_user.id)


@router.get("/{user_id}/followers", response_model=PaginatedResponse[FollowUserInfo])
async def get_followers(
    user_id: str,
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.get_followers(user_id, limit, cursor, current_user.id)


@router.get("/{user_id}/following", response_model=PaginatedResponse[FollowUserInfo])
async def get_following(
    user_id: str,
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.get_following(user_id, limit, cursor, current_user.id)


@router.get("/{user_id}/followers/search", response_model=PaginatedResponse[FollowUserInfo])
async def search_followers(
    user_id: str,
    search_term: str = Query(...),
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.search_followers(user_id, search_term, limit, cursor, current_user.id)


@router.get("/{user_id}/following/search", response_model=PaginatedResponse[FollowUserInfo])
async def search_following(
    user_id: str,
    search_term: str = Query(...),
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user_async),
    follow_service: AsyncFollowService = Depends(get_follow_service),
) -> Any:
    return await follow_service.search_following(user_id, search_term, limit, cursor, current_user.id)
