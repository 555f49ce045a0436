from app.schemas.base import BaseSchema, MessageResponse, PaginatedResponse, PaginationInfo
from app.schemas.event import EventCreate, EventResponse, EventStatusUpdate, EventUpdate, UserEventResponse
from app.schemas.group import GroupCreate, GroupProfileUpdate, GroupResponse, UserGroupsResponse
from app.schemas.user_profile import (
    BasicInfoUpdate,
    CustomSectionSchema,
    CustomSectionUpdate,
    FollowStatsResponse,
    FollowUserInfo,
    UserProfileResponse,
    UserProfileUpdate,
)

__all__ = [
    "BaseSchema",
    "MessageResponse",
    "PaginatedResponse",
    "PaginationInfo",
    "EventCreate",
    "EventResponse",
    "EventStatusUpdate",
    "EventUpdate",
    "UserEventResponse",
    "GroupCreate",
    "GroupProfileUpdate",
    "GroupResponse",
    "UserGroupsResponse",
    "BasicInfoUpdate",
    "CustomSectionSchema",
    "CustomSectionUpdate",
    "FollowStatsResponse",
    "FollowUserInfo",
    "UserProfileResponse",
    "UserProfileUpdate",
]
