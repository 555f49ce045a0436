"""User profile schemas.

This module contains Pydantic models for user profile, custom section and
follow graph requests and responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import CustomSectionTitle, ProfileAccess
from app.schemas.base import BaseSchema


class CustomSectionSchema(BaseModel):
    title: CustomSectionTitle
    details: List[Dict[str, Any]] = Field(default_factory=list)


class CustomSectionUpdate(BaseModel):
    details: List[Dict[str, Any]]


class UserProfileUpdate(BaseModel):
    """All fields are optional to support partial updates."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    account_type: Optional[ProfileAccess] = None
    role: Optional[str] = None
    location: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None


class BasicInfoUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    account_type: Optional[ProfileAccess] = None


class UserProfileResponse(BaseSchema):
    user_id: str
    username: str
    name: str
    bio: Optional[str] = None
    account_type: int
    role: Optional[str] = None
    location: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict)
    custom_sections: List[CustomSectionSchema] = Field(default_factory=list)


class FollowUserInfo(BaseModel):
    user_id: str
    username: str
    name: str
    is_following: bool = False


class FollowStatsResponse(BaseModel):
    user_id: str
    followers_count: int
    following_count: int
    is_following: bool = False
