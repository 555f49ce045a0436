from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.enums import ProfileAccess
from app.schemas.base import BaseResponseSchema


class GroupCreate(BaseModel):
    group_name: str = Field(..., min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    account_type: ProfileAccess = ProfileAccess.Public


class GroupProfileUpdate(BaseModel):
    group_name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    account_type: Optional[ProfileAccess] = None
    # Reject the update if the group changed since this version was read
    expected_version: Optional[int] = Field(None, ge=1)


class GroupResponse(BaseResponseSchema):
    group_name: str
    bio: Optional[str] = None
    owners: List[str] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)
    requests: List[str] = Field(default_factory=list)
    account_type: int
    version: int = 1


class UserGroupsResponse(BaseModel):
    user_id: str
    groups: List[GroupResponse] = Field(default_factory=list)
