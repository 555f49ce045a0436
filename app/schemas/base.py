from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema for all models."""
    model_config = ConfigDict(from_attributes=True)


class BaseResponseSchema(BaseSchema):
    """Base response schema with common fields."""
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


class PaginationInfo(BaseModel):
    has_next_page: bool
    has_previous_page: bool
    next_cursor: Optional[str] = None
    previous_cursor: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Keyset-paginated list; pass ``next_cursor`` back as ``cursor`` for the next page."""

    data: List[T]
    pagination: PaginationInfo
