from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.entities.social import Follow, validate_follow
from app.entities.user_profile import UserProfile
from app.models.follow import Follow as FollowModel
from app.models.user_profile import UserProfile as UserProfileModel
from app.repositories.base import BaseRepository, aware, keyset_page
from app.repositories.user_profile import UserProfileRepository


class FollowRepository(BaseRepository[FollowModel, Follow]):
    """Follow documents, one per user, keyed by ``user_id``."""

    def __init__(self, profiles: Optional[UserProfileRepository] = None):
        super().__init__(FollowModel, validate_follow)
        self.profiles = profiles or UserProfileRepository()

    @staticmethod
    def to_document(user_id: int) -> Dict[str, Any]:
        return {"user_id": user_id, "following": [], "followers": [], "requests": []}

    def to_entity(self, row: Optional[FollowModel]) -> Optional[Follow]:
        if row is None:
            return None
        return Follow(
            id=row.id,
            user_id=row.user_id,
            following=list(row.following or []),
            followers=list(row.followers or []),
            requests=list(row.requests or []),
            created_at=aware(row.created_at),
        )

    async def find_by_user_id(self, db: AsyncSession, user_id: int, *, for_update: bool = False) -> Optional[Follow]:
        return await self.find_one(db, for_update=for_update, user_id=user_id)

    async def add_to_user_set(self, db: AsyncSession, user_id: int, field: str, *values: int) -> Optional[Follow]:
        return await self.add_to_set(db, user_id, field, values, by="user_id")

    async def pull_from_user(self, db: AsyncSession, user_id: int, field: str, *values: int) -> Optional[Follow]:
        return await self.pull(db, user_id, field, values, by="user_id")

    async def get_followers_paginated(
        self,
        db: AsyncSession,
        user_id: int,
        limit: int,
        cursor: Optional[str] = None,
        search_term: Optional[str] = None,
    ) -> Tuple[List[UserProfile], bool]:
        follow = await self.find_by_user_id(db, user_id)
        return await self._profiles_page(db, follow.followers if follow else [], limit, cursor, search_term)

    async def get_following_paginated(
        self,
        db: AsyncSession,
        user_id: int,
        limit: int,
        cursor: Optional[str] = None,
        search_term: Optional[str] = None,
    ) -> Tuple[List[UserProfile], bool]:
        follow = await self.find_by_user_id(db, user_id)
        return await self._profiles_page(db, follow.following if follow else [], limit, cursor, search_term)

    async def _profiles_page(
        self,
        db: AsyncSession,
        user_ids: List[int],
        limit: int,
        cursor: Optional[str],
        search_term: Optional[str],
    ) -> Tuple[List[UserProfile], bool]:
        if not user_ids:
            return [], False

        stmt = select(UserProfileModel).where(UserProfileModel.user_id.in_(user_ids))
        if search_term:
            pattern = f"%{search_term}%"
            stmt = stmt.where(
                or_(UserProfileModel.username.ilike(pattern), UserProfileModel.name.ilike(pattern))
            )

        rows, has_next = await keyset_page(
            db, stmt, UserProfileModel.created_at, UserProfileModel.user_id, limit, cursor
        )
        return self.profiles.to_entities(rows), has_next
