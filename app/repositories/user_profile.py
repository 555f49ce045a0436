from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ProfileAccess
from app.entities.user_profile import CustomSection, UserProfile, validate_user_profile
from app.models.user_profile import UserProfile as UserProfileModel
from app.repositories.base import BaseRepository, aware
from app.schemas.user_profile import CustomSectionSchema, UserProfileResponse


class UserProfileRepository(BaseRepository[UserProfileModel, UserProfile]):

    def __init__(self):
        super().__init__(UserProfileModel, validate_user_profile)

    @staticmethod
    def to_document(user_id: int, username: str, name: str) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "username": username,
            "name": name,
            "account_type": ProfileAccess.Public.value,
            "social_links": {},
            "custom_sections": [],
        }

    @staticmethod
    def dump_sections(sections: List[CustomSection]) -> List[Dict[str, Any]]:
        return [{"title": s.title, "details": list(s.details)} for s in sections]

    def to_entity(self, row: Optional[UserProfileModel]) -> Optional[UserProfile]:
        if row is None:
            return None
        return UserProfile(
            id=row.id,
            user_id=row.user_id,
            username=row.username,
            name=row.name,
            bio=row.bio,
            account_type=row.account_type,
            role=row.role,
            location=row.location,
            social_links=dict(row.social_links or {}),
            custom_sections=[
                CustomSection(title=s["title"], details=list(s.get("details") or []))
                for s in row.custom_sections or []
            ],
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(profile: UserProfile) -> UserProfileResponse:
        return UserProfileResponse(
            user_id=str(profile.user_id),
            username=profile.username,
            name=profile.name,
            bio=profile.bio,
            account_type=profile.account_type,
            role=profile.role,
            location=profile.location,
            social_links=profile.social_links,
            custom_sections=[
                CustomSectionSchema(title=s.title, details=s.details) for s in profile.custom_sections
            ],
        )

    async def find_by_user_id(self, db: AsyncSession, user_id: int, *, for_update: bool = False) -> Optional[UserProfile]:
        return await self.find_one(db, for_update=for_update, user_id=user_id)

    async def update_by_user_id(self, db: AsyncSession, user_id: int, values: Dict[str, Any]) -> Optional[UserProfile]:
        row = await self._find_one_row(db, for_update=True, user_id=user_id)
        if row is None:
            return None
        return await self._apply(db, row, values)

    async def replace_sections(
        self, db: AsyncSession, user_id: int, sections: List[CustomSection]
    ) -> Optional[UserProfile]:
        return await self.update_by_user_id(db, user_id, {"custom_sections": self.dump_sections(sections)})

    async def find_by_user_ids(self, db: AsyncSession, user_ids: List[int]) -> List[UserProfile]:
        return await self.find_many(db, user_id=user_ids)
