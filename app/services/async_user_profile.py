from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ErrorMessage
from app.core.errors import APIError
from app.entities.user_profile import CustomSection, UserProfile
from app.repositories.group import GroupRepository, UserGroupsRepository
from app.repositories.user_profile import UserProfileRepository
from app.schemas.group import UserGroupsResponse
from app.schemas.user_profile import (
    BasicInfoUpdate,
    CustomSectionSchema,
    CustomSectionUpdate,
    UserProfileResponse,
    UserProfileUpdate,
)
from app.services.async_error_handler import handle_service_errors
from app.utils.logger import AppLogger


class AsyncUserProfileService:
    """
    Profile reads and updates, custom sections and the user's group list.

    A profile holds at most one custom section per title. All writes here
    touch a single row and commit on the request session.
    """

    def __init__(self, db: AsyncSession, logger: AppLogger):
        self.db = db
        self.logger = logger.child("user_profile")
        self.profiles = UserProfileRepository()
        self.groups = GroupRepository()
        self.user_groups = UserGroupsRepository()

    @handle_service_errors("get_user_profile", "Error fetching user profile")
    async def get_user_profile(self, user_id) -> UserProfileResponse:
        profile = await self._get_profile(user_id)
        return self.profiles.to_response(profile)

    @handle_service_errors("update_user_profile", "Error updating user profile")
    async def update_user_profile(self, user_id, request: UserProfileUpdate) -> UserProfileResponse:
        return await self._update(user_id, request.model_dump(exclude_unset=True))

    @handle_service_errors("update_basic_info", "Error updating user profile")
    async def update_basic_info(self, user_id, request: BasicInfoUpdate) -> UserProfileResponse:
        return await self._update(user_id, request.model_dump(exclude_unset=True))

    @handle_service_errors("get_custom_sections", "Error fetching custom sections")
    async def get_custom_sections(self, user_id) -> List[CustomSectionSchema]:
        profile = await self._get_profile(user_id)
        return [CustomSectionSchema(title=s.title, details=s.details) for s in profile.custom_sections]

    @handle_service_errors("create_custom_section", "Error creating custom section")
    async def create_custom_section(self, user_id, request: CustomSectionSchema) -> List[CustomSectionSchema]:
        profile = await self._get_profile(user_id, for_update=True)
        title = request.title.value
        if profile.find_section(title) is not None:
            raise APIError.conflict(ErrorMessage.CUSTOM_SECTION_ALREADY_EXISTS)

        sections = profile.custom_sections + [CustomSection(title=title, details=list(request.details))]
        return await self._save_sections(profile, sections)

    @handle_service_errors("update_custom_section", "Error updating custom section")
    async def update_custom_section(
        self, user_id, title: str, request: CustomSectionUpdate
    ) -> List[CustomSectionSchema]:
        profile = await self._get_profile(user_id, for_update=True)
        if profile.find_section(title) is None:
            raise APIError.not_found(ErrorMessage.CUSTOM_SECTION_NOT_FOUND)

        sections = [
            CustomSection(title=s.title, details=list(request.details)) if s.title == title else s
            for s in profile.custom_sections
        ]
        return await self._save_sections(profile, sections)

    @handle_service_errors("delete_custom_section", "Error deleting custom section")
    async def delete_custom_section(self, user_id, title: str) -> List[CustomSectionSchema]:
        profile = await self._get_profile(user_id, for_update=True)
        if profile.find_section(title) is None:
            raise APIError.not_found(ErrorMessage.CUSTOM_SECTION_NOT_FOUND)

        sections = [s for s in profile.custom_sections if s.title != title]
        return await self._save_sections(profile, sections)

    @handle_service_errors("fetch_user_groups", "Error fetching user groups")
    async def fetch_user_groups(self, user_id) -> UserGroupsResponse:
        user_id = self.profiles.to_object_id(user_id, "user_id")
        user_groups = await self.user_groups.find_by_user_id(self.db, user_id)
        if user_groups is None:
            raise APIError.not_found(ErrorMessage.USER_GROUPS_NOT_FOUND)

        groups = await self.groups.find_by_ids(self.db, user_groups.groups)
        return UserGroupsResponse(user_id=str(user_id), groups=[self.groups.to_response(g) for g in groups])

    async def _get_profile(self, user_id, for_update: bool = False) -> UserProfile:
        user_id = self.profiles.to_object_id(user_id, "user_id")
        profile = await self.profiles.find_by_user_id(self.db, user_id, for_update=for_update)
        if profile is None:
            raise APIError.not_found(ErrorMessage.USER_PROFILE_NOT_FOUND)
        return profile

    async def _update(self, user_id, values: dict) -> UserProfileResponse:
        user_id = self.profiles.to_object_id(user_id, "user_id")
        if "account_type" in values and values["account_type"] is not None:
            values["account_type"] = int(values["account_type"])
        profile = await self.profiles.update_by_user_id(self.db, user_id, values)
        if profile is None:
            raise APIError.not_found(ErrorMessage.USER_PROFILE_NOT_FOUND)
        await self.db.commit()
        self.logger.info("Profile updated", user_id=user_id, fields=sorted(values))
        return self.profiles.to_response(profile)

    async def _save_sections(self, profile: UserProfile, sections: List[CustomSection]) -> List[CustomSectionSchema]:
        updated = await self.profiles.replace_sections(self.db, profile.user_id, sections)
        await self.db.commit()
        return [CustomSectionSchema(title=s.title, details=s.details) for s in updated.custom_sections]
