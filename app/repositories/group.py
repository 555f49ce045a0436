from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ProfileAccess
from app.entities.social import Group, UserGroups, validate_group, validate_user_groups
from app.models.group import Group as GroupModel
from app.models.group import UserGroups as UserGroupsModel
from app.repositories.base import BaseRepository, aware, id_strs
from app.schemas.group import GroupCreate, GroupResponse


class GroupRepository(BaseRepository[GroupModel, Group]):

    def __init__(self):
        super().__init__(GroupModel, validate_group)

    @staticmethod
    def to_document(request: GroupCreate, creator_id: int) -> Dict[str, Any]:
        return {
            "group_name": request.group_name.strip(),
            "bio": request.bio,
            "owners": [creator_id],
            "members": [],
            "requests": [],
            "account_type": ProfileAccess(request.account_type).value,
            "version": 1,
        }

    def to_entity(self, row: Optional[GroupModel]) -> Optional[Group]:
        if row is None:
            return None
        return Group(
            id=row.id,
            group_name=row.group_name,
            bio=row.bio,
            owners=list(row.owners or []),
            members=list(row.members or []),
            requests=list(row.requests or []),
            account_type=row.account_type,
            version=row.version,
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(group: Group) -> GroupResponse:
        return GroupResponse(
            id=str(group.id),
            group_name=group.group_name,
            bio=group.bio,
            owners=id_strs(group.owners),
            members=id_strs(group.members),
            requests=id_strs(group.requests),
            account_type=group.account_type,
            version=group.version,
            created_at=group.created_at,
            updated_at=group.updated_at,
        )

    async def update_membership(self, db: AsyncSession, group_id: int, **lists: List[int]) -> Optional[Group]:
        """
        Replace membership lists and bump the version in one write.

        ``lists`` holds any of ``owners``, ``members`` and ``requests``. The
        row is locked for the duration so concurrent membership changes to
        the same group apply one after the other.
        """
        row = await self.get_row(db, group_id, for_update=True)
        if row is None:
            return None
        return await self._apply(db, row, {**lists, "version": row.version + 1})

    async def update_profile(self, db: AsyncSession, group_id: int, values: Dict[str, Any]) -> Optional[Group]:
        row = await self.get_row(db, group_id, for_update=True)
        if row is None:
            return None
        return await self._apply(db, row, {**values, "version": row.version + 1})


class UserGroupsRepository(BaseRepository[UserGroupsModel, UserGroups]):
    """The groups each user belongs to, one document per user."""

    def __init__(self):
        super().__init__(UserGroupsModel, validate_user_groups)

    @staticmethod
    def to_document(user_id: int) -> Dict[str, Any]:
        return {"user_id": user_id, "groups": []}

    def to_entity(self, row: Optional[UserGroupsModel]) -> Optional[UserGroups]:
        if row is None:
            return None
        return UserGroups(id=row.id, user_id=row.user_id, groups=list(row.groups or []))

    async def find_by_user_id(self, db: AsyncSession, user_id: int) -> Optional[UserGroups]:
        return await self.find_one(db, user_id=user_id)

    async def add_group(self, db: AsyncSession, user_id: int, group_id: int) -> UserGroups:
        """Add ``group_id`` to the user's list, creating the document on first use."""
        updated = await self.add_to_set(db, user_id, "groups", [group_id], by="user_id")
        if updated is not None:
            return updated
        return await self.create(db, {"user_id": user_id, "groups": [group_id]})

    async def remove_group(self, db: AsyncSession, user_id: int, group_id: int) -> Optional[UserGroups]:
        return await self.pull(db, user_id, "groups", [group_id], by="user_id")

    async def remove_group_from_users(self, db: AsyncSession, user_ids: List[int], group_id: int) -> int:
        return await self.pull_from_many(db, user_ids, "groups", group_id, by="user_id")
