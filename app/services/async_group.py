"""
Groups and group membership.

A group's ``owners``/``members``/``requests`` lists and each user's
``user_groups`` list describe the same relation from both ends. Any change to
membership updates both inside one coordinator transaction. Guards run
against the request session first and again against the locked row inside the
transaction, so two concurrent joins cannot both pass.
"""

from typing import Callable, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ErrorMessage
from app.core.errors import APIError
from app.db.transaction import TransactionCoordinator
from app.entities.social import Group
from app.repositories.group import GroupRepository, UserGroupsRepository
from app.schemas.base import MessageResponse
from app.schemas.group import GroupCreate, GroupProfileUpdate, GroupResponse
from app.services.async_error_handler import handle_service_errors
from app.utils.logger import AppLogger

# Receives the locked group, raises on a failed guard, returns the new lists
MembershipChange = Callable[[Group], Dict[str, List[int]]]


def without(values: List[int], user_id: int) -> List[int]:
    return [v for v in values if v != user_id]


class AsyncGroupService:

    def __init__(self, db: AsyncSession, transactions: TransactionCoordinator, logger: AppLogger):
        self.db = db
        self.transactions = transactions
        self.logger = logger.child("group")
        self.groups = GroupRepository()
        self.user_groups = UserGroupsRepository()

    @handle_service_errors("create_group", "Error creating group")
    async def create_group(self, request: GroupCreate, creator_id) -> GroupResponse:
        creator_id = self.groups.to_object_id(creator_id, "creator_id")

        async def create(session: AsyncSession) -> Group:
            return await self.groups.create(session, self.groups.to_document(request, creator_id))

        def link_creator(session: AsyncSession, group: Group):
            return [lambda: self.user_groups.add_group(session, creator_id, group.id)]

        group = await self.transactions.execute("create_group", create, link_creator, "Error creating group")
        self.logger.success("Group created", group_id=group.id, creator_id=creator_id)
        return self.groups.to_response(group)

    @handle_service_errors("get_group", "Error fetching group")
    async def get_group(self, group_id) -> GroupResponse:
        group = await self._get_group(group_id)
        return self.groups.to_response(group)

    @handle_service_errors("join_group", "Error joining group")
    async def join_group(self, group_id, user_id) -> GroupResponse:
        group_id, user_id = self._ids(group_id, user_id)

        def join(group: Group) -> Dict[str, List[int]]:
            if group.is_private:
                raise APIError.bad_request(ErrorMessage.CANNOT_JOIN_PRIVATE_GROUP)
            if group.is_part_of(user_id):
                raise APIError.conflict(ErrorMessage.ALREADY_GROUP_MEMBER)
            return {"members": group.members + [user_id], "requests": without(group.requests, user_id)}

        # Runs the guards before opening a transaction
        join(await self._get_group(group_id))
        group = await self._change_membership("join_group", group_id, user_id, join, add=True)
        self.logger.info("User joined group", group_id=group_id, user_id=user_id)
        return self.groups.to_response(group)

    @handle_service_errors("request_to_join", "Error requesting to join group")
    async def request_to_join(self, group_id, user_id) -> MessageResponse:
        group_id, user_id = self._ids(group_id, user_id)
        group = await self._get_group(group_id)
        if not group.is_private:
            raise APIError.bad_request(ErrorMessage.CANNOT_REQUEST_PUBLIC_GROUP)
        if group.is_part_of(user_id):
            raise APIError.conflict(ErrorMessage.ALREADY_GROUP_MEMBER)
        if group.has_requested(user_id):
            raise APIError.conflict(ErrorMessage.ALREADY_REQUESTED_TO_JOIN)

        await self.groups.update_membership(self.db, group_id, requests=group.requests + [user_id])
        await self.db.commit()
        return MessageResponse(message="Join request sent")

    @handle_service_errors("accept_join_request", "Error accepting join request")
    async def accept_join_request(self, group_id, requester_id, owner_id) -> GroupResponse:
        group_id, requester_id = self._ids(group_id, requester_id)
        await self._require_owner(group_id, owner_id)

        def accept(group: Group) -> Dict[str, List[int]]:
            if not group.has_requested(requester_id):
                raise APIError.not_found(ErrorMessage.NO_PENDING_JOIN_REQUEST)
            return {
                "members": group.members + [requester_id],
                "requests": without(group.requests, requester_id),
            }

        accept(await self._get_group(group_id))
        group = await self._change_membership("accept_join_request", group_id, requester_id, accept, add=True)
        return self.groups.to_response(group)

    @handle_service_errors("reject_join_request", "Error rejecting join request")
    async def reject_join_request(self, group_id, requester_id, owner_id) -> MessageResponse:
        group_id, requester_id = self._ids(group_id, requester_id)
        group = await self._require_owner(group_id, owner_id)
        if not group.has_requested(requester_id):
            raise APIError.not_found(ErrorMessage.NO_PENDING_JOIN_REQUEST)

        await self.groups.update_membership(self.db, group_id, requests=without(group.requests, requester_id))
        await self.db.commit()
        return MessageResponse(message="Join request rejected")

    @handle_service_errors("leave_group", "Error leaving group")
    async def leave_group(self, group_id, user_id) -> MessageResponse:
        group_id, user_id = self._ids(group_id, user_id)

        def leave(group: Group) -> Dict[str, List[int]]:
            if group.is_owner(user_id):
                raise APIError.bad_request(ErrorMessage.OWNER_CANNOT_LEAVE)
            if not group.is_member(user_id):
                raise APIError.not_found(ErrorMessage.NOT_GROUP_MEMBER)
            return {"members": without(group.members, user_id)}

        leave(await self._get_group(group_id))
        await self._change_membership("leave_group", group_id, user_id, leave, add=False)
        self.logger.info("User left group", group_id=group_id, user_id=user_id)
        return MessageResponse(message="Successfully left group")

    @handle_service_errors("remove_member", "Error removing member")
    async def remove_member(self, group_id, member_id, owner_id) -> MessageResponse:
        group_id, member_id = self._ids(group_id, member_id)
        group = await self._get_group(group_id)
        if group.is_owner(member_id):
            raise APIError.bad_request(ErrorMessage.CANNOT_REMOVE_OWNER)
        if not group.is_owner(self.groups.to_object_id(owner_id, "owner_id")):
            raise APIError.forbidden(ErrorMessage.OWNER_ONLY)

        def remove(group: Group) -> Dict[str, List[int]]:
            if group.is_owner(member_id):
                raise APIError.bad_request(ErrorMessage.CANNOT_REMOVE_OWNER)
            if not group.is_member(member_id):
                raise APIError.not_found(ErrorMessage.NOT_GROUP_MEMBER)
            return {"members": without(group.members, member_id)}

        remove(group)
        await self._change_membership("remove_member", group_id, member_id, remove, add=False)
        return MessageResponse(message="Member removed")

    @handle_service_errors("delete_group", "Error deleting group")
    async def delete_group(self, group_id, owner_id) -> MessageResponse:
        group = await self._require_owner(group_id, owner_id)

        async def delete(session: AsyncSession) -> Group:
            locked = await self.groups.find_by_id(session, group.id, for_update=True)
            if locked is None:
                raise APIError.not_found(ErrorMessage.GROUP_NOT_FOUND)
            await self.user_groups.remove_group_from_users(session, locked.owners + locked.members, locked.id)
            await self.groups.delete_by_id(session, locked.id)
            return locked

        deleted = await self.transactions.execute("delete_group", delete, failure_message="Error deleting group")
        self.logger.info("Group deleted", group_id=deleted.id, affected_users=len(deleted.owners + deleted.members))
        return MessageResponse(message="Group deleted")

    @handle_service_errors("update_group_profile", "Error updating group profile")
    async def update_group_profile(self, group_id, request: GroupProfileUpdate, owner_id) -> GroupResponse:
        group = await self._require_owner(group_id, owner_id)
        values = request.model_dump(exclude_unset=True, exclude={"expected_version"})
        if values.get("group_name") is not None:
            values["group_name"] = values["group_name"].strip()
        if values.get("account_type") is not None:
            values["account_type"] = int(values["account_type"])

        locked = await self.groups.find_by_id(self.db, group.id, for_update=True)
        if request.expected_version is not None and locked.version != request.expected_version:
            raise APIError.conflict(ErrorMessage.GROUP_MODIFIED_CONCURRENTLY)

        updated = await self.groups.update_profile(self.db, group.id, values)
        await self.db.commit()
        return self.groups.to_response(updated)

    # Internals

    def _ids(self, group_id, user_id):
        return (
            self.groups.to_object_id(group_id, "group_id"),
            self.groups.to_object_id(user_id, "user_id"),
        )

    async def _get_group(self, group_id) -> Group:
        group = await self.groups.find_by_id(self.db, self.groups.to_object_id(group_id, "group_id"))
        if group is None:
            raise APIError.not_found(ErrorMessage.GROUP_NOT_FOUND)
        return group

    async def _require_owner(self, group_id, owner_id) -> Group:
        group = await self._get_group(group_id)
        if not group.is_owner(self.groups.to_object_id(owner_id, "owner_id")):
            raise APIError.forbidden(ErrorMessage.OWNER_ONLY)
        return group

    async def _change_membership(
        self, operation: str, group_id: int, user_id: int, change: MembershipChange, add: bool
    ) -> Group:
        """Apply ``change`` to the locked group and mirror it on the user's group list."""

        async def update_group(session: AsyncSession) -> Group:
            locked = await self.groups.find_by_id(session, group_id, for_update=True)
            if locked is None:
                raise APIError.not_found(ErrorMessage.GROUP_NOT_FOUND)
            return await self.groups.update_membership(session, group_id, **change(locked))

        def update_user_groups(session: AsyncSession, _):
            if add:
                return [lambda: self.user_groups.add_group(session, user_id, group_id)]
            return [lambda: self.user_groups.remove_group(session, user_id, group_id)]

        return await self.transactions.execute(operation, update_group, update_user_groups, "Error updating group")
