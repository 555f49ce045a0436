"""
Unit tests for the membership guards in AsyncGroupService.

Repositories and the transaction coordinator are mocked; these tests check
that a failed guard raises before any transaction is opened.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.enums import ErrorMessage, ProfileAccess
from app.core.errors import APIError, DatabaseError
from app.entities.social import Group
from app.schemas.group import GroupProfileUpdate
from app.services.async_group import AsyncGroupService


def make_group(**overrides):
    values = {"id": 1, "group_name": "Runners", "owners": [10], "members": [20], "requests": []}
    values.update(overrides)
    return Group(**values)


@pytest.fixture
def service():
    transactions = MagicMock()
    transactions.execute = AsyncMock()
    group_service = AsyncGroupService(AsyncMock(), transactions, MagicMock())
    group_service.groups.find_by_id = AsyncMock(return_value=make_group())
    return group_service


def use_group(service, group):
    service.groups.find_by_id = AsyncMock(return_value=group)


class TestJoin:

    async def test_cannot_join_private_group(self, service):
        use_group(service, make_group(account_type=ProfileAccess.Private.value))

        with pytest.raises(APIError) as exc_info:
            await service.join_group(1, 30)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ErrorMessage.CANNOT_JOIN_PRIVATE_GROUP
        service.transactions.execute.assert_not_awaited()

    async def test_member_cannot_join_twice(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.join_group(1, 20)

        assert exc_info.value.status_code == 409
        service.transactions.execute.assert_not_awaited()

    async def test_join_runs_in_transaction(self, service):
        service.transactions.execute.return_value = make_group(members=[20, 30])

        response = await service.join_group("1", "30")

        service.transactions.execute.assert_awaited_once()
        assert response.members == ["20", "30"]

    async def test_missing_group(self, service):
        use_group(service, None)

        with pytest.raises(APIError) as exc_info:
            await service.join_group(1, 30)

        assert exc_info.value.status_code == 404

    async def test_malformed_group_id(self, service):
        with pytest.raises(DatabaseError) as exc_info:
            await service.join_group("not-an-id", 30)

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "CastError"


class TestRequests:

    async def test_public_group_does_not_take_requests(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.request_to_join(1, 30)

        assert exc_info.value.message == ErrorMessage.CANNOT_REQUEST_PUBLIC_GROUP

    async def test_duplicate_request(self, service):
        use_group(service, make_group(account_type=ProfileAccess.Private.value, requests=[30]))

        with pytest.raises(APIError) as exc_info:
            await service.request_to_join(1, 30)

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == ErrorMessage.ALREADY_REQUESTED_TO_JOIN

    async def test_accept_without_request(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.accept_join_request(1, 30, 10)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == ErrorMessage.NO_PENDING_JOIN_REQUEST

    async def test_only_owner_accepts(self, service):
        use_group(service, make_group(requests=[30]))

        with pytest.raises(APIError) as exc_info:
            await service.accept_join_request(1, 30, 20)

        assert exc_info.value.status_code == 403


class TestLeaveAndRemove:

    async def test_owner_cannot_leave(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.leave_group(1, 10)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ErrorMessage.OWNER_CANNOT_LEAVE

    async def test_non_member_cannot_leave(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.leave_group(1, 99)

        assert exc_info.value.status_code == 404

    async def test_owner_cannot_be_removed(self, service):
        use_group(service, make_group(owners=[10, 11]))

        with pytest.raises(APIError) as exc_info:
            await service.remove_member(1, 11, 10)

        assert exc_info.value.message == ErrorMessage.CANNOT_REMOVE_OWNER

    async def test_owner_target_is_rejected_for_any_caller(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.remove_member(1, 10, 20)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ErrorMessage.CANNOT_REMOVE_OWNER
        service.transactions.execute.assert_not_awaited()

    async def test_member_cannot_remove_others(self, service):
        with pytest.raises(APIError) as exc_info:
            await service.remove_member(1, 20, 20)

        assert exc_info.value.status_code == 403
        service.transactions.execute.assert_not_awaited()


class TestProfile:

    async def test_stale_version_is_rejected(self, service):
        use_group(service, make_group(version=3))

        with pytest.raises(APIError) as exc_info:
            await service.update_group_profile(1, GroupProfileUpdate(bio="new", expected_version=2), 10)

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == ErrorMessage.GROUP_MODIFIED_CONCURRENTLY
