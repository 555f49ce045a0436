"""
Integration tests for group endpoints.

Every membership change has to show up on both the group and the user's
group list.
"""

from app.repositories.group import UserGroupsRepository

GROUPS = "/api/v1/groups"


async def create_group(client, owner, **overrides):
    payload = {"group_name": "Morning Runners", "bio": "5k before work"}
    payload.update(overrides)
    response = await client.post(f"{GROUPS}/", json=payload, headers=owner["headers"])
    assert response.status_code == 201, response.text
    return response.json()


async def group_ids_of(client, user, viewer=None):
    viewer = viewer or user
    response = await client.get(f"/api/v1/user-profile/{user['user_id']}/groups", headers=viewer["headers"])
    assert response.status_code == 200, response.text
    return [g["id"] for g in response.json()["groups"]]


class TestCreateAndJoin:

    async def test_create_group_links_owner(self, client, register):
        owner = await register()

        group = await create_group(client, owner)

        assert group["owners"] == [owner["user_id"]]
        assert group["members"] == []
        assert group["account_type"] == 0
        assert await group_ids_of(client, owner) == [group["id"]]

    async def test_join_public_group(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)

        response = await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        assert response.status_code == 200
        assert response.json()["members"] == [runner["user_id"]]
        assert await group_ids_of(client, runner) == [group["id"]]

    async def test_join_twice_conflicts(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)
        await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        response = await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        assert response.status_code == 409
        assert response.json()["message"] == "User is already part of this group"

    async def test_join_unknown_group(self, client, register):
        runner = await register()

        response = await client.put(f"{GROUPS}/999/join", headers=runner["headers"])

        assert response.status_code == 404

    async def test_malformed_group_id(self, client, register):
        runner = await register()

        response = await client.get(f"{GROUPS}/not-an-id", headers=runner["headers"])

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "CastError"
        assert body["details"]["value"] == "not-an-id"

    async def test_failed_user_groups_write_rolls_back_join(self, client, register, monkeypatch):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)

        async def broken_add_group(self, db, user_id, group_id):
            raise RuntimeError("user_groups unavailable")

        monkeypatch.setattr(UserGroupsRepository, "add_group", broken_add_group)
        response = await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])
        monkeypatch.undo()

        assert response.status_code == 500
        fetched = await client.get(f"{GROUPS}/{group['id']}", headers=owner["headers"])
        assert fetched.json()["members"] == []
        assert await group_ids_of(client, runner) == []


class TestPrivateGroups:

    async def test_request_and_accept(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner, account_type=1)

        direct = await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])
        assert direct.status_code == 400

        requested = await client.put(f"{GROUPS}/{group['id']}/request-join", headers=runner["headers"])
        assert requested.status_code == 200

        again = await client.put(f"{GROUPS}/{group['id']}/request-join", headers=runner["headers"])
        assert again.status_code == 409

        accepted = await client.put(
            f"{GROUPS}/{group['id']}/accept-request/{runner['user_id']}", headers=owner["headers"]
        )
        assert accepted.status_code == 200
        assert accepted.json()["members"] == [runner["user_id"]]
        assert accepted.json()["requests"] == []
        assert await group_ids_of(client, runner) == [group["id"]]

    async def test_reject_request(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner, account_type=1)
        await client.put(f"{GROUPS}/{group['id']}/request-join", headers=runner["headers"])

        response = await client.delete(
            f"{GROUPS}/{group['id']}/reject-request/{runner['user_id']}", headers=owner["headers"]
        )

        assert response.status_code == 200
        fetched = await client.get(f"{GROUPS}/{group['id']}", headers=owner["headers"])
        assert fetched.json()["requests"] == []

    async def test_public_group_rejects_requests(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)

        response = await client.put(f"{GROUPS}/{group['id']}/request-join", headers=runner["headers"])

        assert response.status_code == 400


class TestLeaveRemoveDelete:

    async def test_member_leaves(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)
        await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        response = await client.delete(f"{GROUPS}/{group['id']}/leave", headers=runner["headers"])

        assert response.status_code == 200
        assert await group_ids_of(client, runner) == []

    async def test_owner_cannot_leave(self, client, register):
        owner = await register()
        group = await create_group(client, owner)

        response = await client.delete(f"{GROUPS}/{group['id']}/leave", headers=owner["headers"])

        assert response.status_code == 400

    async def test_owner_cannot_be_removed(self, client, register):
        owner = await register()
        group = await create_group(client, owner)

        response = await client.delete(
            f"{GROUPS}/{group['id']}/members/{owner['user_id']}", headers=owner["headers"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot remove group owner"

    async def test_member_cannot_remove_owner(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)
        await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        response = await client.delete(
            f"{GROUPS}/{group['id']}/members/{owner['user_id']}", headers=runner["headers"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot remove group owner"
        fetched = await client.get(f"{GROUPS}/{group['id']}", headers=owner["headers"])
        assert fetched.json()["owners"] == [owner["user_id"]]

    async def test_owner_removes_member(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)
        await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        response = await client.delete(
            f"{GROUPS}/{group['id']}/members/{runner['user_id']}", headers=owner["headers"]
        )

        assert response.status_code == 200
        assert await group_ids_of(client, runner) == []

    async def test_delete_group_clears_every_user_list(self, client, register):
        owner, runner = await register(), await register()
        group = await create_group(client, owner)
        await client.put(f"{GROUPS}/{group['id']}/join", headers=runner["headers"])

        forbidden = await client.delete(f"{GROUPS}/{group['id']}", headers=runner["headers"])
        assert forbidden.status_code == 403

        response = await client.delete(f"{GROUPS}/{group['id']}", headers=owner["headers"])
        assert response.status_code == 200

        assert await group_ids_of(client, owner) == []
        assert await group_ids_of(client, runner) == []
        missing = await client.get(f"{GROUPS}/{group['id']}", headers=owner["headers"])
        assert missing.status_code == 404


class TestGroupProfile:

    async def test_update_profile_with_version(self, client, register):
        owner = await register()
        group = await create_group(client, owner)

        response = await client.put(
            f"{GROUPS}/{group['id']}/profile",
            json={"bio": "Now 10k", "expected_version": group["version"]},
            headers=owner["headers"],
        )
        assert response.status_code == 200
        assert response.json()["bio"] == "Now 10k"

        stale = await client.put(
            f"{GROUPS}/{group['id']}/profile",
            json={"bio": "Stale edit", "expected_version": group["version"]},
            headers=owner["headers"],
        )
        assert stale.status_code == 409
