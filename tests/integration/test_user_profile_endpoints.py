"""
Integration tests for profiles, custom sections and the follow graph.
"""

PROFILE = "/api/v1/user-profile"


class TestProfile:

    async def test_update_basic_info(self, client, register):
        user = await register(name="Old Name")

        response = await client.put(
            f"{PROFILE}/me/basic", json={"name": "New Name", "bio": "Marathoner"}, headers=user["headers"]
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "New Name"
        assert body["bio"] == "Marathoner"
        assert body["user_id"] == user["user_id"]

    async def test_get_other_profile(self, client, register):
        viewer, other = await register(), await register(name="Coach")

        response = await client.get(f"{PROFILE}/{other['user_id']}", headers=viewer["headers"])

        assert response.status_code == 200
        assert response.json()["name"] == "Coach"

    async def test_unknown_profile(self, client, register):
        viewer = await register()

        response = await client.get(f"{PROFILE}/4242", headers=viewer["headers"])

        assert response.status_code == 404
        assert response.json()["message"] == "User profile not found"


class TestCustomSections:

    async def test_section_lifecycle(self, client, register):
        user = await register()
        section = {"title": "goals", "details": [{"goal": "sub-3 marathon"}]}

        created = await client.post(f"{PROFILE}/me/custom-sections", json=section, headers=user["headers"])
        assert created.status_code == 200
        assert created.json() == [section]

        duplicate = await client.post(f"{PROFILE}/me/custom-sections", json=section, headers=user["headers"])
        assert duplicate.status_code == 409

        updated = await client.put(
            f"{PROFILE}/me/custom-sections/goals",
            json={"details": [{"goal": "sub-2:50 marathon"}]},
            headers=user["headers"],
        )
        assert updated.status_code == 200
        assert updated.json()[0]["details"] == [{"goal": "sub-2:50 marathon"}]

        deleted = await client.delete(f"{PROFILE}/me/custom-sections/goals", headers=user["headers"])
        assert deleted.status_code == 200
        assert deleted.json() == []

    async def test_update_missing_section(self, client, register):
        user = await register()

        response = await client.put(
            f"{PROFILE}/me/custom-sections/stats", json={"details": []}, headers=user["headers"]
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Custom section not found"

    async def test_unknown_section_title(self, client, register):
        user = await register()

        response = await client.post(
            f"{PROFILE}/me/custom-sections", json={"title": "hobbies", "details": []}, headers=user["headers"]
        )

        assert response.status_code == 400


class TestFollow:

    async def test_follow_updates_both_sides(self, client, register):
        alice, bob = await register(), await register()

        response = await client.post(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])
        assert response.status_code == 200

        bob_stats = (await client.get(f"{PROFILE}/{bob['user_id']}/follow-stats", headers=alice["headers"])).json()
        alice_stats = (await client.get(f"{PROFILE}/{alice['user_id']}/follow-stats", headers=alice["headers"])).json()
        assert bob_stats["followers_count"] == 1
        assert bob_stats["is_following"] is True
        assert alice_stats["following_count"] == 1

        again = await client.post(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])
        assert again.status_code == 409

    async def test_cannot_follow_self(self, client, register):
        alice = await register()

        response = await client.post(f"{PROFILE}/follow/{alice['user_id']}", headers=alice["headers"])

        assert response.status_code == 400

    async def test_private_account_needs_request(self, client, register):
        alice, bob = await register(), await register()
        await client.put(f"{PROFILE}/me/basic", json={"account_type": 1}, headers=bob["headers"])

        direct = await client.post(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])
        assert direct.status_code == 400

        requested = await client.post(f"{PROFILE}/follow-request/{bob['user_id']}", headers=alice["headers"])
        assert requested.status_code == 200

        accepted = await client.put(
            f"{PROFILE}/follow-requests/{alice['user_id']}/accept", headers=bob["headers"]
        )
        assert accepted.status_code == 200

        followers = await client.get(f"{PROFILE}/{bob['user_id']}/followers", headers=bob["headers"])
        assert [f["user_id"] for f in followers.json()["data"]] == [alice["user_id"]]

    async def test_unfollow_and_remove_follower(self, client, register):
        alice, bob = await register(), await register()
        await client.post(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])

        unfollowed = await client.delete(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])
        assert unfollowed.status_code == 200

        not_following = await client.delete(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])
        assert not_following.status_code == 400

        await client.post(f"{PROFILE}/follow/{bob['user_id']}", headers=alice["headers"])
        removed = await client.delete(f"{PROFILE}/followers/{alice['user_id']}", headers=bob["headers"])
        assert removed.status_code == 200

        stats = (await client.get(f"{PROFILE}/{alice['user_id']}/follow-stats", headers=alice["headers"])).json()
        assert stats["following_count"] == 0


class TestFollowerPagination:

    async def test_pages_do_not_overlap(self, client, register):
        star = await register(name="Star")
        fans = [await register(name=f"Fan {i}") for i in range(3)]
        for fan in fans:
            response = await client.post(f"{PROFILE}/follow/{star['user_id']}", headers=fan["headers"])
            assert response.status_code == 200

        first = await client.get(
            f"{PROFILE}/{star['user_id']}/followers", params={"limit": 2}, headers=star["headers"]
        )
        assert first.status_code == 200
        first_page = first.json()
        assert len(first_page["data"]) == 2
        assert first_page["pagination"]["has_next_page"] is True
        assert first_page["pagination"]["has_previous_page"] is False

        second = await client.get(
            f"{PROFILE}/{star['user_id']}/followers",
            params={"limit": 2, "cursor": first_page["pagination"]["next_cursor"]},
            headers=star["headers"],
        )
        second_page = second.json()
        assert len(second_page["data"]) == 1
        assert second_page["pagination"]["has_next_page"] is False
        assert second_page["pagination"]["has_previous_page"] is True
        assert second_page["pagination"]["next_cursor"] is None

        seen = [f["user_id"] for f in first_page["data"] + second_page["data"]]
        assert sorted(seen) == sorted(fan["user_id"] for fan in fans)

    async def test_search_followers(self, client, register):
        star = await register()
        runner = await register(name="Trail Runner")
        lifter = await register(name="Power Lifter")
        for fan in (runner, lifter):
            await client.post(f"{PROFILE}/follow/{star['user_id']}", headers=fan["headers"])

        response = await client.get(
            f"{PROFILE}/{star['user_id']}/followers/search",
            params={"search_term": "trail"},
            headers=star["headers"],
        )

        assert response.status_code == 200
        assert [f["name"] for f in response.json()["data"]] == ["Trail Runner"]

    async def test_invalid_limit_and_cursor(self, client, register):
        star = await register()

        too_big = await client.get(
            f"{PROFILE}/{star['user_id']}/followers", params={"limit": 101}, headers=star["headers"]
        )
        assert too_big.status_code == 400

        bad_cursor = await client.get(
            f"{PROFILE}/{star['user_id']}/followers", params={"cursor": "garbage"}, headers=star["headers"]
        )
        assert bad_cursor.status_code == 400
        assert bad_cursor.json()["message"] == "Invalid cursor format"
