"""
Integration tests for training programs, weeks, workouts, meals, logs and notes.
"""

PROGRAMS = "/api/v1/programs"


async def create_program(client, user, num_weeks=3, **overrides):
    payload = {
        "name": "Base building",
        "types": ["running"],
        "num_weeks": num_weeks,
        "created_by": user["user_id"],
    }
    payload.update(overrides)
    response = await client.post(f"{PROGRAMS}/", json=payload, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()


async def create_workout(client, user, week_id):
    response = await client.post(
        f"{PROGRAMS}/weeks/{week_id}/workouts",
        json={
            "title": "Squat day",
            "created_by": user["user_id"],
            "exercises": [
                {"name": "Back squat", "target_sets": 2, "target_reps": 5, "sets": [{"weight": 100, "reps": 5}, {}]}
            ],
        },
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_meal(client, user, week_id):
    response = await client.post(
        f"{PROGRAMS}/weeks/{week_id}/meals",
        json={
            "meal_name": "Oats",
            "created_by": user["user_id"],
            "macros": {"protein": 20, "carbs": 60, "fats": 10},
            "ingredients": [{"name": "rolled oats", "portion": {"amount": 80, "unit": "g"}}],
        },
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestPrograms:

    async def test_create_program_builds_weeks(self, client, register):
        coach = await register()

        program = await create_program(client, coach, num_weeks=3)

        assert len(program["weeks"]) == 3
        assert program["created_by"] == coach["user_id"]

        listed = await client.get(f"{PROGRAMS}/user/{coach['user_id']}", headers=coach["headers"])
        assert listed.status_code == 200
        [tree] = listed.json()
        assert [w["week_number"] for w in tree["week_details"]] == [1, 2, 3]
        assert [w["id"] for w in tree["week_details"]] == program["weeks"]

    async def test_member_sees_program(self, client, register):
        coach, athlete, stranger = await register(), await register(), await register()
        await create_program(client, coach, members=[athlete["user_id"]])

        athlete_programs = await client.get(f"{PROGRAMS}/user/{athlete['user_id']}", headers=athlete["headers"])
        stranger_programs = await client.get(f"{PROGRAMS}/user/{stranger['user_id']}", headers=stranger["headers"])

        assert len(athlete_programs.json()) == 1
        assert stranger_programs.json() == []

    async def test_delete_week_detaches_it(self, client, register):
        coach = await register()
        program = await create_program(client, coach, num_weeks=2)
        week_id = program["weeks"][1]

        response = await client.delete(f"{PROGRAMS}/{program['id']}/weeks/{week_id}", headers=coach["headers"])
        assert response.status_code == 200

        [tree] = (await client.get(f"{PROGRAMS}/user/{coach['user_id']}", headers=coach["headers"])).json()
        assert tree["weeks"] == program["weeks"][:1]
        assert (await client.get(f"{PROGRAMS}/weeks/{week_id}", headers=coach["headers"])).status_code == 404

    async def test_delete_week_of_another_program(self, client, register):
        coach = await register()
        first = await create_program(client, coach, num_weeks=1)
        second = await create_program(client, coach, num_weeks=1)

        response = await client.delete(
            f"{PROGRAMS}/{first['id']}/weeks/{second['weeks'][0]}", headers=coach["headers"]
        )

        assert response.status_code == 404

    async def test_update_week(self, client, register):
        coach = await register()
        program = await create_program(client, coach, num_weeks=1)

        response = await client.put(
            f"{PROGRAMS}/weeks/{program['weeks'][0]}",
            json={"name": " Deload ", "description": "Easy week"},
            headers=coach["headers"],
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Deload"


class TestWorkouts:

    async def test_workout_ids_are_assigned(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]

        workout = await create_workout(client, coach, week_id)

        assert workout["id"]
        assert workout["version_id"] == 1
        exercise = workout["exercises"][0]
        assert exercise["id"]
        assert all(s["id"] for s in exercise["sets"])

    async def test_update_bumps_version(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]
        workout = await create_workout(client, coach, week_id)

        response = await client.put(
            f"{PROGRAMS}/weeks/{week_id}/workouts/{workout['id']}",
            json={"title": "Heavy squat day"},
            headers=coach["headers"],
        )

        assert response.status_code == 200
        assert response.json()["version_id"] == 2
        assert response.json()["exercises"] == workout["exercises"]

    async def test_delete_workout(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]
        workout = await create_workout(client, coach, week_id)

        deleted = await client.delete(f"{PROGRAMS}/weeks/{week_id}/workouts/{workout['id']}", headers=coach["headers"])
        assert deleted.status_code == 200

        missing = await client.delete(f"{PROGRAMS}/weeks/{week_id}/workouts/{workout['id']}", headers=coach["headers"])
        assert missing.status_code == 404
        listed = await client.get(f"{PROGRAMS}/weeks/{week_id}/workouts", headers=coach["headers"])
        assert listed.json() == []


class TestMealsAndNotes:

    async def test_meal_is_listed_on_week(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]

        meal = await create_meal(client, coach, week_id)

        week = (await client.get(f"{PROGRAMS}/weeks/{week_id}", headers=coach["headers"])).json()
        assert week["meals"] == [meal["id"]]
        assert [m["meal_name"] for m in week["meal_details"]] == ["Oats"]

    async def test_update_and_delete_meal(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]
        meal = await create_meal(client, coach, week_id)

        updated = await client.put(
            f"{PROGRAMS}/weeks/{week_id}/meals/{meal['id']}", json={"meal_name": "Overnight oats"}, headers=coach["headers"]
        )
        assert updated.json()["version_id"] == 2

        deleted = await client.delete(f"{PROGRAMS}/weeks/{week_id}/meals/{meal['id']}", headers=coach["headers"])
        assert deleted.status_code == 200
        meals = await client.get(f"{PROGRAMS}/weeks/{week_id}/meals", headers=coach["headers"])
        assert meals.json() == []

    async def test_meal_from_another_week(self, client, register):
        coach = await register()
        program = await create_program(client, coach, num_weeks=2)
        meal = await create_meal(client, coach, program["weeks"][0])

        response = await client.put(
            f"{PROGRAMS}/weeks/{program['weeks'][1]}/meals/{meal['id']}",
            json={"meal_name": "Moved"},
            headers=coach["headers"],
        )

        assert response.status_code == 404

    async def test_note_lifecycle(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]

        created = await client.post(
            f"{PROGRAMS}/weeks/{week_id}/notes", json={"title": "Sleep more", "content": "8h"}, headers=coach["headers"]
        )
        assert created.status_code == 201
        note = created.json()

        updated = await client.put(
            f"{PROGRAMS}/weeks/{week_id}/notes/{note['id']}", json={"content": "9h"}, headers=coach["headers"]
        )
        assert updated.json()["content"] == "9h"
        assert updated.json()["title"] == "Sleep more"

        week = (await client.get(f"{PROGRAMS}/weeks/{week_id}", headers=coach["headers"])).json()
        assert [n["id"] for n in week["notes"]] == [note["id"]]

        deleted = await client.delete(f"{PROGRAMS}/weeks/{week_id}/notes/{note['id']}", headers=coach["headers"])
        assert deleted.status_code == 200


class TestLogs:

    async def test_workout_log_snapshots_version(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]
        workout = await create_workout(client, coach, week_id)

        created = await client.post(
            f"{PROGRAMS}/weeks/{week_id}/workout-logs",
            json={"user_id": coach["user_id"], "workout_id": workout["id"]},
            headers=coach["headers"],
        )
        assert created.status_code == 201
        log = created.json()
        assert log["workout_version_id"] == 1
        assert log["workout_snapshot"]["title"] == "Squat day"
        assert log["status"] == "in_progress"

        block = {
            "type": "strength",
            "exercises": [
                {
                    "exercise_id": workout["exercises"][0]["id"],
                    "sets": [
                        {"set_number": 1, "actual_reps": 5, "actual_weight": 100, "is_completed": True},
                        {"set_number": 2, "actual_reps": 5, "actual_weight": 100, "is_completed": False},
                    ],
                }
            ],
        }
        with_block = await client.post(
            f"{PROGRAMS}/weeks/{week_id}/workout-logs/{log['id']}/blocks", json=block, headers=coach["headers"]
        )
        assert with_block.status_code == 200
        assert len(with_block.json()["block_logs"]) == 1
        assert with_block.json()["total_volume"] == 500

    async def test_log_for_unknown_workout(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]

        response = await client.post(
            f"{PROGRAMS}/weeks/{week_id}/workout-logs",
            json={"user_id": coach["user_id"], "workout_id": "missing"},
            headers=coach["headers"],
        )

        assert response.status_code == 404

    async def test_program_meal_log(self, client, register):
        coach = await register()
        week_id = (await create_program(client, coach, num_weeks=1))["weeks"][0]
        meal = await create_meal(client, coach, week_id)

        response = await client.post(
            f"{PROGRAMS}/meal-logs",
            json={"user_id": coach["user_id"], "meal_id": meal["id"], "servings_consumed": 2},
            headers=coach["headers"],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["meal_name"] == "Oats"
        assert body["meal_version_id"] == 1
        # (20 * 4 + 60 * 4 + 10 * 9) * 2
        assert body["actual"]["calories"] == 820
        assert body["actual"]["protein"] == 40
