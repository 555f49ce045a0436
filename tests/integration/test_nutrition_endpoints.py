"""
Integration tests for nutrition targets, programs, meal templates and meal logs.
"""

NUTRITION = "/api/v1/nutrition"

PROFILE = {"age": 26, "gender": "male", "height_cm": 178, "weight_kg": 75, "activity_level": "sedentary"}

CHICKEN = {
    "ingredient_name": "chicken breast",
    "amount": 200,
    "nutritional_data": {
        "calories_per_100g": 165,
        "protein_per_100g": 31,
        "carbs_per_100g": 0,
        "fats_per_100g": 3.6,
        "sodium_per_100g": 74,
    },
}
RICE = {
    "ingredient_name": "white rice",
    "amount": 150,
    "nutritional_data": {"calories_per_100g": 130, "protein_per_100g": 2.7, "carbs_per_100g": 28, "fats_per_100g": 0.3},
}


async def create_template(client, user, **overrides):
    payload = {"name": "Chicken and rice", "meal_type": "lunch", "ingredients": [CHICKEN, RICE]}
    payload.update(overrides)
    response = await client.post(f"{NUTRITION}/meal-templates", json=payload, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()


class TestCalculate:

    async def test_maintenance_targets(self, client):
        response = await client.post(
            f"{NUTRITION}/calculate", json={"profile": PROFILE, "phase": {"phase_type": "maintenance"}}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["bmr"] == 1738
        assert body["tdee"] == 2085
        assert body["target_calories"] == 2085
        assert body["weight_change_per_week"] == 0

    async def test_invalid_profile(self, client):
        response = await client.post(
            f"{NUTRITION}/calculate",
            json={"profile": {**PROFILE, "age": 5}, "phase": {"phase_type": "cutting"}},
        )

        assert response.status_code == 400


class TestMealTemplates:

    async def test_totals_are_computed(self, client, register):
        user = await register()

        template = await create_template(client, user, servings=2)

        assert template["totals"]["calories"] == 525
        assert template["per_serving"]["calories"] == 263
        assert template["version"] == "1.0"
        assert template["created_by"] == user["user_id"]

    async def test_update_records_version_history(self, client, register):
        user = await register()
        template = await create_template(client, user)

        response = await client.put(
            f"{NUTRITION}/meal-templates/{template['id']}",
            json={"ingredients": [CHICKEN], "change_reason": "Low carb day"},
            headers=user["headers"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["version"] == "1.1"
        assert body["totals"]["calories"] == 330
        [entry] = body["version_history"]
        assert entry["changes"] == ["ingredients"]
        assert entry["change_reason"] == "Low carb day"

    async def test_missing_template(self, client, register):
        user = await register()

        response = await client.get(f"{NUTRITION}/meal-templates/123", headers=user["headers"])

        assert response.status_code == 404


class TestNutritionPrograms:

    async def test_phases_get_targets_from_profile(self, client, register):
        user = await register()

        response = await client.post(
            f"{NUTRITION}/programs",
            json={
                "name": "Summer cut",
                "total_duration_weeks": 12,
                "has_phases": True,
                "profile": PROFILE,
                "phases": [
                    {"phase_number": 1, "name": "Cut", "duration_weeks": 8, "phase_type": "cutting"},
                    {"phase_number": 2, "name": "Hold", "duration_weeks": 4, "phase_type": "maintenance"},
                ],
            },
            headers=user["headers"],
        )

        assert response.status_code == 201, response.text
        program = response.json()
        cut, hold = program["phases"]
        assert (cut["start_week"], cut["end_week"]) == (1, 8)
        assert (hold["start_week"], hold["end_week"]) == (9, 12)
        assert cut["target_calories_per_day"] == 1585
        assert hold["target_calories_per_day"] == 2085
        assert program["owner_id"] == user["user_id"]

        owned = await client.get(f"{NUTRITION}/programs/owner/{user['user_id']}", headers=user["headers"])
        assert [p["id"] for p in owned.json()] == [program["id"]]

    async def test_overlapping_phases(self, client, register):
        user = await register()

        response = await client.post(
            f"{NUTRITION}/programs",
            json={
                "name": "Overlap",
                "total_duration_weeks": 8,
                "has_phases": True,
                "phases": [
                    {"phase_number": 1, "name": "A", "duration_weeks": 4, "phase_type": "custom", "start_week": 1},
                    {"phase_number": 2, "name": "B", "duration_weeks": 4, "phase_type": "custom", "start_week": 3},
                ],
            },
            headers=user["headers"],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Phase week ranges must not overlap"

    async def test_phases_flag_must_match(self, client, register):
        user = await register()

        response = await client.post(
            f"{NUTRITION}/programs",
            json={"name": "No phases", "total_duration_weeks": 4, "has_phases": True},
            headers=user["headers"],
        )

        assert response.status_code == 400

    async def test_validate_meal_plan(self, client, register):
        user = await register()
        template = await create_template(client, user)
        response = await client.post(
            f"{NUTRITION}/programs",
            json={
                "name": "Lean",
                "total_duration_weeks": 4,
                "has_phases": True,
                "phases": [
                    {
                        "phase_number": 1,
                        "name": "Only",
                        "duration_weeks": 4,
                        "phase_type": "custom",
                        "target_calories_per_day": 550,
                        "meal_templates": [template["id"]],
                    }
                ],
            },
            headers=user["headers"],
        )
        program = response.json()

        valid = await client.get(f"{NUTRITION}/programs/{program['id']}/phases/1/validate", headers=user["headers"])
        assert valid.status_code == 200
        assert valid.json()["is_valid"] is True
        assert valid.json()["planned_calories"] == 525
        assert valid.json()["variance"] == 25

        missing = await client.get(f"{NUTRITION}/programs/{program['id']}/phases/2/validate", headers=user["headers"])
        assert missing.status_code == 404


class TestMealLogs:

    async def test_log_from_template_scales_servings(self, client, register):
        user = await register()
        template = await create_template(client, user)

        response = await client.post(
            f"{NUTRITION}/meal-logs",
            json={"meal_template_id": template["id"], "servings_consumed": 2},
            headers=user["headers"],
        )

        assert response.status_code == 201, response.text
        log = response.json()
        assert log["meal_name"] == "Chicken and rice"
        assert log["template_version"] == "1.0"
        assert log["actual"]["calories"] == 1050
        assert log["planned"]["calories"] == 1050
        assert log["variance"]["calories"] == 0
        assert [i["amount"] for i in log["ingredients"]] == [400, 300]

    async def test_log_needs_template_or_ingredients(self, client, register):
        user = await register()

        response = await client.post(f"{NUTRITION}/meal-logs", json={"meal_name": "Mystery"}, headers=user["headers"])

        assert response.status_code == 400

    async def test_my_logs(self, client, register):
        user, other = await register(), await register()
        template = await create_template(client, user)
        await client.post(f"{NUTRITION}/meal-logs", json={"meal_template_id": template["id"]}, headers=user["headers"])
        await client.post(
            f"{NUTRITION}/meal-logs",
            json={"meal_name": "Apple", "ingredients": [{"ingredient_name": "apple", "amount": 150}]},
            headers=other["headers"],
        )

        response = await client.get(f"{NUTRITION}/meal-logs/me", headers=user["headers"])

        assert response.status_code == 200
        assert [log["meal_name"] for log in response.json()] == ["Chicken and rice"]
