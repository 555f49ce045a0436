"""
Unit tests for CalorieCalculator.

Reference profile: a 26 year old male, 75 kg, 178 cm. Mifflin-St Jeor gives
a BMR of 1737.5, and a sedentary TDEE of 2085.
"""

from dataclasses import replace

import pytest

from app.core.enums import ActivityLevel, Gender, PhaseType, WeightChangeType
from app.entities.nutrition import NutritionalData, TemplateIngredient
from app.services.nutrition_calculator import (
    BiometricProfile,
    CalorieCalculator,
    PhaseTargets,
    round_2,
    round_half_up,
)


@pytest.fixture
def male_profile():
    return BiometricProfile(
        age=26,
        gender=Gender.male,
        height_cm=178,
        weight_kg=75,
        activity_level=ActivityLevel.sedentary,
    )


class TestRounding:

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_round_2(self):
        assert round_2(1.0049) == 1.0
        assert round_2(44.444) == 44.44
        assert round_2(-1.0) == -1.0


class TestEnergyExpenditure:

    def test_male_bmr(self, male_profile):
        assert CalorieCalculator.calculate_bmr(male_profile) == pytest.approx(1737.5)

    def test_female_bmr_uses_lower_constant(self):
        profile = BiometricProfile(
            age=26, gender=Gender.female, height_cm=178, weight_kg=75, activity_level=ActivityLevel.sedentary
        )
        # 1737.5 - 5 - 161
        assert CalorieCalculator.calculate_bmr(profile) == pytest.approx(1571.5)

    def test_sedentary_tdee(self, male_profile):
        assert CalorieCalculator.calculate_tdee(male_profile) == pytest.approx(2085)

    @pytest.mark.parametrize(
        "activity_level, tdee, rounded",
        [
            (ActivityLevel.sedentary, 2085.0, 2085),
            (ActivityLevel.lightly_active, 2389.0625, 2389),
            (ActivityLevel.moderately_active, 2693.125, 2693),
            (ActivityLevel.very_active, 2997.1875, 2997),
            (ActivityLevel.extremely_active, 3301.25, 3301),
        ],
    )
    def test_tdee_for_each_activity_level(self, male_profile, activity_level, tdee, rounded):
        profile = replace(male_profile, activity_level=activity_level)

        assert CalorieCalculator.calculate_tdee(profile) == pytest.approx(tdee)
        targets = CalorieCalculator.calculate_nutrition_targets(
            profile, PhaseTargets(phase_type=PhaseType.maintenance)
        )
        assert targets.tdee == rounded


class TestTargets:

    def test_maintenance_keeps_tdee(self, male_profile):
        targets = CalorieCalculator.calculate_nutrition_targets(
            male_profile, PhaseTargets(phase_type=PhaseType.maintenance)
        )

        assert targets.bmr == 1738
        assert targets.tdee == 2085
        assert targets.target_calories == 2085
        assert targets.target_protein == 156
        assert targets.target_carbs == 235
        assert targets.target_fats == 58
        assert targets.weight_change_per_week == 0
        assert targets.phase_type == "maintenance"

    def test_cutting_defaults_to_one_pound_a_week(self, male_profile):
        targets = CalorieCalculator.calculate_nutrition_targets(
            male_profile, PhaseTargets(phase_type=PhaseType.cutting)
        )

        assert targets.target_calories == 1585
        assert targets.weight_change_per_week == -1.0

    def test_explicit_weight_change_overrides_default(self, male_profile):
        phase = PhaseTargets(
            phase_type=PhaseType.bulking,
            target_weight_change=1.0,
            target_weight_change_type=WeightChangeType.gain,
        )

        targets = CalorieCalculator.calculate_nutrition_targets(male_profile, phase)

        assert targets.target_calories == 2585
        assert targets.weight_change_per_week == 1.0

    def test_lose_type_makes_change_negative(self):
        phase = PhaseTargets(
            phase_type=PhaseType.cutting,
            target_weight_change=0.5,
            target_weight_change_type=WeightChangeType.lose,
        )
        assert CalorieCalculator.weekly_weight_change(phase) == -0.5

    def test_cutting_macro_split(self):
        macros = CalorieCalculator.calculate_macro_targets(2000, PhaseTargets(phase_type=PhaseType.cutting))

        assert (macros.protein, macros.fats, macros.carbs) == (175, 44, 225)

    def test_custom_phase_uses_default_split(self):
        macros = CalorieCalculator.calculate_macro_targets(2000, PhaseTargets(phase_type=PhaseType.custom))

        assert macros.protein == 150
        assert macros.fats == 56


class TestMealPlanValidation:

    def test_within_tolerance(self):
        assert CalorieCalculator.validate_meal_plan_calories(2030, 2000) == (True, 30, None)

    def test_exact_tolerance_boundary_is_valid(self):
        is_valid, variance, _ = CalorieCalculator.validate_meal_plan_calories(2050, 2000)
        assert is_valid is True
        assert variance == 50

    def test_over_target(self):
        is_valid, variance, message = CalorieCalculator.validate_meal_plan_calories(2100, 2000)

        assert is_valid is False
        assert variance == 100
        assert message.startswith("Meal plan exceeds target by 100 calories")

    def test_under_target(self):
        is_valid, _, message = CalorieCalculator.validate_meal_plan_calories(1800, 2000)

        assert is_valid is False
        assert "200 calories below target" in message


class TestMealNutrition:

    def test_scales_per_100g_values(self):
        chicken = TemplateIngredient(
            ingredient_name="chicken breast",
            amount=200,
            nutritional_data=NutritionalData(
                calories_per_100g=165, protein_per_100g=31, carbs_per_100g=0, fats_per_100g=3.6, sodium_per_100g=74
            ),
        )
        rice = TemplateIngredient(
            ingredient_name="white rice",
            amount=150,
            nutritional_data=NutritionalData(
                calories_per_100g=130, protein_per_100g=2.7, carbs_per_100g=28, fats_per_100g=0.3
            ),
        )

        totals = CalorieCalculator.calculate_meal_nutrition([chicken, rice])

        assert totals.calories == 525
        assert totals.protein == 66.05
        assert totals.carbs == 42
        assert totals.fats == 7.65
        assert totals.sodium == 148

    def test_ingredient_without_data_counts_as_zero(self):
        totals = CalorieCalculator.calculate_meal_nutrition(
            [TemplateIngredient(ingredient_name="salt", amount=1)]
        )

        assert totals.calories == 0
        assert totals.protein == 0
