"""
Calorie and macro calculations.

BMR uses the Mifflin-St Jeor equation. Weight change is in pounds per week,
with 3500 kcal per pound.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from app.core.enums import ActivityLevel, Gender, PhaseType, WeightChangeType
from app.entities.nutrition import NutritionTotals, TemplateIngredient

ACTIVITY_MULTIPLIERS = {
    ActivityLevel.sedentary: 1.2,
    ActivityLevel.lightly_active: 1.375,
    ActivityLevel.moderately_active: 1.55,
    ActivityLevel.very_active: 1.725,
    ActivityLevel.extremely_active: 1.9,
}

# (protein, fat) share of calories; carbs take the rest
MACRO_SPLITS = {
    PhaseType.bulking: (0.25, 0.25),
    PhaseType.cutting: (0.35, 0.20),
    PhaseType.maintenance: (0.30, 0.25),
}
DEFAULT_MACRO_SPLIT = (0.30, 0.25)

DEFAULT_WEEKLY_CHANGE = {
    PhaseType.bulking: 0.5,
    PhaseType.cutting: -1.0,
    PhaseType.maintenance: 0.0,
}

CALORIES_PER_POUND = 3500
CALORIES_PER_GRAM_PROTEIN = 4
CALORIES_PER_GRAM_CARBS = 4
CALORIES_PER_GRAM_FAT = 9


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


@dataclass(frozen=True)
class BiometricProfile:
    age: int
    gender: Gender
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    workout_frequency: Optional[int] = None


@dataclass(frozen=True)
class PhaseTargets:
    phase_type: PhaseType
    target_weight_change: Optional[float] = None
    target_weight_change_type: Optional[WeightChangeType] = None


@dataclass(frozen=True)
class MacroTargets:
    protein: int
    carbs: int
    fats: int


@dataclass(frozen=True)
class NutritionTargets:
    bmr: int
    tdee: int
    target_calories: int
    target_protein: int
    target_carbs: int
    target_fats: int
    weight_change_per_week: float
    phase_type: str


class CalorieCalculator:
    """Stateless nutrition arithmetic."""

    @staticmethod
    def calculate_bmr(profile: BiometricProfile) -> float:
        base = 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age
        if Gender(profile.gender) == Gender.male:
            return base + 5
        return base - 161

    @classmethod
    def calculate_tdee(cls, profile: BiometricProfile) -> float:
        return cls.calculate_bmr(profile) * ACTIVITY_MULTIPLIERS[ActivityLevel(profile.activity_level)]

    @staticmethod
    def weekly_weight_change(phase: PhaseTargets) -> float:
        """Pounds per week: the explicit target when given, else the phase default."""
        if phase.target_weight_change is not None and phase.target_weight_change_type:
            if WeightChangeType(phase.target_weight_change_type) == WeightChangeType.lose:
                return -phase.target_weight_change
            return phase.target_weight_change
        return DEFAULT_WEEKLY_CHANGE.get(PhaseType(phase.phase_type), 0.0)

    @classmethod
    def calculate_target_calories(cls, profile: BiometricProfile, phase: PhaseTargets) -> int:
        tdee = cls.calculate_tdee(profile)
        daily_adjustment = cls.weekly_weight_change(phase) * CALORIES_PER_POUND / 7
        return round_half_up(tdee + daily_adjustment)

    @staticmethod
    def calculate_macro_targets(calories: float, phase: PhaseTargets) -> MacroTargets:
        protein_share, fat_share = MACRO_SPLITS.get(PhaseType(phase.phase_type), DEFAULT_MACRO_SPLIT)
        carb_share = 1 - protein_share - fat_share
        return MacroTargets(
            protein=round_half_up(calories * protein_share / CALORIES_PER_GRAM_PROTEIN),
            carbs=round_half_up(calories * carb_share / CALORIES_PER_GRAM_CARBS),
            fats=round_half_up(calories * fat_share / CALORIES_PER_GRAM_FAT),
        )

    @classmethod
    def calculate_nutrition_targets(cls, profile: BiometricProfile, phase: PhaseTargets) -> NutritionTargets:
        bmr = cls.calculate_bmr(profile)
        tdee = cls.calculate_tdee(profile)
        target_calories = cls.calculate_target_calories(profile, phase)
        macros = cls.calculate_macro_targets(target_calories, phase)
        weight_change = (target_calories - tdee) * 7 / CALORIES_PER_POUND

        return NutritionTargets(
            bmr=round_half_up(bmr),
            tdee=round_half_up(tdee),
            target_calories=target_calories,
            target_protein=macros.protein,
            target_carbs=macros.carbs,
            target_fats=macros.fats,
            weight_change_per_week=round_2(weight_change),
            phase_type=PhaseType(phase.phase_type).value,
        )

    @staticmethod
    def validate_meal_plan_calories(
        planned_calories: float, target_calories: float, tolerance: float = 50
    ) -> Tuple[bool, float, Optional[str]]:
        variance = abs(planned_calories - target_calories)
        if variance <= tolerance:
            return True, variance, None
        if planned_calories > target_calories:
            return False, variance, (
                f"Meal plan exceeds target by {variance:g} calories. Consider reducing portion sizes."
            )
        return False, variance, (
            f"Meal plan is {variance:g} calories below target. Consider adding snacks or increasing portion sizes."
        )

    @staticmethod
    def calculate_meal_nutrition(ingredients: Iterable[TemplateIngredient]) -> NutritionTotals:
        """Sum per-100 g values scaled by each amount. Ingredients without data count as zero."""
        calories = protein = carbs = fats = fiber = sugar = sodium = 0.0
        for ingredient in ingredients:
            data = ingredient.nutritional_data
            if data is None:
                continue
            multiplier = ingredient.amount / 100
            calories += data.calories_per_100g * multiplier
            protein += data.protein_per_100g * multiplier
            carbs += data.carbs_per_100g * multiplier
            fats += data.fats_per_100g * multiplier
            fiber += (data.fiber_per_100g or 0) * multiplier
            sugar += (data.sugar_per_100g or 0) * multiplier
            sodium += (data.sodium_per_100g or 0) * multiplier

        return NutritionTotals(
            calories=round_half_up(calories),
            protein=round_2(protein),
            carbs=round_2(carbs),
            fats=round_2(fats),
            fiber=round_2(fiber),
            sugar=round_2(sugar),
            sodium=round_half_up(sodium),
        )
