from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from app.core.enums import MealType, OwnerType, PhaseType
from app.core.errors import FieldError
from app.entities.validation import check_choice, check_min, collect, require


@dataclass(frozen=True)
class NutritionalData:
    """Per-100 g values for an ingredient."""

    calories_per_100g: float
    protein_per_100g: float
    carbs_per_100g: float
    fats_per_100g: float
    fiber_per_100g: Optional[float] = None
    sugar_per_100g: Optional[float] = None
    sodium_per_100g: Optional[float] = None


@dataclass(frozen=True)
class TemplateIngredient:
    ingredient_name: str
    amount: float
    unit: str = "grams"
    nutritional_data: Optional[NutritionalData] = None
    notes: Optional[str] = None
    order: Optional[int] = None


@dataclass(frozen=True)
class NutritionTotals:
    calories: int = 0
    protein: float = 0
    carbs: float = 0
    fats: float = 0
    fiber: float = 0
    sugar: float = 0
    sodium: int = 0


@dataclass(frozen=True)
class VersionEntry:
    version: str
    changed_at: datetime
    changed_by: int
    changes: List[str] = field(default_factory=list)
    change_reason: Optional[str] = None


@dataclass(frozen=True)
class MealTemplate:
    id: int
    name: str
    meal_type: str
    servings: int
    ingredients: List[TemplateIngredient] = field(default_factory=list)
    description: Optional[str] = None
    instructions: Optional[str] = None
    totals: NutritionTotals = field(default_factory=NutritionTotals)
    per_serving: NutritionTotals = field(default_factory=NutritionTotals)
    created_by: Optional[int] = None
    is_public: bool = False
    version: str = "1.0"
    version_history: List[VersionEntry] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NutritionPhase:
    phase_number: int
    name: str
    duration_weeks: int
    phase_type: str
    description: Optional[str] = None
    target_calories_per_day: Optional[int] = None
    target_weight_change: Optional[float] = None
    target_weight_change_type: Optional[str] = None
    target_protein_grams: Optional[int] = None
    target_carbs_grams: Optional[int] = None
    target_fats_grams: Optional[int] = None
    target_fiber_grams: Optional[int] = None
    target_sugar_grams: Optional[int] = None
    target_sodium_mg: Optional[int] = None
    meal_templates: List[int] = field(default_factory=list)
    start_week: Optional[int] = None
    end_week: Optional[int] = None
    is_active: bool = False


@dataclass(frozen=True)
class NutritionProgram:
    id: int
    name: str
    total_duration_weeks: int
    owner_type: str
    owner_id: int
    has_phases: bool = False
    phases: List[NutritionPhase] = field(default_factory=list)
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    created_by: Optional[int] = None
    is_public: bool = False
    is_active: bool = True
    version: str = "1.0"
    version_history: List[VersionEntry] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    estimated_calories_per_day: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_phase(self, phase_number: int) -> Optional[NutritionPhase]:
        return next((p for p in self.phases if p.phase_number == phase_number), None)


@dataclass(frozen=True)
class MealLog:
    """A consumed meal. Append-only; snapshots the template or meal it came from."""

    id: int
    user_id: int
    meal_name: str
    consumed_at: datetime
    meal_type: Optional[str] = None
    meal_id: Optional[int] = None
    meal_version_id: Optional[int] = None
    meal_template_id: Optional[int] = None
    nutrition_program_id: Optional[int] = None
    phase_number: Optional[int] = None
    template_version: Optional[str] = None
    template_snapshot: Optional[Dict[str, Any]] = None
    servings_consumed: float = 1
    ingredients: List[TemplateIngredient] = field(default_factory=list)
    actual: NutritionTotals = field(default_factory=NutritionTotals)
    planned: Optional[NutritionTotals] = None
    variance: Optional[Dict[str, float]] = None
    notes: Optional[str] = None
    was_completed: bool = True
    created_at: Optional[datetime] = None


def validate_meal_template(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["name", "meal_type", "servings"]),
        check_choice(document, "meal_type", [m.value for m in MealType] + ["other"]),
        check_min(document, "servings", 1),
    )
    for index, ingredient in enumerate(document.get("ingredients") or []):
        amount = ingredient.get("amount")
        if amount is None or amount < 0:
            errors.append(
                FieldError(field=f"ingredients.{index}.amount", message="Amount must be zero or more", value=amount)
            )
    return errors


def validate_nutrition_program(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["name", "total_duration_weeks", "owner_type", "owner_id"]),
        check_choice(document, "owner_type", [o.value for o in OwnerType]),
        check_min(document, "total_duration_weeks", 1),
    )
    for index, phase in enumerate(document.get("phases") or []):
        choice = check_choice(phase, "phase_type", [p.value for p in PhaseType])
        if choice is not None:
            errors.append(FieldError(field=f"phases.{index}.phase_type", message=choice.message, value=choice.value))
    return errors


def validate_meal_log(document: Mapping[str, Any]) -> List[FieldError]:
    return collect(
        require(document, ["user_id", "meal_name", "consumed_at"]),
        check_min(document, "servings_consumed", 0),
    )
