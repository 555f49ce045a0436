"""Nutrition program, meal template and meal log schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import (
    ActivityLevel,
    Gender,
    MealType,
    OwnerType,
    PhaseType,
    ProgramDifficulty,
    WeightChangeType,
)
from app.schemas.base import BaseResponseSchema


class BiometricProfileSchema(BaseModel):
    age: int = Field(..., ge=13, le=120)
    gender: Gender
    height_cm: float = Field(..., gt=0)
    weight_kg: float = Field(..., gt=0)
    activity_level: ActivityLevel
    workout_frequency: Optional[int] = Field(None, ge=0, le=14)


class PhaseTargetsSchema(BaseModel):
    phase_type: PhaseType
    target_weight_change: Optional[float] = Field(None, ge=0)
    target_weight_change_type: Optional[WeightChangeType] = None


class CalculateTargetsRequest(BaseModel):
    profile: BiometricProfileSchema
    phase: PhaseTargetsSchema


class NutritionTargetsResponse(BaseModel):
    bmr: int
    tdee: int
    target_calories: int
    target_protein: int
    target_carbs: int
    target_fats: int
    weight_change_per_week: float
    phase_type: str


class NutritionalDataSchema(BaseModel):
    calories_per_100g: float = Field(..., ge=0)
    protein_per_100g: float = Field(..., ge=0)
    carbs_per_100g: float = Field(..., ge=0)
    fats_per_100g: float = Field(..., ge=0)
    fiber_per_100g: Optional[float] = Field(None, ge=0)
    sugar_per_100g: Optional[float] = Field(None, ge=0)
    sodium_per_100g: Optional[float] = Field(None, ge=0)


class TemplateIngredientSchema(BaseModel):
    ingredient_name: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    unit: str = "grams"
    nutritional_data: Optional[NutritionalDataSchema] = None
    notes: Optional[str] = None
    order: Optional[int] = None


class NutritionTotalsSchema(BaseModel):
    calories: int = 0
    protein: float = 0
    carbs: float = 0
    fats: float = 0
    fiber: float = 0
    sugar: float = 0
    sodium: int = 0


class VersionEntrySchema(BaseModel):
    version: str
    changed_at: datetime
    changed_by: str
    changes: List[str] = Field(default_factory=list)
    change_reason: Optional[str] = None


# Phases and programs

class NutritionPhaseSchema(BaseModel):
    phase_number: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration_weeks: int = Field(..., ge=1)
    phase_type: PhaseType
    target_calories_per_day: Optional[int] = Field(None, ge=0)
    target_weight_change: Optional[float] = Field(None, ge=0)
    target_weight_change_type: Optional[WeightChangeType] = None
    target_protein_grams: Optional[int] = Field(None, ge=0)
    target_carbs_grams: Optional[int] = Field(None, ge=0)
    target_fats_grams: Optional[int] = Field(None, ge=0)
    target_fiber_grams: Optional[int] = Field(None, ge=0)
    target_sugar_grams: Optional[int] = Field(None, ge=0)
    target_sodium_mg: Optional[int] = Field(None, ge=0)
    meal_templates: List[str] = Field(default_factory=list)
    start_week: Optional[int] = Field(None, ge=1)
    end_week: Optional[int] = Field(None, ge=1)
    is_active: bool = False


class NutritionProgramCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[ProgramDifficulty] = None
    total_duration_weeks: int = Field(..., ge=1)
    has_phases: bool = False
    phases: List[NutritionPhaseSchema] = Field(default_factory=list)
    owner_type: OwnerType = OwnerType.user
    owner_id: Optional[str] = None
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)
    estimated_calories_per_day: Optional[int] = Field(None, ge=0)
    # When present, fills in targets for phases that do not state them
    profile: Optional[BiometricProfileSchema] = None


class NutritionProgramResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    total_duration_weeks: int
    has_phases: bool
    phases: List[NutritionPhaseSchema] = Field(default_factory=list)
    owner_type: str
    owner_id: str
    created_by: Optional[str] = None
    is_public: bool
    is_active: bool
    version: str
    version_history: List[VersionEntrySchema] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    estimated_calories_per_day: Optional[int] = None


# Meal templates

class MealTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    meal_type: MealType
    ingredients: List[TemplateIngredientSchema] = Field(..., min_length=1)
    instructions: Optional[str] = None
    servings: int = Field(1, ge=1)
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)


class MealTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    meal_type: Optional[MealType] = None
    ingredients: Optional[List[TemplateIngredientSchema]] = None
    instructions: Optional[str] = None
    servings: Optional[int] = Field(None, ge=1)
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    change_reason: Optional[str] = None


class MealTemplateResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    meal_type: str
    ingredients: List[TemplateIngredientSchema] = Field(default_factory=list)
    instructions: Optional[str] = None
    servings: int
    totals: NutritionTotalsSchema
    per_serving: NutritionTotalsSchema
    created_by: Optional[str] = None
    is_public: bool
    version: str
    version_history: List[VersionEntrySchema] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


# Meal logs

class MealLogCreate(BaseModel):
    meal_template_id: Optional[str] = None
    nutrition_program_id: Optional[str] = None
    phase_number: Optional[int] = Field(None, ge=1)
    meal_name: Optional[str] = None
    meal_type: Optional[MealType] = None
    consumed_at: Optional[datetime] = None
    servings_consumed: float = Field(1, gt=0)
    # Defaults to the template's ingredients scaled by servings
    ingredients: Optional[List[TemplateIngredientSchema]] = None
    notes: Optional[str] = None
    was_completed: bool = True


class MealLogResponse(BaseResponseSchema):
    user_id: str
    meal_name: str
    meal_type: Optional[str] = None
    consumed_at: datetime
    meal_id: Optional[str] = None
    meal_version_id: Optional[int] = None
    meal_template_id: Optional[str] = None
    nutrition_program_id: Optional[str] = None
    phase_number: Optional[int] = None
    template_version: Optional[str] = None
    template_snapshot: Optional[Dict[str, Any]] = None
    servings_consumed: float
    ingredients: List[TemplateIngredientSchema] = Field(default_factory=list)
    actual: NutritionTotalsSchema
    planned: Optional[NutritionTotalsSchema] = None
    variance: Optional[Dict[str, float]] = None
    notes: Optional[str] = None
    was_completed: bool = True


class MealPlanValidationResponse(BaseModel):
    is_valid: bool
    planned_calories: int
    target_calories: int
    variance: int
    message: str
