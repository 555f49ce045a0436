from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import ProfileAccess, WorkoutLogStatus
from app.schemas.base import BaseResponseSchema


class ProgramPhaseSchema(BaseModel):
    name: str
    start_week: int = Field(..., ge=1)
    end_week: int = Field(..., ge=1)


class ProgramCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    types: List[str] = Field(default_factory=list)
    num_weeks: int = Field(..., ge=1, le=104)
    has_nutrition_program: bool = False
    phases: List[ProgramPhaseSchema] = Field(default_factory=list)
    access_type: ProfileAccess = ProfileAccess.Public
    admins: List[str] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)
    created_by: str


# Workouts

class ExerciseSetSchema(BaseModel):
    id: Optional[str] = None
    weight: Optional[float] = None
    reps: Optional[int] = None
    completed: bool = False
    image_path: Optional[str] = None
    link: Optional[str] = None


class ExerciseSchema(BaseModel):
    id: Optional[str] = None
    name: str
    group: Optional[str] = None
    image_path: Optional[str] = None
    weight: Optional[str] = None
    target_sets: Optional[int] = None
    target_reps: Optional[int] = None
    notes: Optional[str] = None
    completed: bool = False
    sets: List[ExerciseSetSchema] = Field(default_factory=list)


class WorkoutCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_path: Optional[str] = None
    completed: bool = False
    created_by: Optional[str] = None
    exercises: List[ExerciseSchema] = Field(default_factory=list)


class WorkoutUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_path: Optional[str] = None
    completed: Optional[bool] = None
    exercises: Optional[List[ExerciseSchema]] = None


class WorkoutResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    completed: bool = False
    created_by: Optional[str] = None
    version_id: int = 1
    exercises: List[ExerciseSchema] = Field(default_factory=list)


# Meals

class MacrosSchema(BaseModel):
    protein: float = 0
    carbs: float = 0
    fats: float = 0


class PortionSchema(BaseModel):
    amount: float = Field(..., ge=0)
    unit: str


class MealIngredientSchema(BaseModel):
    name: str
    portion: Optional[PortionSchema] = None


class MealCreate(BaseModel):
    meal_name: str = Field(..., min_length=1)
    created_by: str
    macros: MacrosSchema = Field(default_factory=MacrosSchema)
    ingredients: List[MealIngredientSchema] = Field(default_factory=list)
    instructions: Optional[str] = None


class MealUpdate(BaseModel):
    meal_name: Optional[str] = Field(None, min_length=1)
    macros: Optional[MacrosSchema] = None
    ingredients: Optional[List[MealIngredientSchema]] = None
    instructions: Optional[str] = None


class MealResponse(BaseResponseSchema):
    created_by: str
    meal_name: str
    macros: MacrosSchema
    ingredients: List[MealIngredientSchema] = Field(default_factory=list)
    instructions: Optional[str] = None
    version_id: int = 1


# Notes

class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: Optional[str] = None
    created_by: Optional[str] = None


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None


class NoteResponse(BaseResponseSchema):
    week_id: str
    title: str
    content: Optional[str] = None
    created_by: Optional[str] = None


# Weeks

class WeekUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_path: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class WeekResponse(BaseResponseSchema):
    program_id: str
    week_number: int
    name: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    workouts: List[WorkoutResponse] = Field(default_factory=list)
    meals: List[str] = Field(default_factory=list)


class WeekDetailResponse(WeekResponse):
    """A week with its meals and notes resolved."""

    meal_details: List[MealResponse] = Field(default_factory=list)
    notes: List[NoteResponse] = Field(default_factory=list)


class ProgramResponse(BaseResponseSchema):
    name: str
    types: List[str] = Field(default_factory=list)
    num_weeks: int
    has_nutrition_program: bool = False
    phases: List[ProgramPhaseSchema] = Field(default_factory=list)
    access_type: int
    admins: List[str] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)
    created_by: str
    weeks: List[str] = Field(default_factory=list)


class ProgramWithWeeksResponse(ProgramResponse):
    week_details: List[WeekResponse] = Field(default_factory=list)


# Logs

class SetLogSchema(BaseModel):
    set_number: int = Field(..., ge=1)
    actual_reps: Optional[int] = Field(None, ge=0)
    actual_weight: Optional[float] = Field(None, ge=0)
    actual_duration_sec: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None


class ExerciseLogSchema(BaseModel):
    exercise_id: str
    exercise_name: Optional[str] = None
    target_sets: Optional[int] = None
    target_reps: Optional[int] = None
    target_weight: Optional[float] = None
    sets: List[SetLogSchema] = Field(default_factory=list)
    notes: Optional[str] = None
    order: Optional[int] = None


class BlockLogSchema(BaseModel):
    type: str = Field(..., min_length=1)
    name: Optional[str] = None
    order: Optional[int] = None
    exercises: List[ExerciseLogSchema] = Field(default_factory=list)
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    total_duration_sec: Optional[int] = None


class WorkoutLogCreate(BaseModel):
    user_id: str
    workout_id: str
    status: WorkoutLogStatus = WorkoutLogStatus.in_progress
    block_logs: List[BlockLogSchema] = Field(default_factory=list)
    notes: Optional[str] = None


class WorkoutLogResponse(BaseResponseSchema):
    user_id: str
    week_id: str
    workout_id: str
    workout_version_id: int
    workout_snapshot: Dict[str, Any]
    status: str
    block_logs: List[BlockLogSchema] = Field(default_factory=list)
    notes: Optional[str] = None
    total_volume: float = 0


class ProgramMealLogCreate(BaseModel):
    user_id: str
    meal_id: str
    consumed_at: Optional[datetime] = None
    servings_consumed: float = Field(1, gt=0)
    notes: Optional[str] = None
