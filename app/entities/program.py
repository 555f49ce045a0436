"""Training program entities.

A program owns weeks (own table); a week embeds its workouts, each workout
embeds exercises and each exercise embeds sets. Meals and notes hang off a
week by id. Workout logs snapshot the workout version they were recorded
against so later edits to the workout do not rewrite history.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from app.core.enums import ProfileAccess, WorkoutLogStatus
from app.core.errors import FieldError
from app.entities.validation import check_choice, check_min, collect, require


@dataclass(frozen=True)
class ProgramPhase:
    name: str
    start_week: int
    end_week: int


@dataclass(frozen=True)
class Program:
    id: int
    name: str
    num_weeks: int
    created_by: int
    access_type: int = ProfileAccess.Public.value
    types: List[str] = field(default_factory=list)
    has_nutrition_program: bool = False
    phases: List[ProgramPhase] = field(default_factory=list)
    admins: List[int] = field(default_factory=list)
    members: List[int] = field(default_factory=list)
    weeks: List[int] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ExerciseSet:
    id: str
    weight: Optional[float] = None
    reps: Optional[int] = None
    completed: bool = False
    image_path: Optional[str] = None
    link: Optional[str] = None


@dataclass(frozen=True)
class Exercise:
    id: str
    name: str
    group: Optional[str] = None
    image_path: Optional[str] = None
    weight: Optional[str] = None
    target_sets: Optional[int] = None
    target_reps: Optional[int] = None
    notes: Optional[str] = None
    completed: bool = False
    sets: List[ExerciseSet] = field(default_factory=list)


@dataclass(frozen=True)
class Workout:
    id: str
    title: str
    created_by: Optional[int] = None
    description: Optional[str] = None
    image_path: Optional[str] = None
    completed: bool = False
    version_id: int = 1
    exercises: List[Exercise] = field(default_factory=list)


@dataclass(frozen=True)
class Week:
    id: int
    program_id: int
    week_number: int
    name: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    workouts: List[Workout] = field(default_factory=list)
    meals: List[int] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_workout(self, workout_id: str) -> Optional[Workout]:
        return next((w for w in self.workouts if w.id == workout_id), None)


@dataclass(frozen=True)
class Macros:
    protein: float = 0
    carbs: float = 0
    fats: float = 0


@dataclass(frozen=True)
class Portion:
    amount: float
    unit: str


@dataclass(frozen=True)
class MealIngredient:
    name: str
    portion: Optional[Portion] = None


@dataclass(frozen=True)
class Meal:
    id: int
    created_by: int
    meal_name: str
    macros: Macros = field(default_factory=Macros)
    ingredients: List[MealIngredient] = field(default_factory=list)
    instructions: Optional[str] = None
    version_id: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Note:
    id: int
    week_id: int
    title: str
    content: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SetLog:
    set_number: int
    actual_reps: Optional[int] = None
    actual_weight: Optional[float] = None
    actual_duration_sec: Optional[int] = None
    notes: Optional[str] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class ExerciseLog:
    exercise_id: str
    exercise_name: Optional[str] = None
    target_sets: Optional[int] = None
    target_reps: Optional[int] = None
    target_weight: Optional[float] = None
    sets: List[SetLog] = field(default_factory=list)
    notes: Optional[str] = None
    order: Optional[int] = None

    @property
    def total_volume(self) -> float:
        return sum(
            (s.actual_reps or 0) * (s.actual_weight or 0)
            for s in self.sets
            if s.is_completed
        )


@dataclass(frozen=True)
class BlockLog:
    type: str
    exercises: List[ExerciseLog] = field(default_factory=list)
    name: Optional[str] = None
    order: Optional[int] = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    total_duration_sec: Optional[int] = None


@dataclass(frozen=True)
class WorkoutLog:
    id: int
    user_id: int
    week_id: int
    workout_id: str
    workout_version_id: int
    workout_snapshot: Dict[str, Any]
    status: str = WorkoutLogStatus.in_progress.value
    block_logs: List[BlockLog] = field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_volume(self) -> float:
        return sum(e.total_volume for b in self.block_logs for e in b.exercises)


def validate_program(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["name", "num_weeks", "created_by", "access_type"]),
        check_min(document, "num_weeks", 1),
        check_choice(document, "access_type", [a.value for a in ProfileAccess]),
    )
    for index, phase in enumerate(document.get("phases") or []):
        if phase.get("start_week") is None or phase.get("end_week") is None:
            errors.append(FieldError(field=f"phases.{index}", message="Phase weeks are required"))
        elif phase["end_week"] < phase["start_week"]:
            errors.append(
                FieldError(field=f"phases.{index}.end_week", message="Phase cannot end before it starts")
            )
    return errors


def validate_week(document: Mapping[str, Any]) -> List[FieldError]:
    errors = collect(
        require(document, ["program_id", "name", "week_number"]),
        check_min(document, "week_number", 1),
    )
    for index, workout in enumerate(document.get("workouts") or []):
        if not workout.get("title"):
            errors.append(FieldError(field=f"workouts.{index}.title", message="Path `title` is required."))
    return errors


def validate_meal(document: Mapping[str, Any]) -> List[FieldError]:
    return require(document, ["created_by", "meal_name"])


def validate_note(document: Mapping[str, Any]) -> List[FieldError]:
    return require(document, ["week_id", "title"])


def validate_workout_log(document: Mapping[str, Any]) -> List[FieldError]:
    return collect(
        require(document, ["user_id", "week_id", "workout_id", "workout_version_id"]),
        check_choice(document, "status", [s.value for s in WorkoutLogStatus]),
    )


@dataclass(frozen=True)
class ProgramWeeks:
    """A program with its weeks resolved, sorted by week number."""

    program: Program
    weeks: List[Week] = field(default_factory=list)


@dataclass(frozen=True)
class WeekDetails:
    week: Week
    meals: List[Meal] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
