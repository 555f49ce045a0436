"""
Training programs, their weeks, and everything recorded against a week.

Workouts are embedded in the week row and carry service-assigned string ids
for the workout, its exercises and their sets. Meals and notes live in their
own tables; a week lists its meal ids. Logs are append-only snapshots taken
against a specific ``version_id``.
"""

import uuid
from dataclasses import asdict, replace
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ErrorMessage
from app.core.errors import APIError
from app.db.transaction import TransactionCoordinator
from app.entities.nutrition import NutritionTotals
from app.entities.program import Exercise, ExerciseSet, Meal, Program, Week, Workout
from app.repositories.base import aware
from app.repositories.nutrition import MealLogRepository
from app.repositories.program import (
    MealRepository,
    NoteRepository,
    ProgramRepository,
    WeekRepository,
    WorkoutLogRepository,
    workout_response,
)
from app.schemas.base import MessageResponse
from app.schemas.nutrition import MealLogResponse
from app.schemas.program import (
    BlockLogSchema,
    ExerciseSchema,
    MealCreate,
    MealResponse,
    MealUpdate,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    ProgramCreate,
    ProgramMealLogCreate,
    ProgramResponse,
    ProgramWithWeeksResponse,
    WeekDetailResponse,
    WeekResponse,
    WeekUpdate,
    WorkoutCreate,
    WorkoutLogCreate,
    WorkoutLogResponse,
    WorkoutResponse,
    WorkoutUpdate,
)
from app.services.async_error_handler import handle_service_errors
from app.services.nutrition_calculator import round_2, round_half_up
from app.utils.logger import AppLogger

DAYS_PER_WEEK = 7


def new_id() -> str:
    return uuid.uuid4().hex


def build_exercises(exercises: List[ExerciseSchema]) -> List[Exercise]:
    """Convert request exercises, assigning ids to any exercise or set without one."""
    return [
        Exercise(
            **exercise.model_dump(exclude={"id", "sets"}),
            id=exercise.id or new_id(),
            sets=[
                ExerciseSet(**s.model_dump(exclude={"id"}), id=s.id or new_id())
                for s in exercise.sets
            ],
        )
        for exercise in exercises
    ]


def week_dates(program_start: datetime, week_number: int):
    start = program_start + timedelta(days=DAYS_PER_WEEK * (week_number - 1))
    return start, start + timedelta(days=DAYS_PER_WEEK - 1)


class AsyncProgramService:

    def __init__(self, db: AsyncSession, transactions: TransactionCoordinator, logger: AppLogger):
        self.db = db
        self.transactions = transactions
        self.logger = logger.child("program")
        self.weeks = WeekRepository()
        self.programs = ProgramRepository(self.weeks)
        self.meals = MealRepository()
        self.notes = NoteRepository()
        self.workout_logs = WorkoutLogRepository()
        self.meal_logs = MealLogRepository()

    # Programs

    @handle_service_errors("create_program", "Error creating program")
    async def create_program(self, request: ProgramCreate) -> ProgramResponse:
        document = self.programs.to_document(request)

        async def create(session: AsyncSession) -> Program:
            program = await self.programs.create(session, document)
            week_ids = []
            for week_number in range(1, program.num_weeks + 1):
                start, end = week_dates(program.created_at, week_number)
                week = await self.weeks.create(
                    session, self.weeks.to_document(program.id, week_number, start, end)
                )
                week_ids.append(week.id)
            return await self.programs.update_by_id(session, program.id, {"weeks": week_ids})

        program = await self.transactions.execute("create_program", create, failure_message="Error creating program")
        self.logger.success("Program created", program_id=program.id, num_weeks=program.num_weeks)
        return self.programs.to_response(program)

    @handle_service_errors("get_user_programs", "Error fetching user programs")
    async def get_user_programs(self, user_id) -> List[ProgramWithWeeksResponse]:
        user_id = self.programs.to_object_id(user_id, "user_id")
        trees = await self.programs.get_user_programs_with_weeks(self.db, user_id)
        return [self.programs.to_tree_response(t) for t in trees]

    # Weeks

    @handle_service_errors("get_week", "Error fetching week")
    async def get_week(self, week_id) -> WeekDetailResponse:
        details = await self.weeks.find_week(self.db, self.weeks.to_object_id(week_id, "week_id"))
        if details is None:
            raise APIError.not_found(ErrorMessage.WEEK_NOT_FOUND)
        return self.weeks.to_detail_response(details)

    @handle_service_errors("update_week", "Error updating week")
    async def update_week(self, week_id, request: WeekUpdate) -> WeekResponse:
        values = request.model_dump(exclude_unset=True)
        for key in ("start_date", "end_date"):
            if values.get(key) is not None:
                values[key] = aware(values[key])
        if values.get("name") is not None:
            values["name"] = values["name"].strip()

        week = await self.weeks.update_by_id(self.db, self.weeks.to_object_id(week_id, "week_id"), values)
        if week is None:
            raise APIError.not_found(ErrorMessage.WEEK_NOT_FOUND)
        await self.db.commit()
        return self.weeks.to_response(week)

    @handle_service_errors("delete_week", "Error deleting week")
    async def delete_week(self, program_id, week_id) -> MessageResponse:
        program_id = self.programs.to_object_id(program_id, "program_id")
        week_id = self.weeks.to_object_id(week_id, "week_id")
        if await self.programs.find_by_id(self.db, program_id) is None:
            raise APIError.not_found(ErrorMessage.PROGRAM_NOT_FOUND)

        async def delete(session: AsyncSession) -> bool:
            week = await self.weeks.find_by_id(session, week_id, for_update=True)
            if week is None or week.program_id != program_id:
                raise APIError.not_found(ErrorMessage.WEEK_NOT_FOUND)
            return await self.weeks.delete_by_id(session, week_id)

        def detach(session: AsyncSession, _):
            return [lambda: self.programs.pull(session, program_id, "weeks", [week_id])]

        await self.transactions.execute("delete_week", delete, detach, "Error deleting week")
        return MessageResponse(message="Week deleted")

    # Workouts

    @handle_service_errors("get_week_workouts", "Error fetching workouts")
    async def get_week_workouts(self, week_id) -> List[WorkoutResponse]:
        week = await self._get_week(week_id)
        return [workout_response(w) for w in week.workouts]

    @handle_service_errors("create_workout", "Error creating workout")
    async def create_workout(self, week_id, request: WorkoutCreate) -> WorkoutResponse:
        week = await self._get_week(week_id, for_update=True)
        workout = Workout(
            id=new_id(),
            title=request.title.strip(),
            created_by=self.weeks.to_object_id(request.created_by, "created_by") if request.created_by else None,
            description=request.description,
            image_path=request.image_path,
            completed=request.completed,
            version_id=1,
            exercises=build_exercises(request.exercises),
        )
        await self.weeks.replace_workouts(self.db, week.id, week.workouts + [workout])
        await self.db.commit()
        return workout_response(workout)

    @handle_service_errors("update_workout", "Error updating workout")
    async def update_workout(self, week_id, workout_id: str, request: WorkoutUpdate) -> WorkoutResponse:
        week = await self._get_week(week_id, for_update=True)
        current = week.find_workout(workout_id)
        if current is None:
            raise APIError.not_found(ErrorMessage.WORKOUT_NOT_FOUND)

        changes = request.model_dump(exclude_unset=True, exclude={"exercises"})
        if changes.get("title") is not None:
            changes["title"] = changes["title"].strip()
        if request.exercises is not None:
            changes["exercises"] = build_exercises(request.exercises)
        updated = replace(current, **changes, version_id=current.version_id + 1)

        workouts = [updated if w.id == workout_id else w for w in week.workouts]
        await self.weeks.replace_workouts(self.db, week.id, workouts)
        await self.db.commit()
        return workout_response(updated)

    @handle_service_errors("delete_workout", "Error deleting workout")
    async def delete_workout(self, week_id, workout_id: str) -> MessageResponse:
        week = await self._get_week(week_id, for_update=True)
        if week.find_workout(workout_id) is None:
            raise APIError.not_found(ErrorMessage.WORKOUT_NOT_FOUND)

        await self.weeks.replace_workouts(self.db, week.id, [w for w in week.workouts if w.id != workout_id])
        await self.db.commit()
        return MessageResponse(message="Workout deleted")

    # Meals

    @handle_service_errors("get_week_meals", "Error fetching meals")
    async def get_week_meals(self, week_id) -> List[MealResponse]:
        details = await self.weeks.find_week(self.db, self.weeks.to_object_id(week_id, "week_id"))
        if details is None:
            raise APIError.not_found(ErrorMessage.WEEK_NOT_FOUND)
        return [self.meals.to_response(m) for m in details.meals]

    @handle_service_errors("create_meal", "Error creating meal")
    async def create_meal(self, week_id, request: MealCreate) -> MealResponse:
        week = await self._get_week(week_id)
        document = self.meals.to_document(request)

        async def create(session: AsyncSession) -> Meal:
            return await self.meals.create(session, document)

        def attach(session: AsyncSession, meal: Meal):
            return [lambda: self._require_write(self.weeks.add_to_set(session, week.id, "meals", [meal.id]))]

        meal = await self.transactions.execute("create_meal", create, attach, "Error creating meal")
        return self.meals.to_response(meal)

    @handle_service_errors("update_meal", "Error updating meal")
    async def update_meal(self, week_id, meal_id, request: MealUpdate) -> MealResponse:
        week = await self._get_week(week_id)
        meal = await self._get_meal(week, meal_id)

        values = request.model_dump(exclude_unset=True)
        if values.get("meal_name") is not None:
            values["meal_name"] = values["meal_name"].strip()
        values["version_id"] = meal.version_id + 1

        updated = await self.meals.update_by_id(self.db, meal.id, values)
        await self.db.commit()
        return self.meals.to_response(updated)

    @handle_service_errors("delete_meal", "Error deleting meal")
    async def delete_meal(self, week_id, meal_id) -> MessageResponse:
        week = await self._get_week(week_id)
        meal = await self._get_meal(week, meal_id)

        async def delete(session: AsyncSession) -> bool:
            return await self.meals.delete_by_id(session, meal.id)

        def detach(session: AsyncSession, _):
            return [lambda: self.weeks.pull(session, week.id, "meals", [meal.id])]

        await self.transactions.execute("delete_meal", delete, detach, "Error deleting meal")
        return MessageResponse(message="Meal deleted")

    # Logs

    @handle_service_errors("create_workout_log", "Error creating workout log")
    async def create_workout_log(self, week_id, request: WorkoutLogCreate) -> WorkoutLogResponse:
        week = await self._get_week(week_id)
        workout = week.find_workout(request.workout_id)
        if workout is None:
            raise APIError.not_found(ErrorMessage.WORKOUT_NOT_FOUND)

        log = await self.workout_logs.create(self.db, self.workout_logs.to_document(week.id, workout, request))
        await self.db.commit()
        self.logger.info(
            "Workout logged", log_id=log.id, workout_id=workout.id, workout_version_id=workout.version_id
        )
        return self.workout_logs.to_response(log)

    @handle_service_errors("add_block_log", "Error adding block log")
    async def add_block_log(self, week_id, workout_log_id, block_log: BlockLogSchema) -> WorkoutLogResponse:
        week = await self._get_week(week_id)
        log_id = self.workout_logs.to_object_id(workout_log_id, "workout_log_id")
        log = await self.workout_logs.find_by_id(self.db, log_id)
        if log is None or log.week_id != week.id:
            raise APIError.not_found(ErrorMessage.WORKOUT_LOG_NOT_FOUND)

        updated = await self.workout_logs.append_block_log(self.db, log_id, block_log)
        await self.db.commit()
        return self.workout_logs.to_response(updated)

    @handle_service_errors("add_meal_log", "Error logging meal")
    async def add_meal_log(self, request: ProgramMealLogCreate) -> MealLogResponse:
        meal = await self.meals.find_by_id(self.db, self.meals.to_object_id(request.meal_id, "meal_id"))
        if meal is None:
            raise APIError.not_found(ErrorMessage.MEAL_NOT_FOUND)

        servings = request.servings_consumed
        macros = meal.macros
        actual = NutritionTotals(
            calories=round_half_up((macros.protein * 4 + macros.carbs * 4 + macros.fats * 9) * servings),
            protein=round_2(macros.protein * servings),
            carbs=round_2(macros.carbs * servings),
            fats=round_2(macros.fats * servings),
        )
        log = await self.meal_logs.create(
            self.db,
            {
                "user_id": self.meals.to_object_id(request.user_id, "user_id"),
                "meal_id": meal.id,
                "meal_version_id": meal.version_id,
                "meal_name": meal.meal_name,
                "consumed_at": aware(request.consumed_at) or datetime.now(timezone.utc),
                "template_snapshot": self.meals.snapshot(meal),
                "servings_consumed": servings,
                "ingredients": [],
                "actual": asdict(actual),
                "notes": request.notes,
            },
        )
        await self.db.commit()
        return self.meal_logs.to_response(log)

    # Notes

    @handle_service_errors("create_note", "Error creating note")
    async def create_note(self, week_id, request: NoteCreate) -> NoteResponse:
        week = await self._get_week(week_id)
        note = await self.notes.create(self.db, self.notes.to_document(week.id, request))
        await self.db.commit()
        return self.notes.to_response(note)

    @handle_service_errors("update_note", "Error updating note")
    async def update_note(self, week_id, note_id, request: NoteUpdate) -> NoteResponse:
        week = await self._get_week(week_id)
        note_id = self.notes.to_object_id(note_id, "note_id")
        note = await self.notes.find_one(self.db, id=note_id, week_id=week.id)
        if note is None:
            raise APIError.not_found(ErrorMessage.NOTE_NOT_FOUND)

        values = request.model_dump(exclude_unset=True)
        if values.get("title") is not None:
            values["title"] = values["title"].strip()
        updated = await self.notes.update_by_id(self.db, note.id, values)
        await self.db.commit()
        return self.notes.to_response(updated)

    @handle_service_errors("delete_note", "Error deleting note")
    async def delete_note(self, week_id, note_id) -> MessageResponse:
        week = await self._get_week(week_id)
        note_id = self.notes.to_object_id(note_id, "note_id")
        note = await self.notes.find_one(self.db, id=note_id, week_id=week.id)
        if note is None:
            raise APIError.not_found(ErrorMessage.NOTE_NOT_FOUND)

        await self.notes.delete_by_id(self.db, note.id)
        await self.db.commit()
        return MessageResponse(message="Note deleted")

    # Internals

    async def _get_week(self, week_id, for_update: bool = False) -> Week:
        week = await self.weeks.find_by_id(
            self.db, self.weeks.to_object_id(week_id, "week_id"), for_update=for_update
        )
        if week is None:
            raise APIError.not_found(ErrorMessage.WEEK_NOT_FOUND)
        return week

    async def _get_meal(self, week: Week, meal_id) -> Meal:
        meal_id = self.meals.to_object_id(meal_id, "meal_id")
        meal = await self.meals.find_by_id(self.db, meal_id) if meal_id in week.meals else None
        if meal is None:
            raise APIError.not_found(ErrorMessage.MEAL_NOT_FOUND)
        return meal

    @staticmethod
    async def _require_write(write):
        result = await write
        if result is None:
            raise APIError.not_found(ErrorMessage.WEEK_NOT_FOUND)
        return result
