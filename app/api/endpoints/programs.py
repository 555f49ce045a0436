from typing import Any, List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_program_service
from app.entities.user import User
from app.schemas.base import MessageResponse
from app.schemas.nutrition import MealLogResponse
from app.schemas.program import (
    BlockLogSchema,
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
from app.services.async_auth import get_current_active_user_async
from app.services.async_program import AsyncProgramService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=ProgramResponse)
async def create_program(
    program_data: ProgramCreate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    """Create a program together with all of its weeks."""
    return await program_service.create_program(program_data)


@router.get("/user/{user_id}", response_model=List[ProgramWithWeeksResponse])
async def get_user_programs(
    user_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.get_user_programs(user_id)


# Weeks

@router.get("/weeks/{week_id}", response_model=WeekDetailResponse)
async def get_week(
    week_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.get_week(week_id)


@router.put("/weeks/{week_id}", response_model=WeekResponse)
async def update_week(
    week_id: str,
    week_data: WeekUpdate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.update_week(week_id, week_data)


@router.delete("/{program_id}/weeks/{week_id}", response_model=MessageResponse)
async def delete_week(
    program_id: str,
    week_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.delete_week(program_id, week_id)


# Workouts

@router.get("/weeks/{week_id}/workouts", response_model=List[WorkoutResponse])
async def get_week_workouts(
    week_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.get_week_workouts(week_id)


@router.post("/weeks/{week_id}/workouts", status_code=status.HTTP_201_CREATED, response_model=WorkoutResponse)
async def create_workout(
    week_id: str,
    workout_data: WorkoutCreate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.create_workout(week_id, workout_data)


@router.put("/weeks/{week_id}/workouts/{workout_id}", response_model=WorkoutResponse)
async def update_workout(
    week_id: str,
    workout_id: str,
    workout_data: WorkoutUpdate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    """Replace the supplied workout fields and bump its version."""
    return await program_service.update_workout(week_id, workout_id, workout_data)


@router.delete("/weeks/{week_id}/workouts/{workout_id}", response_model=MessageResponse)
async def delete_workout(
    week_id: str,
    workout_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.delete_workout(week_id, workout_id)


# Meals

@router.get("/weeks/{week_id}/meals", response_model=List[MealResponse])
async def get_week_meals(
    week_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.get_week_meals(week_id)


@router.post("/weeks/{week_id}/meals", status_code=status.HTTP_201_CREATED, response_model=MealResponse)
async def create_meal(
    week_id: str,
    meal_data: MealCreate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.create_meal(week_id, meal_data)


@router.put("/weeks/{week_id}/meals/{meal_id}", response_model=MealResponse)
async def update_meal(
    week_id: str,
    meal_id: str,
    meal_data: MealUpdate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.update_meal(week_id, meal_id, meal_data)


@router.delete("/weeks/{week_id}/meals/{meal_id}", response_model=MessageResponse)
async def delete_meal(
    week_id: str,
    meal_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.delete_meal(week_id, meal_id)


# Logs

@router.post(
    "/weeks/{week_id}/workout-logs", status_code=status.HTTP_201_CREATED, response_model=WorkoutLogResponse
)
async def create_workout_log(
    week_id: str,
    log_data: WorkoutLogCreate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    """Snapshot the current version of a workout into a new log."""
    return await program_service.create_workout_log(week_id, log_data)


@router.post("/weeks/{week_id}/workout-logs/{workout_log_id}/blocks", response_model=WorkoutLogResponse)
async def add_block_log(
    week_id: str,
    workout_log_id: str,
    block_log: BlockLogSchema,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.add_block_log(week_id, workout_log_id, block_log)


@router.post("/meal-logs", status_code=status.HTTP_201_CREATED, response_model=MealLogResponse)
async def add_meal_log(
    log_data: ProgramMealLogCreate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.add_meal_log(log_data)


# Notes

@router.post("/weeks/{week_id}/notes", status_code=status.HTTP_201_CREATED, response_model=NoteResponse)
async def create_note(
    week_id: str,
    note_data: NoteCreate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.create_note(week_id, note_data)


@router.put("/weeks/{week_id}/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    week_id: str,
    note_id: str,
    note_data: NoteUpdate,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.update_note(week_id, note_id, note_data)


@router.delete("/weeks/{week_id}/notes/{note_id}", response_model=MessageResponse)
async def delete_note(
    week_id: str,
    note_id: str,
    current_user: User = Depends(get_current_active_user_async),
    program_service: AsyncProgramService = Depends(get_program_service),
) -> Any:
    return await program_service.delete_note(week_id, note_id)
