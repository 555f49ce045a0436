from typing import Any, List

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_nutrition_service
from app.entities.user import User
from app.schemas.nutrition import (
    CalculateTargetsRequest,
    MealLogCreate,
    MealLogResponse,
    MealPlanValidationResponse,
    MealTemplateCreate,
    MealTemplateResponse,
    MealTemplateUpdate,
    NutritionProgramCreate,
    NutritionProgramResponse,
    NutritionTargetsResponse,
)
from app.services.async_auth import get_current_active_user_async
from app.services.async_nutrition import AsyncNutritionService

router = APIRouter()


@router.post("/calculate", response_model=NutritionTargetsResponse)
async def calculate_targets(request: CalculateTargetsRequest) -> Any:
    """
    Calculate BMR, TDEE, calorie and macro targets for a biometric profile.

    Stateless; no account is required.
    """
    return AsyncNutritionService.calculate_targets(request.profile, request.phase)


# Programs

@router.post("/programs", status_code=status.HTTP_201_CREATED, response_model=NutritionProgramResponse)
async def create_nutrition_program(
    program_data: NutritionProgramCreate,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    """
    Create a nutrition program.

    When a biometric profile is supplied, phases without explicit targets
    get them calculated.
    """
    return await nutrition_service.create_nutrition_program(program_data, current_user.id)


@router.get("/programs/owner/{owner_id}", response_model=List[NutritionProgramResponse])
async def get_user_nutrition_programs(
    owner_id: str,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    return await nutrition_service.get_user_nutrition_programs(owner_id)


@router.get("/programs/{program_id}", response_model=NutritionProgramResponse)
async def get_nutrition_program(
    program_id: str,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    return await nutrition_service.get_nutrition_program(program_id)


@router.get("/programs/{program_id}/phases/{phase_number}/validate", response_model=MealPlanValidationResponse)
async def validate_meal_plan(
    program_id: str,
    phase_number: int,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    """Compare the planned calories of a phase's templates with its target."""
    return await nutrition_service.validate_meal_plan(program_id, phase_number)


# Meal templates

@router.post("/meal-templates", status_code=status.HTTP_201_CREATED, response_model=MealTemplateResponse)
async def create_meal_template(
    template_data: MealTemplateCreate,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    return await nutrition_service.create_meal_template(template_data, current_user.id)


@router.get("/meal-templates/{template_id}", response_model=MealTemplateResponse)
async def get_meal_template(
    template_id: str,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    return await nutrition_service.get_meal_template(template_id)


@router.put("/meal-templates/{template_id}", response_model=MealTemplateResponse)
async def update_meal_template(
    template_id: str,
    template_data: MealTemplateUpdate,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    """Recalculate nutrition and record a new minor version."""
    return await nutrition_service.update_meal_template(template_id, template_data, current_user.id)


# Meal logs

@router.post("/meal-logs", status_code=status.HTTP_201_CREATED, response_model=MealLogResponse)
async def log_meal(
    log_data: MealLogCreate,
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    return await nutrition_service.log_meal(current_user.id, log_data)


@router.get("/meal-logs/me", response_model=List[MealLogResponse])
async def get_my_meal_logs(
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_active_user_async),
    nutrition_service: AsyncNutritionService = Depends(get_nutrition_service),
) -> Any:
    """Most recent meal logs first."""
    return await nutrition_service.get_user_meal_logs(current_user.id, limit)
