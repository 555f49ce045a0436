"""
Nutrition programs, meal templates and meal logging.

Arithmetic lives in ``CalorieCalculator``; this service validates phase
layout, fills in missing phase targets, versions templates and records what
was eaten against what was planned.
"""

from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ErrorMessage, OwnerType, PhaseType
from app.core.errors import APIError
from app.entities.nutrition import (
    MealTemplate,
    NutritionalData,
    NutritionPhase,
    NutritionProgram,
    NutritionTotals,
    TemplateIngredient,
    VersionEntry,
)
from app.repositories.base import aware
from app.repositories.nutrition import (
    MealLogRepository,
    MealTemplateRepository,
    NutritionProgramRepository,
    dump_history_entry,
    dump_ingredient,
)
from app.schemas.nutrition import (
    BiometricProfileSchema,
    MealLogCreate,
    MealLogResponse,
    MealPlanValidationResponse,
    MealTemplateCreate,
    MealTemplateResponse,
    MealTemplateUpdate,
    NutritionPhaseSchema,
    NutritionProgramCreate,
    NutritionProgramResponse,
    NutritionTargetsResponse,
    PhaseTargetsSchema,
    TemplateIngredientSchema,
)
from app.services.async_error_handler import handle_service_errors
from app.services.nutrition_calculator import (
    BiometricProfile,
    CalorieCalculator,
    PhaseTargets,
    round_2,
    round_half_up,
)
from app.utils.logger import AppLogger

MEAL_PLAN_TOLERANCE = 50
VARIANCE_FIELDS = ("calories", "protein", "carbs", "fats")


def bump_minor(version: str) -> str:
    """``1.0`` -> ``1.1``; a patch component, when present, resets to zero."""
    parts = [int(p) for p in version.split(".")]
    while len(parts) < 2:
        parts.append(0)
    parts[1] += 1
    parts[2:] = [0] * len(parts[2:])
    return ".".join(str(p) for p in parts)


def to_ingredients(items: List[TemplateIngredientSchema]) -> List[TemplateIngredient]:
    return [
        TemplateIngredient(
            **item.model_dump(exclude={"nutritional_data"}),
            nutritional_data=(
                NutritionalData(**item.nutritional_data.model_dump()) if item.nutritional_data else None
            ),
        )
        for item in items
    ]


def scale_totals(totals: NutritionTotals, factor: float) -> NutritionTotals:
    return NutritionTotals(
        calories=round_half_up(totals.calories * factor),
        protein=round_2(totals.protein * factor),
        carbs=round_2(totals.carbs * factor),
        fats=round_2(totals.fats * factor),
        fiber=round_2(totals.fiber * factor),
        sugar=round_2(totals.sugar * factor),
        sodium=round_half_up(totals.sodium * factor),
    )


def per_serving(totals: NutritionTotals, servings: int) -> NutritionTotals:
    return scale_totals(totals, 1 / servings)


def to_profile(profile: BiometricProfileSchema) -> BiometricProfile:
    return BiometricProfile(**profile.model_dump())


def to_phase_targets(phase) -> PhaseTargets:
    return PhaseTargets(
        phase_type=phase.phase_type,
        target_weight_change=phase.target_weight_change,
        target_weight_change_type=phase.target_weight_change_type,
    )


class AsyncNutritionService:

    def __init__(self, db: AsyncSession, logger: AppLogger):
        self.db = db
        self.logger = logger.child("nutrition")
        self.programs = NutritionProgramRepository()
        self.templates = MealTemplateRepository()
        self.meal_logs = MealLogRepository()

    @staticmethod
    def calculate_targets(profile: BiometricProfileSchema, phase: PhaseTargetsSchema) -> NutritionTargetsResponse:
        targets = CalorieCalculator.calculate_nutrition_targets(to_profile(profile), to_phase_targets(phase))
        return NutritionTargetsResponse(**asdict(targets))

    # Programs

    @handle_service_errors("create_nutrition_program", "Error creating nutrition program")
    async def create_nutrition_program(self, request: NutritionProgramCreate, creator_id) -> NutritionProgramResponse:
        creator_id = self.programs.to_object_id(creator_id, "creator_id")
        owner_id = self.programs.to_object_id(request.owner_id, "owner_id") if request.owner_id else None
        if owner_id is None:
            if request.owner_type != OwnerType.user:
                raise APIError.bad_request("owner_id is required for group programs")
            owner_id = creator_id

        phases = self._build_phases(request)
        program = await self.programs.create(
            self.db, self.programs.to_document(request, phases, owner_id, creator_id)
        )
        await self.db.commit()
        self.logger.success("Nutrition program created", program_id=program.id, phases=len(phases))
        return self.programs.to_response(program)

    @handle_service_errors("get_nutrition_program", "Error fetching nutrition program")
    async def get_nutrition_program(self, program_id) -> NutritionProgramResponse:
        program = await self._get_program(program_id)
        return self.programs.to_response(program)

    @handle_service_errors("get_user_nutrition_programs", "Error fetching nutrition programs")
    async def get_user_nutrition_programs(self, owner_id) -> List[NutritionProgramResponse]:
        programs = await self.programs.find_by_owner(self.db, self.programs.to_object_id(owner_id, "owner_id"))
        return [self.programs.to_response(p) for p in programs]

    @handle_service_errors("validate_meal_plan", "Error validating meal plan")
    async def validate_meal_plan(self, program_id, phase_number: int) -> MealPlanValidationResponse:
        program = await self._get_program(program_id)
        phase = program.find_phase(phase_number)
        if phase is None:
            raise APIError.not_found(ErrorMessage.PHASE_NOT_FOUND)
        if phase.target_calories_per_day is None:
            raise APIError.bad_request("Phase has no calorie target")

        templates = await self.templates.find_by_ids(self.db, phase.meal_templates)
        planned = sum(t.per_serving.calories for t in templates)
        is_valid, variance, message = CalorieCalculator.validate_meal_plan_calories(
            planned, phase.target_calories_per_day, MEAL_PLAN_TOLERANCE
        )
        return MealPlanValidationResponse(
            is_valid=is_valid,
            planned_calories=planned,
            target_calories=phase.target_calories_per_day,
            variance=round_half_up(variance),
            message=message or "Meal plan is within target",
        )

    # Meal templates

    @handle_service_errors("create_meal_template", "Error creating meal template")
    async def create_meal_template(self, request: MealTemplateCreate, creator_id) -> MealTemplateResponse:
        ingredients = to_ingredients(request.ingredients)
        totals = CalorieCalculator.calculate_meal_nutrition(ingredients)
        template = await self.templates.create(
            self.db,
            self.templates.to_document(
                request,
                ingredients,
                totals,
                per_serving(totals, request.servings),
                self.templates.to_object_id(creator_id, "creator_id"),
            ),
        )
        await self.db.commit()
        return self.templates.to_response(template)

    @handle_service_errors("get_meal_template", "Error fetching meal template")
    async def get_meal_template(self, template_id) -> MealTemplateResponse:
        template = await self._get_template(template_id)
        return self.templates.to_response(template)

    @handle_service_errors("update_meal_template", "Error updating meal template")
    async def update_meal_template(self, template_id, request: MealTemplateUpdate, editor_id) -> MealTemplateResponse:
        template = await self._get_template(template_id)
        changes = request.model_dump(exclude_unset=True, exclude={"change_reason", "ingredients"})
        if changes.get("name") is not None:
            changes["name"] = changes["name"].strip()
        if changes.get("meal_type") is not None:
            changes["meal_type"] = changes["meal_type"].value

        values = dict(changes)
        ingredients = template.ingredients
        if request.ingredients is not None:
            ingredients = to_ingredients(request.ingredients)
            values["ingredients"] = [dump_ingredient(i) for i in ingredients]
        servings = values.get("servings") or template.servings
        totals = CalorieCalculator.calculate_meal_nutrition(ingredients)
        values["totals"] = asdict(totals)
        values["per_serving"] = asdict(per_serving(totals, servings))

        version = bump_minor(template.version)
        entry = VersionEntry(
            version=version,
            changed_at=datetime.now(timezone.utc),
            changed_by=self.templates.to_object_id(editor_id, "editor_id"),
            changes=sorted(set(changes) | ({"ingredients"} if request.ingredients is not None else set())),
            change_reason=request.change_reason,
        )
        values["version"] = version
        values["version_history"] = [dump_history_entry(e) for e in template.version_history + [entry]]

        updated = await self.templates.update_by_id(self.db, template.id, values)
        await self.db.commit()
        self.logger.info("Meal template updated", template_id=template.id, version=version)
        return self.templates.to_response(updated)

    # Meal logs

    @handle_service_errors("log_meal", "Error logging meal")
    async def log_meal(self, user_id, request: MealLogCreate) -> MealLogResponse:
        user_id = self.meal_logs.to_object_id(user_id, "user_id")
        servings = request.servings_consumed

        template: Optional[MealTemplate] = None
        if request.meal_template_id:
            template = await self._get_template(request.meal_template_id)

        program_id = None
        if request.nutrition_program_id:
            program = await self._get_program(request.nutrition_program_id)
            program_id = program.id
            if request.phase_number is not None and program.find_phase(request.phase_number) is None:
                raise APIError.not_found(ErrorMessage.PHASE_NOT_FOUND)

        if request.ingredients is not None:
            ingredients = to_ingredients(request.ingredients)
        elif template is not None:
            factor = servings / template.servings
            ingredients = [replace(i, amount=round_2(i.amount * factor)) for i in template.ingredients]
        else:
            raise APIError.bad_request("Either meal_template_id or ingredients is required")

        meal_name = request.meal_name or (template.name if template else None)
        if not meal_name:
            raise APIError.bad_request("meal_name is required when logging without a template")

        actual = CalorieCalculator.calculate_meal_nutrition(ingredients)
        planned = scale_totals(template.per_serving, servings) if template else None

        log = await self.meal_logs.create(
            self.db,
            {
                "user_id": user_id,
                "meal_template_id": template.id if template else None,
                "nutrition_program_id": program_id,
                "phase_number": request.phase_number,
                "meal_name": meal_name,
                "meal_type": (
                    request.meal_type.value if request.meal_type else (template.meal_type if template else None)
                ),
                "consumed_at": aware(request.consumed_at) or datetime.now(timezone.utc),
                "template_version": template.version if template else None,
                "template_snapshot": self.templates.snapshot(template) if template else None,
                "servings_consumed": servings,
                "ingredients": [dump_ingredient(i) for i in ingredients],
                "actual": asdict(actual),
                "planned": asdict(planned) if planned else None,
                "variance": self._variance(actual, planned),
                "notes": request.notes,
                "was_completed": request.was_completed,
            },
        )
        await self.db.commit()
        return self.meal_logs.to_response(log)

    @handle_service_errors("get_user_meal_logs", "Error fetching meal logs")
    async def get_user_meal_logs(self, user_id, limit: int = 50) -> List[MealLogResponse]:
        logs = await self.meal_logs.find_by_user(self.db, self.meal_logs.to_object_id(user_id, "user_id"), limit)
        return [self.meal_logs.to_response(log) for log in logs]

    # Internals

    async def _get_program(self, program_id) -> NutritionProgram:
        program = await self.programs.find_by_id(self.db, self.programs.to_object_id(program_id, "program_id"))
        if program is None:
            raise APIError.not_found(ErrorMessage.NUTRITION_PROGRAM_NOT_FOUND)
        return program

    async def _get_template(self, template_id) -> MealTemplate:
        template = await self.templates.find_by_id(
            self.db, self.templates.to_object_id(template_id, "meal_template_id")
        )
        if template is None:
            raise APIError.not_found(ErrorMessage.MEAL_TEMPLATE_NOT_FOUND)
        return template

    @staticmethod
    def _variance(actual: NutritionTotals, planned: Optional[NutritionTotals]) -> Optional[Dict[str, float]]:
        if planned is None:
            return None
        return {f: round_2(getattr(actual, f) - getattr(planned, f)) for f in VARIANCE_FIELDS}

    def _build_phases(self, request: NutritionProgramCreate) -> List[NutritionPhase]:
        if request.has_phases and not request.phases:
            raise APIError.bad_request(ErrorMessage.PHASES_REQUIRED)
        if not request.has_phases and request.phases:
            raise APIError.bad_request(ErrorMessage.PHASES_NOT_ALLOWED)

        phases = []
        next_start = 1
        for schema in sorted(request.phases, key=lambda p: p.phase_number):
            start = schema.start_week or next_start
            end = schema.end_week or start + schema.duration_weeks - 1
            next_start = end + 1
            phases.append(self._build_phase(schema, start, end, request.profile))

        ordered = sorted(phases, key=lambda p: p.start_week)
        for previous, current in zip(ordered, ordered[1:]):
            if current.start_week <= previous.end_week:
                raise APIError.bad_request(ErrorMessage.PHASES_OVERLAP)
        return phases

    def _build_phase(
        self, schema: NutritionPhaseSchema, start: int, end: int, profile: Optional[BiometricProfileSchema]
    ) -> NutritionPhase:
        data = schema.model_dump()
        data.update(
            phase_type=schema.phase_type.value,
            target_weight_change_type=(
                schema.target_weight_change_type.value if schema.target_weight_change_type else None
            ),
            meal_templates=self.programs.to_object_ids(schema.meal_templates, "meal_templates"),
            start_week=start,
            end_week=end,
        )
        phase = NutritionPhase(**data)

        if profile is None or schema.phase_type == PhaseType.custom or phase.target_calories_per_day is not None:
            return phase

        targets = CalorieCalculator.calculate_nutrition_targets(to_profile(profile), to_phase_targets(schema))
        return replace(
            phase,
            target_calories_per_day=targets.target_calories,
            target_protein_grams=phase.target_protein_grams or targets.target_protein,
            target_carbs_grams=phase.target_carbs_grams or targets.target_carbs,
            target_fats_grams=phase.target_fats_grams or targets.target_fats,
        )
