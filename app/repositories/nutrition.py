from dataclasses import asdict
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.entities.nutrition import (
    MealLog,
    MealTemplate,
    NutritionalData,
    NutritionPhase,
    NutritionProgram,
    NutritionTotals,
    TemplateIngredient,
    VersionEntry,
    validate_meal_log,
    validate_meal_template,
    validate_nutrition_program,
)
from app.models.nutrition import MealLog as MealLogModel
from app.models.nutrition import MealTemplate as MealTemplateModel
from app.models.nutrition import NutritionProgram as NutritionProgramModel
from app.repositories.base import BaseRepository, aware, dump_datetime, id_str, id_strs, load_datetime
from app.schemas.nutrition import (
    MealLogResponse,
    MealTemplateCreate,
    MealTemplateResponse,
    NutritionPhaseSchema,
    NutritionProgramCreate,
    NutritionProgramResponse,
    NutritionTotalsSchema,
    TemplateIngredientSchema,
    VersionEntrySchema,
)


def load_ingredient(data: Dict[str, Any]) -> TemplateIngredient:
    nutritional = data.get("nutritional_data")
    return TemplateIngredient(
        ingredient_name=data["ingredient_name"],
        amount=data["amount"],
        unit=data.get("unit", "grams"),
        nutritional_data=NutritionalData(**nutritional) if nutritional else None,
        notes=data.get("notes"),
        order=data.get("order"),
    )


def dump_ingredient(ingredient: TemplateIngredient) -> Dict[str, Any]:
    return asdict(ingredient)


def load_totals(data: Optional[Dict[str, Any]]) -> NutritionTotals:
    return NutritionTotals(**(data or {}))


def load_history(entries: Optional[List[Dict[str, Any]]]) -> List[VersionEntry]:
    return [
        VersionEntry(
            version=e["version"],
            changed_at=load_datetime(e["changed_at"]),
            changed_by=e["changed_by"],
            changes=list(e.get("changes") or []),
            change_reason=e.get("change_reason"),
        )
        for e in entries or []
    ]


def dump_history_entry(entry: VersionEntry) -> Dict[str, Any]:
    data = asdict(entry)
    data["changed_at"] = dump_datetime(entry.changed_at)
    return data


def history_response(entries: List[VersionEntry]) -> List[VersionEntrySchema]:
    return [
        VersionEntrySchema(
            version=e.version,
            changed_at=e.changed_at,
            changed_by=str(e.changed_by),
            changes=e.changes,
            change_reason=e.change_reason,
        )
        for e in entries
    ]


def ingredient_response(ingredient: TemplateIngredient) -> TemplateIngredientSchema:
    return TemplateIngredientSchema(**asdict(ingredient))


class NutritionProgramRepository(BaseRepository[NutritionProgramModel, NutritionProgram]):

    def __init__(self):
        super().__init__(NutritionProgramModel, validate_nutrition_program)

    @staticmethod
    def dump_phase(phase: NutritionPhase) -> Dict[str, Any]:
        return asdict(phase)

    def to_document(
        self,
        request: NutritionProgramCreate,
        phases: List[NutritionPhase],
        owner_id: int,
        creator_id: int,
    ) -> Dict[str, Any]:
        return {
            "name": request.name.strip(),
            "description": request.description,
            "category": request.category,
            "difficulty": request.difficulty.value if request.difficulty else None,
            "total_duration_weeks": request.total_duration_weeks,
            "has_phases": request.has_phases,
            "phases": [self.dump_phase(p) for p in phases],
            "owner_type": request.owner_type.value,
            "owner_id": owner_id,
            "created_by": creator_id,
            "is_public": request.is_public,
            "is_active": True,
            "version": "1.0",
            "version_history": [],
            "tags": list(request.tags),
            "estimated_calories_per_day": request.estimated_calories_per_day,
        }

    def to_entity(self, row: Optional[NutritionProgramModel]) -> Optional[NutritionProgram]:
        if row is None:
            return None
        return NutritionProgram(
            id=row.id,
            name=row.name,
            total_duration_weeks=row.total_duration_weeks,
            owner_type=row.owner_type,
            owner_id=row.owner_id,
            has_phases=row.has_phases,
            phases=[NutritionPhase(**p) for p in row.phases or []],
            description=row.description,
            category=row.category,
            difficulty=row.difficulty,
            created_by=row.created_by,
            is_public=row.is_public,
            is_active=row.is_active,
            version=row.version,
            version_history=load_history(row.version_history),
            tags=list(row.tags or []),
            estimated_calories_per_day=row.estimated_calories_per_day,
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(program: NutritionProgram) -> NutritionProgramResponse:
        phases = []
        for phase in program.phases:
            data = asdict(phase)
            data["meal_templates"] = id_strs(phase.meal_templates)
            phases.append(NutritionPhaseSchema(**data))
        return NutritionProgramResponse(
            id=str(program.id),
            name=program.name,
            description=program.description,
            category=program.category,
            difficulty=program.difficulty,
            total_duration_weeks=program.total_duration_weeks,
            has_phases=program.has_phases,
            phases=phases,
            owner_type=program.owner_type,
            owner_id=str(program.owner_id),
            created_by=id_str(program.created_by),
            is_public=program.is_public,
            is_active=program.is_active,
            version=program.version,
            version_history=history_response(program.version_history),
            tags=program.tags,
            estimated_calories_per_day=program.estimated_calories_per_day,
            created_at=program.created_at,
            updated_at=program.updated_at,
        )

    async def find_by_owner(self, db: AsyncSession, owner_id: int) -> List[NutritionProgram]:
        return await self.find_many(
            db,
            owner_id=owner_id,
            order_by=[NutritionProgramModel.created_at.desc(), NutritionProgramModel.id.asc()],
        )


class MealTemplateRepository(BaseRepository[MealTemplateModel, MealTemplate]):

    def __init__(self):
        super().__init__(MealTemplateModel, validate_meal_template)

    @staticmethod
    def to_document(
        request: MealTemplateCreate,
        ingredients: List[TemplateIngredient],
        totals: NutritionTotals,
        per_serving: NutritionTotals,
        creator_id: int,
    ) -> Dict[str, Any]:
        return {
            "name": request.name.strip(),
            "description": request.description,
            "meal_type": request.meal_type.value,
            "ingredients": [dump_ingredient(i) for i in ingredients],
            "instructions": request.instructions,
            "servings": request.servings,
            "totals": asdict(totals),
            "per_serving": asdict(per_serving),
            "created_by": creator_id,
            "is_public": request.is_public,
            "version": "1.0",
            "version_history": [],
            "tags": list(request.tags),
        }

    def to_entity(self, row: Optional[MealTemplateModel]) -> Optional[MealTemplate]:
        if row is None:
            return None
        return MealTemplate(
            id=row.id,
            name=row.name,
            meal_type=row.meal_type,
            servings=row.servings,
            ingredients=[load_ingredient(i) for i in row.ingredients or []],
            description=row.description,
            instructions=row.instructions,
            totals=load_totals(row.totals),
            per_serving=load_totals(row.per_serving),
            created_by=row.created_by,
            is_public=row.is_public,
            version=row.version,
            version_history=load_history(row.version_history),
            tags=list(row.tags or []),
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(template: MealTemplate) -> MealTemplateResponse:
        return MealTemplateResponse(
            id=str(template.id),
            name=template.name,
            description=template.description,
            meal_type=template.meal_type,
            ingredients=[ingredient_response(i) for i in template.ingredients],
            instructions=template.instructions,
            servings=template.servings,
            totals=NutritionTotalsSchema(**asdict(template.totals)),
            per_serving=NutritionTotalsSchema(**asdict(template.per_serving)),
            created_by=id_str(template.created_by),
            is_public=template.is_public,
            version=template.version,
            version_history=history_response(template.version_history),
            tags=template.tags,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )

    @staticmethod
    def snapshot(template: MealTemplate) -> Dict[str, Any]:
        """JSON-safe copy of a template, stored on meal logs."""
        data = asdict(template)
        data["version_history"] = [dump_history_entry(e) for e in template.version_history]
        data["created_at"] = dump_datetime(template.created_at)
        data["updated_at"] = dump_datetime(template.updated_at)
        return data


class MealLogRepository(BaseRepository[MealLogModel, MealLog]):
    """Consumed meals. Rows are only ever inserted."""

    def __init__(self):
        super().__init__(MealLogModel, validate_meal_log)

    def to_entity(self, row: Optional[MealLogModel]) -> Optional[MealLog]:
        if row is None:
            return None
        return MealLog(
            id=row.id,
            user_id=row.user_id,
            meal_name=row.meal_name,
            consumed_at=aware(row.consumed_at),
            meal_type=row.meal_type,
            meal_id=row.meal_id,
            meal_version_id=row.meal_version_id,
            meal_template_id=row.meal_template_id,
            nutrition_program_id=row.nutrition_program_id,
            phase_number=row.phase_number,
            template_version=row.template_version,
            template_snapshot=row.template_snapshot,
            servings_consumed=row.servings_consumed,
            ingredients=[load_ingredient(i) for i in row.ingredients or []],
            actual=load_totals(row.actual),
            planned=load_totals(row.planned) if row.planned else None,
            variance=row.variance,
            notes=row.notes,
            was_completed=row.was_completed,
            created_at=aware(row.created_at),
        )

    @staticmethod
    def to_response(log: MealLog) -> MealLogResponse:
        return MealLogResponse(
            id=str(log.id),
            user_id=str(log.user_id),
            meal_name=log.meal_name,
            meal_type=log.meal_type,
            consumed_at=log.consumed_at,
            meal_id=id_str(log.meal_id),
            meal_version_id=log.meal_version_id,
            meal_template_id=id_str(log.meal_template_id),
            nutrition_program_id=id_str(log.nutrition_program_id),
            phase_number=log.phase_number,
            template_version=log.template_version,
            template_snapshot=log.template_snapshot,
            servings_consumed=log.servings_consumed,
            ingredients=[ingredient_response(i) for i in log.ingredients],
            actual=NutritionTotalsSchema(**asdict(log.actual)),
            planned=NutritionTotalsSchema(**asdict(log.planned)) if log.planned else None,
            variance=log.variance,
            notes=log.notes,
            was_completed=log.was_completed,
            created_at=log.created_at,
        )

    async def find_by_user(self, db: AsyncSession, user_id: int, limit: int = 50) -> List[MealLog]:
        return await self.find_many(
            db,
            user_id=user_id,
            order_by=[MealLogModel.consumed_at.desc(), MealLogModel.id.asc()],
            limit=limit,
        )
