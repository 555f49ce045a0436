"""Repositories for programs and everything that hangs off a week."""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import WorkoutLogStatus
from app.entities.program import (
    BlockLog,
    Exercise,
    ExerciseLog,
    ExerciseSet,
    Macros,
    Meal,
    MealIngredient,
    Note,
    Portion,
    Program,
    ProgramPhase,
    ProgramWeeks,
    SetLog,
    Week,
    WeekDetails,
    Workout,
    WorkoutLog,
    validate_meal,
    validate_note,
    validate_program,
    validate_week,
    validate_workout_log,
)
from app.models.program import Meal as MealModel
from app.models.program import Note as NoteModel
from app.models.program import Program as ProgramModel
from app.models.program import Week as WeekModel
from app.models.program import WorkoutLog as WorkoutLogModel
from app.repositories.base import BaseRepository, aware, dump_datetime, id_str, id_strs, load_datetime
from app.schemas.program import (
    BlockLogSchema,
    MacrosSchema,
    MealCreate,
    MealIngredientSchema,
    MealResponse,
    NoteCreate,
    NoteResponse,
    ProgramCreate,
    ProgramPhaseSchema,
    ProgramResponse,
    ProgramWithWeeksResponse,
    WeekDetailResponse,
    WeekResponse,
    WorkoutLogCreate,
    WorkoutLogResponse,
    WorkoutResponse,
)


def load_workout(data: Dict[str, Any]) -> Workout:
    return Workout(
        id=data["id"],
        title=data["title"],
        created_by=data.get("created_by"),
        description=data.get("description"),
        image_path=data.get("image_path"),
        completed=data.get("completed", False),
        version_id=data.get("version_id", 1),
        exercises=[
            Exercise(
                **{k: v for k, v in exercise.items() if k != "sets"},
                sets=[ExerciseSet(**s) for s in exercise.get("sets") or []],
            )
            for exercise in data.get("exercises") or []
        ],
    )


def dump_workout(workout: Workout) -> Dict[str, Any]:
    return asdict(workout)


def workout_response(workout: Workout) -> WorkoutResponse:
    data = asdict(workout)
    data["created_by"] = id_str(workout.created_by)
    return WorkoutResponse(**data)


class ProgramRepository(BaseRepository[ProgramModel, Program]):

    def __init__(self, weeks: Optional["WeekRepository"] = None):
        super().__init__(ProgramModel, validate_program)
        self.weeks = weeks or WeekRepository()

    def to_document(self, request: ProgramCreate) -> Dict[str, Any]:
        return {
            "name": request.name.strip(),
            "types": list(request.types),
            "num_weeks": request.num_weeks,
            "has_nutrition_program": request.has_nutrition_program,
            "phases": [p.model_dump() for p in request.phases],
            "access_type": int(request.access_type),
            "admins": self.to_object_ids(request.admins, "admins"),
            "members": self.to_object_ids(request.members, "members"),
            "created_by": self.to_object_id(request.created_by, "created_by"),
            "weeks": [],
        }

    def to_entity(self, row: Optional[ProgramModel]) -> Optional[Program]:
        if row is None:
            return None
        return Program(
            id=row.id,
            name=row.name,
            num_weeks=row.num_weeks,
            created_by=row.created_by,
            access_type=row.access_type,
            types=list(row.types or []),
            has_nutrition_program=row.has_nutrition_program,
            phases=[ProgramPhase(**p) for p in row.phases or []],
            admins=list(row.admins or []),
            members=list(row.members or []),
            weeks=list(row.weeks or []),
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(program: Program) -> ProgramResponse:
        return ProgramResponse(
            id=str(program.id),
            name=program.name,
            types=program.types,
            num_weeks=program.num_weeks,
            has_nutrition_program=program.has_nutrition_program,
            phases=[ProgramPhaseSchema(**asdict(p)) for p in program.phases],
            access_type=program.access_type,
            admins=id_strs(program.admins),
            members=id_strs(program.members),
            created_by=str(program.created_by),
            weeks=id_strs(program.weeks),
            created_at=program.created_at,
            updated_at=program.updated_at,
        )

    @classmethod
    def to_tree_response(cls, tree: ProgramWeeks) -> ProgramWithWeeksResponse:
        return ProgramWithWeeksResponse(
            **cls.to_response(tree.program).model_dump(),
            week_details=[WeekRepository.to_response(w) for w in tree.weeks],
        )

    async def get_user_programs_with_weeks(self, db: AsyncSession, user_id: int) -> List[ProgramWeeks]:
        """
        Programs the user created, administers or belongs to, each with its weeks.

        One outer join fetches programs and weeks together; rows are grouped
        back into a tree here. Membership lists are JSON, so the text match
        only narrows candidates and membership is confirmed per program.
        """
        needle = str(user_id)
        stmt = (
            select(ProgramModel, WeekModel)
            .outerjoin(WeekModel, WeekModel.program_id == ProgramModel.id)
            .where(
                or_(
                    ProgramModel.created_by == user_id,
                    cast(ProgramModel.admins, String).contains(needle),
                    cast(ProgramModel.members, String).contains(needle),
                )
            )
            .order_by(ProgramModel.created_at.desc(), ProgramModel.id.asc())
        )
        result = await db.execute(stmt)

        programs: Dict[int, Program] = {}
        weeks: Dict[int, List[Week]] = {}
        for program_row, week_row in result.all():
            if program_row.id not in programs:
                program = self.to_entity(program_row)
                if not (
                    program.created_by == user_id or user_id in program.admins or user_id in program.members
                ):
                    continue
                programs[program.id] = program
                weeks[program.id] = []
            if week_row is not None:
                weeks[program_row.id].append(self.weeks.to_entity(week_row))

        return [
            ProgramWeeks(program=program, weeks=sorted(weeks[pid], key=lambda w: w.week_number))
            for pid, program in programs.items()
        ]


class WeekRepository(BaseRepository[WeekModel, Week]):

    def __init__(self):
        super().__init__(WeekModel, validate_week)

    @staticmethod
    def to_document(program_id: int, week_number: int, start_date, end_date) -> Dict[str, Any]:
        return {
            "program_id": program_id,
            "week_number": week_number,
            "name": f"Week {week_number}",
            "start_date": start_date,
            "end_date": end_date,
            "workouts": [],
            "meals": [],
        }

    def to_entity(self, row: Optional[WeekModel]) -> Optional[Week]:
        if row is None:
            return None
        return Week(
            id=row.id,
            program_id=row.program_id,
            week_number=row.week_number,
            name=row.name,
            description=row.description,
            image_path=row.image_path,
            start_date=aware(row.start_date),
            end_date=aware(row.end_date),
            workouts=[load_workout(w) for w in row.workouts or []],
            meals=list(row.meals or []),
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(week: Week) -> WeekResponse:
        return WeekResponse(
            id=str(week.id),
            program_id=str(week.program_id),
            week_number=week.week_number,
            name=week.name,
            description=week.description,
            image_path=week.image_path,
            start_date=week.start_date,
            end_date=week.end_date,
            workouts=[workout_response(w) for w in week.workouts],
            meals=id_strs(week.meals),
            created_at=week.created_at,
            updated_at=week.updated_at,
        )

    @classmethod
    def to_detail_response(cls, details: WeekDetails) -> WeekDetailResponse:
        return WeekDetailResponse(
            **cls.to_response(details.week).model_dump(),
            meal_details=[MealRepository.to_response(m) for m in details.meals],
            notes=[NoteRepository.to_response(n) for n in details.notes],
        )

    async def replace_workouts(self, db: AsyncSession, week_id: int, workouts: List[Workout]) -> Optional[Week]:
        return await self.update_by_id(db, week_id, {"workouts": [dump_workout(w) for w in workouts]})

    async def find_week(self, db: AsyncSession, week_id: Any) -> Optional[WeekDetails]:
        """The week with its meals and notes loaded from their own tables."""
        week = await self.find_by_id(db, week_id)
        if week is None:
            return None

        meals = []
        if week.meals:
            result = await db.execute(select(MealModel).where(MealModel.id.in_(week.meals)))
            by_id = {row.id: row for row in result.scalars().all()}
            meals = [MealRepository().to_entity(by_id[m]) for m in week.meals if m in by_id]

        result = await db.execute(
            select(NoteModel).where(NoteModel.week_id == week.id).order_by(NoteModel.created_at.asc())
        )
        notes = NoteRepository().to_entities(result.scalars().all())
        return WeekDetails(week=week, meals=meals, notes=notes)


class MealRepository(BaseRepository[MealModel, Meal]):

    def __init__(self):
        super().__init__(MealModel, validate_meal)

    def to_document(self, request: MealCreate) -> Dict[str, Any]:
        return {
            "created_by": self.to_object_id(request.created_by, "created_by"),
            "meal_name": request.meal_name.strip(),
            "macros": request.macros.model_dump(),
            "ingredients": [i.model_dump() for i in request.ingredients],
            "instructions": request.instructions,
            "version_id": 1,
        }

    def to_entity(self, row: Optional[MealModel]) -> Optional[Meal]:
        if row is None:
            return None
        return Meal(
            id=row.id,
            created_by=row.created_by,
            meal_name=row.meal_name,
            macros=Macros(**(row.macros or {})),
            ingredients=[
                MealIngredient(
                    name=i["name"],
                    portion=Portion(**i["portion"]) if i.get("portion") else None,
                )
                for i in row.ingredients or []
            ],
            instructions=row.instructions,
            version_id=row.version_id,
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def snapshot(meal: Meal) -> Dict[str, Any]:
        """JSON-safe copy of a meal, stored on meal logs."""
        data = asdict(meal)
        data["created_at"] = dump_datetime(meal.created_at)
        data["updated_at"] = dump_datetime(meal.updated_at)
        return data

    @staticmethod
    def to_response(meal: Meal) -> MealResponse:
        return MealResponse(
            id=str(meal.id),
            created_by=str(meal.created_by),
            meal_name=meal.meal_name,
            macros=MacrosSchema(**asdict(meal.macros)),
            ingredients=[MealIngredientSchema(**asdict(i)) for i in meal.ingredients],
            instructions=meal.instructions,
            version_id=meal.version_id,
            created_at=meal.created_at,
            updated_at=meal.updated_at,
        )


class NoteRepository(BaseRepository[NoteModel, Note]):

    def __init__(self):
        super().__init__(NoteModel, validate_note)

    def to_document(self, week_id: int, request: NoteCreate) -> Dict[str, Any]:
        return {
            "week_id": week_id,
            "title": request.title.strip(),
            "content": request.content,
            "created_by": self.to_object_id(request.created_by, "created_by") if request.created_by else None,
        }

    def to_entity(self, row: Optional[NoteModel]) -> Optional[Note]:
        if row is None:
            return None
        return Note(
            id=row.id,
            week_id=row.week_id,
            title=row.title,
            content=row.content,
            created_by=row.created_by,
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(note: Note) -> NoteResponse:
        return NoteResponse(
            id=str(note.id),
            week_id=str(note.week_id),
            title=note.title,
            content=note.content,
            created_by=id_str(note.created_by),
            created_at=note.created_at,
            updated_at=note.updated_at,
        )


class WorkoutLogRepository(BaseRepository[WorkoutLogModel, WorkoutLog]):
    """Append-only workout logs. Block logs may be added; nothing is rewritten."""

    def __init__(self):
        super().__init__(WorkoutLogModel, validate_workout_log)

    def to_document(self, week_id: int, workout: Workout, request: WorkoutLogCreate) -> Dict[str, Any]:
        return {
            "user_id": self.to_object_id(request.user_id, "user_id"),
            "week_id": week_id,
            "workout_id": workout.id,
            "workout_version_id": workout.version_id,
            "workout_snapshot": dump_workout(workout),
            "status": WorkoutLogStatus(request.status).value,
            "block_logs": [self.dump_block_log(b) for b in request.block_logs],
            "notes": request.notes,
        }

    @staticmethod
    def dump_block_log(block: BlockLogSchema) -> Dict[str, Any]:
        data = block.model_dump()
        data["completed_at"] = dump_datetime(block.completed_at)
        for exercise in data["exercises"]:
            for set_log in exercise["sets"]:
                set_log["completed_at"] = dump_datetime(set_log["completed_at"])
        return data

    @staticmethod
    def load_block_log(data: Dict[str, Any]) -> BlockLog:
        return BlockLog(
            type=data["type"],
            name=data.get("name"),
            order=data.get("order"),
            is_completed=data.get("is_completed", False),
            completed_at=load_datetime(data.get("completed_at")),
            total_duration_sec=data.get("total_duration_sec"),
            exercises=[
                ExerciseLog(
                    **{k: v for k, v in exercise.items() if k != "sets"},
                    sets=[
                        SetLog(**{**s, "completed_at": load_datetime(s.get("completed_at"))})
                        for s in exercise.get("sets") or []
                    ],
                )
                for exercise in data.get("exercises") or []
            ],
        )

    def to_entity(self, row: Optional[WorkoutLogModel]) -> Optional[WorkoutLog]:
        if row is None:
            return None
        return WorkoutLog(
            id=row.id,
            user_id=row.user_id,
            week_id=row.week_id,
            workout_id=row.workout_id,
            workout_version_id=row.workout_version_id,
            workout_snapshot=dict(row.workout_snapshot or {}),
            status=row.status,
            block_logs=[self.load_block_log(b) for b in row.block_logs or []],
            notes=row.notes,
            created_at=aware(row.created_at),
            updated_at=aware(row.updated_at),
        )

    @staticmethod
    def to_response(log: WorkoutLog) -> WorkoutLogResponse:
        return WorkoutLogResponse(
            id=str(log.id),
            user_id=str(log.user_id),
            week_id=str(log.week_id),
            workout_id=log.workout_id,
            workout_version_id=log.workout_version_id,
            workout_snapshot=log.workout_snapshot,
            status=log.status,
            block_logs=[BlockLogSchema(**asdict(b)) for b in log.block_logs],
            notes=log.notes,
            total_volume=log.total_volume,
            created_at=log.created_at,
            updated_at=log.updated_at,
        )

    async def append_block_log(self, db: AsyncSession, log_id: Any, block: BlockLogSchema) -> Optional[WorkoutLog]:
        row = await self.get_row(db, log_id, for_update=True)
        if row is None:
            return None
        blocks = list(row.block_logs or [])
        blocks.append(self.dump_block_log(block))
        return await self._apply(db, row, {"block_logs": blocks})
