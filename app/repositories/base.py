"""
Base repository with common async CRUD operations.

Repositories own exactly one table each. They convert between three shapes:

- documents: plain dicts in storage shape, as written to a row
- entities: frozen dataclasses from ``app.entities`` handed to services
- responses: pydantic schemas returned to API callers

Repositories flush but never commit. The caller owns the transaction, either a
request-scoped session or one opened by ``TransactionCoordinator``.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import and_, func, inspect as sa_inspect, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DocumentValidationError, FieldError, IdentifierCastError
from app.db.base_class import Base
from app.utils.cursor import CursorUtils

ModelType = TypeVar("ModelType", bound=Base)
EntityType = TypeVar("EntityType")

Validator = Callable[[Mapping[str, Any]], List[FieldError]]


def aware(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; SQLite drops the offset on the way back."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def dump_datetime(value: Optional[datetime]) -> Optional[str]:
    """Datetimes embedded in JSON columns are stored as ISO 8601 strings."""
    if value is None:
        return None
    return aware(value).isoformat()


def load_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return aware(value)
    return aware(datetime.fromisoformat(value))


async def keyset_page(
    db: AsyncSession,
    stmt,
    created_column,
    id_column,
    limit: int,
    cursor: Optional[str] = None,
) -> Tuple[List[Any], bool]:
    """
    Run ``stmt`` as one page sorted by ``(created_at DESC, id ASC)``.

    The cursor names the last row of the previous page; rows strictly after
    it in that order are returned. One extra row is fetched to tell whether
    another page follows.
    """
    position = CursorUtils.parse_cursor(cursor)
    if position is not None:
        cursor_id, timestamp = position[0], aware(position[1])
        stmt = stmt.where(
            or_(
                created_column < timestamp,
                and_(created_column == timestamp, id_column > cursor_id),
            )
        )
    stmt = stmt.order_by(created_column.desc(), id_column.asc()).limit(limit + 1)
    result = await db.execute(stmt)
    rows = list(result.scalars().all())
    return rows[:limit], len(rows) > limit


def id_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def id_strs(values: Optional[Iterable[Any]]) -> List[str]:
    return [str(v) for v in values or []]


class BaseRepository(Generic[ModelType, EntityType]):
    """
    Generic repository over one SQLAlchemy model.

    Subclasses provide ``to_entity`` and usually ``to_document`` and
    ``to_response``. When a ``validator`` is given, ``create`` and
    ``update_by_id`` run it against the full document and raise
    ``DocumentValidationError`` on any field error.
    """

    def __init__(self, model: Type[ModelType], validator: Optional[Validator] = None):
        self.model = model
        self.validator = validator

    # Identifiers

    @staticmethod
    def to_object_id(value: Any, field: str = "id") -> int:
        """Convert an identifier received as a string into a storage id."""
        if isinstance(value, bool):
            raise IdentifierCastError(field, value)
        if isinstance(value, int):
            if value < 1:
                raise IdentifierCastError(field, value)
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.isascii() and text.isdigit() and int(text) > 0:
                return int(text)
        raise IdentifierCastError(field, value)

    @classmethod
    def to_object_ids(cls, values: Optional[Iterable[Any]], field: str = "id") -> List[int]:
        return [cls.to_object_id(v, field) for v in values or []]

    # Mapping

    def to_entity(self, row: Optional[ModelType]) -> Optional[EntityType]:
        raise NotImplementedError

    def to_entities(self, rows: Iterable[ModelType]) -> List[EntityType]:
        return [self.to_entity(row) for row in rows]

    def row_to_dict(self, row: ModelType) -> Dict[str, Any]:
        document = {}
        for attr in sa_inspect(self.model).column_attrs:
            value = getattr(row, attr.key)
            document[attr.key] = aware(value) if isinstance(value, datetime) else value
        return document

    def validate(self, document: Mapping[str, Any]) -> None:
        if self.validator is None:
            return
        errors = self.validator(document)
        if errors:
            raise DocumentValidationError(self.model.__name__, errors)

    # Reads

    async def get_row(self, db: AsyncSession, id: Any, *, for_update: bool = False) -> Optional[ModelType]:
        stmt = select(self.model).where(self.model.id == self.to_object_id(id))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, db: AsyncSession, id: Any, *, for_update: bool = False) -> Optional[EntityType]:
        return self.to_entity(await self.get_row(db, id, for_update=for_update))

    async def find_one(self, db: AsyncSession, *criteria, for_update: bool = False, **filters) -> Optional[EntityType]:
        row = await self._find_one_row(db, *criteria, for_update=for_update, **filters)
        return self.to_entity(row)

    async def find_many(
        self,
        db: AsyncSession,
        *criteria,
        order_by: Optional[Iterable[Any]] = None,
        limit: Optional[int] = None,
        **filters,
    ) -> List[EntityType]:
        stmt = self._filtered(select(self.model), criteria, filters)
        if order_by is not None:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return self.to_entities(result.scalars().all())

    async def find_by_ids(self, db: AsyncSession, ids: Iterable[Any]) -> List[EntityType]:
        """Rows for ``ids`` in the order given; ids with no row are skipped."""
        object_ids = self.to_object_ids(ids)
        if not object_ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(object_ids)))
        by_id = {row.id: row for row in result.scalars().all()}
        return [self.to_entity(by_id[i]) for i in dict.fromkeys(object_ids) if i in by_id]

    async def exists(self, db: AsyncSession, *criteria, **filters) -> bool:
        stmt = self._filtered(select(func.count(self.model.id)), criteria, filters)
        result = await db.execute(stmt)
        return (result.scalar() or 0) > 0

    async def count(self, db: AsyncSession, *criteria, **filters) -> int:
        stmt = self._filtered(select(func.count(self.model.id)), criteria, filters)
        result = await db.execute(stmt)
        return result.scalar() or 0

    # Writes

    async def create(self, db: AsyncSession, document: Dict[str, Any]) -> EntityType:
        self.validate(document)
        row = self.model(**document)
        db.add(row)
        await db.flush()
        return self.to_entity(row)

    async def update_by_id(
        self, db: AsyncSession, id: Any, values: Mapping[str, Any]
    ) -> Optional[EntityType]:
        """Apply ``values`` to the row and flush. Returns ``None`` when no row matches."""
        row = await self.get_row(db, id, for_update=True)
        if row is None:
            return None
        return await self._apply(db, row, values)

    async def delete_by_id(self, db: AsyncSession, id: Any) -> bool:
        row = await self.get_row(db, id, for_update=True)
        if row is None:
            return False
        await db.delete(row)
        await db.flush()
        return True

    async def add_to_set(
        self, db: AsyncSession, key: Any, field: str, values: Iterable[Any], *, by: str = "id"
    ) -> Optional[EntityType]:
        """Append each value not already present in the list column ``field``."""
        def merge(current: List[Any]) -> List[Any]:
            merged = list(current)
            for value in values:
                if value not in merged:
                    merged.append(value)
            return merged

        return await self._update_list(db, key, field, merge, by)

    async def pull(
        self, db: AsyncSession, key: Any, field: str, values: Iterable[Any], *, by: str = "id"
    ) -> Optional[EntityType]:
        """Remove every occurrence of each value from the list column ``field``."""
        removed = list(values)
        return await self._update_list(db, key, field, lambda current: [v for v in current if v not in removed], by)

    async def pull_from_many(
        self, db: AsyncSession, keys: Iterable[Any], field: str, value: Any, *, by: str = "id"
    ) -> int:
        """Pull ``value`` from ``field`` on every row whose ``by`` column is in ``keys``."""
        column = getattr(self.model, by)
        stmt = (
            select(self.model)
            .where(column.in_(list(keys)))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        rows = result.scalars().all()
        for row in rows:
            setattr(row, field, [v for v in getattr(row, field) or [] if v != value])
        await db.flush()
        return len(rows)

    # Internals

    async def _find_one_row(self, db: AsyncSession, *criteria, for_update: bool = False, **filters) -> Optional[ModelType]:
        stmt = self._filtered(select(self.model), criteria, filters).limit(1)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def _update_list(
        self, db: AsyncSession, key: Any, field: str, change: Callable[[List[Any]], List[Any]], by: str
    ) -> Optional[EntityType]:
        if by == "id":
            row = await self.get_row(db, key, for_update=True)
        else:
            row = await self._find_one_row(db, for_update=True, **{by: key})
        if row is None:
            return None
        # Assign a new list; in-place mutation of a JSON value is not tracked
        setattr(row, field, change(list(getattr(row, field) or [])))
        await db.flush()
        return self.to_entity(row)

    async def _apply(self, db: AsyncSession, row: ModelType, values: Mapping[str, Any]) -> EntityType:
        if self.validator is not None:
            document = self.row_to_dict(row)
            document.update(values)
            self.validate(document)
        for field, value in values.items():
            setattr(row, field, value)
        await db.flush()
        return self.to_entity(row)

    def _filtered(self, stmt, criteria, filters):
        for field, value in filters.items():
            column = getattr(self.model, field)
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        for criterion in criteria:
            stmt = stmt.where(criterion)
        return stmt
