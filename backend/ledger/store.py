"""
Record Store — durable keyed storage for products, listings, leads,
campaigns, transactions and opportunities.

Owns the long-lived AsyncEngine handed to it at startup. Every operation
runs in its own session under a deadline; SQLAlchemy/driver failures are
translated here and nowhere else:

- connection, operational and interface errors, and deadlines → StorageUnavailable
- integrity errors, rejected values (numeric overflow) and missing tables → ConstraintViolation

Records cross this boundary as plain dicts keyed by column name, with ids
rendered as strings.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import select, update, func, Uuid, Numeric, DateTime
from sqlalchemy.exc import (
    DataError, DBAPIError, IntegrityError, InterfaceError, OperationalError, ProgrammingError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ledger.database import make_session_factory
from ledger.errors import ConstraintViolation, LedgerError, NotFound, StorageUnavailable
from ledger.models import ENTITY_MODELS
from ledger.utils import parse_uuid, utcnow

logger = logging.getLogger(__name__)

# "field__op" suffixes accepted in filter dicts; a bare "field" means eq
FILTER_OPS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "isnull")

DEFAULT_ORDER = "-created_at"


def _is_missing_table(exc: Exception) -> bool:
    text = str(getattr(exc, "orig", exc)).lower()
    return "no such table" in text or ("relation" in text and "does not exist" in text)


def _export(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def _row_to_dict(model, row) -> dict:
    """Render an ORM instance or a RETURNING mapping as a plain record."""
    if hasattr(row, "keys"):
        return {c.name: _export(row[c.name]) for c in model.__table__.columns}
    return {c.name: _export(getattr(row, c.key)) for c in model.__table__.columns}


class RecordStore:
    def __init__(self, engine: AsyncEngine, timeout: float = 10.0):
        self.engine = engine
        self.timeout = timeout
        self._session_factory = make_session_factory(engine)

    # ── Plumbing ─────────────────────────────────────────────────────

    @asynccontextmanager
    async def _session(self):
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[Any]]):
        async def _unit():
            async with self._session() as session:
                return await work(session)

        try:
            return await asyncio.wait_for(_unit(), timeout=self.timeout)
        except LedgerError:
            raise
        except asyncio.TimeoutError as exc:
            logger.error(f"Store {operation} exceeded {self.timeout:g}s deadline")
            raise StorageUnavailable(f"{operation} timed out after {self.timeout:g}s") from exc
        except IntegrityError as exc:
            logger.warning(f"Store {operation} rejected by constraint: {exc.orig}")
            raise ConstraintViolation(f"{operation} rejected: {exc.orig}") from exc
        except (ProgrammingError, OperationalError) as exc:
            if isinstance(exc, ProgrammingError) or _is_missing_table(exc):
                logger.error(f"Store {operation} schema error: {exc.orig}")
                raise ConstraintViolation(f"{operation} failed: {exc.orig}") from exc
            logger.error(f"Store {operation} failed: {exc}", exc_info=True)
            raise StorageUnavailable(f"{operation} failed: {exc.orig}") from exc
        except DataError as exc:
            logger.warning(f"Store {operation} rejected value: {exc.orig}")
            raise ConstraintViolation(f"{operation} rejected: {exc.orig}") from exc
        except (InterfaceError, DBAPIError, OSError) as exc:
            logger.error(f"Store {operation} failed: {exc}", exc_info=True)
            raise StorageUnavailable(f"{operation} failed: {exc}") from exc

    def _model(self, kind: str):
        model = ENTITY_MODELS.get(kind)
        if model is None:
            raise ConstraintViolation(f"Unknown entity kind {kind!r}")
        return model

    def _column(self, model, name: str):
        column = model.__table__.columns.get(name)
        if column is None:
            raise ConstraintViolation(f"{model.__tablename__} has no field {name!r}")
        return column

    def _coerce(self, column, value):
        """Bring caller-supplied values to the column's Python type."""
        if value is None:
            return None
        try:
            if isinstance(column.type, Uuid) and not isinstance(value, uuid.UUID):
                return uuid.UUID(str(value))
            if isinstance(column.type, Numeric) and not isinstance(value, Decimal):
                return Decimal(str(value))
            if isinstance(column.type, DateTime) and isinstance(value, str):
                return datetime.fromisoformat(value)
        except (ValueError, InvalidOperation, TypeError):
            raise ConstraintViolation(f"Invalid value for {column.table.name}.{column.name}: {value!r}")
        return value

    def _where(self, model, filters: Optional[dict]) -> list:
        clauses = []
        for key, value in (filters or {}).items():
            name, _, op = key.partition("__")
            op = op or "eq"
            if op not in FILTER_OPS:
                raise ConstraintViolation(f"Unsupported filter operator {op!r}")
            column = self._column(model, name)
            attr = getattr(model, column.key)
            if op == "isnull":
                clauses.append(attr.is_(None) if value else attr.is_not(None))
            elif op == "in":
                clauses.append(attr.in_([self._coerce(column, v) for v in value]))
            elif value is None and op in ("eq", "ne"):
                clauses.append(attr.is_(None) if op == "eq" else attr.is_not(None))
            else:
                coerced = self._coerce(column, value)
                clauses.append({
                    "eq": attr == coerced,
                    "ne": attr != coerced,
                    "gt": attr > coerced,
                    "gte": attr >= coerced,
                    "lt": attr < coerced,
                    "lte": attr <= coerced,
                }[op])
        return clauses

    def _order(self, model, order_by: Optional[str]):
        order_by = order_by or DEFAULT_ORDER
        descending = order_by.startswith("-")
        column = self._column(model, order_by.lstrip("-"))
        attr = getattr(model, column.key)
        # id breaks ties between rows created in the same instant
        if descending:
            return attr.desc(), model.id.desc()
        return attr.asc(), model.id.asc()

    def _prepare_insert(self, model, record: dict) -> dict:
        columns = model.__table__.columns
        unknown = set(record) - set(columns.keys())
        if unknown:
            raise ConstraintViolation(
                f"{model.__tablename__} has no field(s): {', '.join(sorted(unknown))}"
            )
        values = {name: self._coerce(columns[name], v) for name, v in record.items()}
        if values.get("id") is None:
            values["id"] = uuid.uuid4()
        if "created_at" in columns and values.get("created_at") is None:
            values["created_at"] = utcnow()
        for column in columns:
            required = not column.nullable and column.default is None and column.server_default is None
            if required and values.get(column.name) is None:
                raise ConstraintViolation(f"{model.__tablename__}.{column.name} is required")
        return values

    # ── Contract ─────────────────────────────────────────────────────

    async def insert(self, kind: str, record: dict) -> dict:
        """Insert one record, assigning ``id`` and ``created_at`` when absent."""
        model = self._model(kind)
        values = self._prepare_insert(model, record)

        async def work(session: AsyncSession):
            obj = model(**values)
            session.add(obj)
            await session.flush()
            return _row_to_dict(model, obj)

        return await self._run(f"insert {kind}", work)

    async def get(self, kind: str, entity_id) -> dict:
        model = self._model(kind)
        key = parse_uuid(entity_id, model.__name__.lower())

        async def work(session: AsyncSession):
            obj = await session.get(model, key)
            if obj is None:
                raise NotFound(model.__name__.lower(), entity_id)
            return _row_to_dict(model, obj)

        return await self._run(f"get {kind}", work)

    async def list(
        self,
        kind: str,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Filtered listing, newest first unless ``order_by`` says otherwise."""
        model = self._model(kind)
        stmt = select(model).where(*self._where(model, filters)).order_by(*self._order(model, order_by))
        if limit is not None:
            if limit < 1:
                raise ConstraintViolation("limit must be a positive integer")
            stmt = stmt.limit(limit)

        async def work(session: AsyncSession):
            result = await session.execute(stmt)
            return [_row_to_dict(model, obj) for obj in result.scalars().all()]

        return await self._run(f"list {kind}", work)

    async def count(self, kind: str, filters: Optional[dict] = None) -> int:
        model = self._model(kind)
        stmt = select(func.count()).select_from(model).where(*self._where(model, filters))

        async def work(session: AsyncSession):
            result = await session.execute(stmt)
            return int(result.scalar() or 0)

        return await self._run(f"count {kind}", work)

    async def count_by(self, kind: str, field: str, filters: Optional[dict] = None) -> dict:
        """Grouped count: ``{field value: rows}``. Absent groups are simply missing."""
        model = self._model(kind)
        attr = getattr(model, self._column(model, field).key)
        stmt = (
            select(attr, func.count())
            .where(*self._where(model, filters))
            .group_by(attr)
        )

        async def work(session: AsyncSession):
            result = await session.execute(stmt)
            return {_export(value): int(n) for value, n in result.all()}

        return await self._run(f"count {kind} by {field}", work)

    async def sum(self, kind: str, field: str, filters: Optional[dict] = None):
        model = self._model(kind)
        attr = getattr(model, self._column(model, field).key)
        stmt = select(func.coalesce(func.sum(attr), 0)).where(*self._where(model, filters))

        async def work(session: AsyncSession):
            result = await session.execute(stmt)
            return result.scalar()

        return await self._run(f"sum {kind}.{field}", work)

    async def update_where(
        self,
        kind: str,
        entity_id,
        values: dict,
        expected: Optional[dict] = None,
    ) -> Optional[dict]:
        """
        Conditional single-row update. Applies ``values`` only if the row still
        matches ``expected``; returns the updated record, or None when nothing
        matched (missing row or failed precondition).
        """
        return await self.increment(kind, entity_id, {}, expected=expected, values=values)

    async def increment(
        self,
        kind: str,
        entity_id,
        increments: dict,
        expected: Optional[dict] = None,
        values: Optional[dict] = None,
        follow_up: Optional[tuple[str, dict]] = None,
    ) -> Optional[dict]:
        """
        Atomic in-database ``field = field + delta`` update (no read-modify-write),
        guarded by ``expected``. When the row matched, ``follow_up`` (kind, record)
        is inserted in the same transaction.
        """
        model = self._model(kind)
        try:
            key = entity_id if isinstance(entity_id, uuid.UUID) else uuid.UUID(str(entity_id))
        except (ValueError, TypeError):
            return None

        columns = model.__table__.columns
        assignments = {}
        for name, value in (values or {}).items():
            assignments[name] = self._coerce(self._column(model, name), value)
        for name, delta in increments.items():
            column = self._column(model, name)
            assignments[name] = getattr(model, column.key) + self._coerce(column, delta)
        if not assignments:
            raise ConstraintViolation("update requires at least one field")

        stmt = (
            update(model)
            .where(model.id == key, *self._where(model, expected))
            .values(**assignments)
            .returning(*columns)
            .execution_options(synchronize_session=False)
        )
        follow_model = None
        follow_values = None
        if follow_up is not None:
            follow_model = self._model(follow_up[0])
            follow_values = self._prepare_insert(follow_model, follow_up[1])

        async def work(session: AsyncSession):
            result = await session.execute(stmt)
            row = result.mappings().first()
            if row is None:
                return None
            if follow_model is not None:
                session.add(follow_model(**follow_values))
                await session.flush()
            return _row_to_dict(model, row)

        return await self._run(f"update {kind}", work)

    async def ping(self) -> bool:
        async def work(session: AsyncSession):
            await session.execute(select(1))
            return True

        return await self._run("ping", work)
