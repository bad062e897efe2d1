"""Entity storage — single-row reads and atomic single-row writes.

Every write is one statement keyed by id, committed in its own session.
Two admins updating the same row serialize at PostgreSQL; there is no
version check, so the last writer wins. Callers may pin column values
(`expected`) so a write only lands on the state it was validated against.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.admin.errors import PersistenceError
from src.models import MODELS_BY_KIND, Profile
from src.models.enums import EntityKind
from src.security.guard import Actor

logger = logging.getLogger(__name__)


class EntityStore(Protocol):
    """Storage collaborator used by AdminActionService."""

    async def fetch(self, kind: EntityKind, entity_id: str) -> dict[str, Any] | None: ...

    async def fetch_many(self, kind: EntityKind, limit: int) -> list[dict[str, Any]]: ...

    async def insert(self, kind: EntityKind, values: dict[str, Any]) -> dict[str, Any]: ...

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        values: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None: ...

    async def delete(self, kind: EntityKind, entity_id: str) -> bool: ...


def _table(kind: EntityKind) -> Table:
    return MODELS_BY_KIND[kind].__table__  # type: ignore[return-value]


def _coerce_id(entity_id: Any) -> uuid.UUID | None:
    """Parse an id. Malformed ids cannot match a row."""
    if isinstance(entity_id, uuid.UUID):
        return entity_id
    try:
        return uuid.UUID(str(entity_id))
    except ValueError:
        return None


class SqlEntityStore:
    """EntityStore backed by the async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch(self, kind: EntityKind, entity_id: str) -> dict[str, Any] | None:
        row_id = _coerce_id(entity_id)
        if row_id is None:
            return None
        table = _table(kind)
        async with self._session_factory() as db:
            result = await db.execute(select(table).where(table.c.id == row_id))
            row = result.mappings().first()
        return dict(row) if row is not None else None

    async def fetch_many(self, kind: EntityKind, limit: int) -> list[dict[str, Any]]:
        table = _table(kind)
        async with self._session_factory() as db:
            result = await db.execute(
                select(table).order_by(table.c.created_at.desc()).limit(limit)
            )
            return [dict(row) for row in result.mappings().all()]

    async def insert(self, kind: EntityKind, values: dict[str, Any]) -> dict[str, Any]:
        table = _table(kind)
        async with self._session_factory() as db:
            try:
                result = await db.execute(insert(table).values(**values).returning(*table.c))
                row = result.mappings().one()
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                raise PersistenceError(f"Insert into {kind.value} failed") from exc
        return dict(row)

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        values: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Conditional update keyed by id.

        Returns None if the row is gone or no longer matches `expected`.
        """
        row_id = _coerce_id(entity_id)
        if row_id is None:
            return None
        table = _table(kind)
        stmt = update(table).where(table.c.id == row_id)
        for column, value in (expected or {}).items():
            stmt = stmt.where(table.c[column] == value)
        async with self._session_factory() as db:
            try:
                result = await db.execute(stmt.values(**values).returning(*table.c))
                row = result.mappings().first()
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                raise PersistenceError(f"Update of {kind.value}:{entity_id} failed") from exc
        return dict(row) if row is not None else None

    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        row_id = _coerce_id(entity_id)
        if row_id is None:
            return False
        table = _table(kind)
        async with self._session_factory() as db:
            try:
                result = await db.execute(delete(table).where(table.c.id == row_id))
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                raise PersistenceError(f"Delete of {kind.value}:{entity_id} failed") from exc
        return bool(result.rowcount)  # type: ignore[attr-defined]


class SqlActorDirectory:
    """Resolves actor roles from the profiles table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def lookup(self, actor_id: str) -> Actor | None:
        row_id = _coerce_id(actor_id)
        if row_id is None:
            return None
        async with self._session_factory() as db:
            result = await db.execute(
                select(Profile.role, Profile.status).where(Profile.id == row_id)
            )
            row = result.first()
        if row is None:
            return None
        return Actor(id=str(row_id), role=row.role, status=row.status)
