"""Repository: the storage contract every service is constructed with.

Each call opens its own ``AsyncSession`` and commits on return, so
independent reads can run side by side under ``asyncio.gather``.  Work that
must land atomically goes through ``transaction()``, which hands back a
repository pinned to one session and one commit:

    async with repo.transaction() as tx:
        deal = await tx.insert(Deal, {...})
        await tx.update(Requirement, Eq(Requirement.id, rid), {...})

Every SQLAlchemy failure is logged and re-raised as ``StorageError``.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from estate_match.domain.errors import StorageError
from estate_match.infra.filters import Filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Join:
    """Join ``target`` on ``onclause``; ``outer=True`` for a LEFT OUTER JOIN."""

    target: Any
    onclause: Any
    outer: bool = False


class Repository:
    """Filtered reads, inserts, updates, deletes and counts over the ORM models."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        session: Optional[AsyncSession] = None,
    ):
        self._session_factory = session_factory
        self._session = session

    @property
    def in_transaction(self) -> bool:
        return self._session is not None

    # ------------------------------------------------------------------
    # Session handling
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _unit(self):
        if self._session is not None:
            yield self._session
            return
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    @asynccontextmanager
    async def transaction(self):
        """Pin every operation on the yielded repository to one commit.

        Rolls back everything if the block raises. Nested calls reuse the
        outer transaction.
        """
        if self._session is not None:
            yield self
            return
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield Repository(self._session_factory, session=session)
        except SQLAlchemyError as exc:
            logger.exception("Repository transaction failed")
            raise StorageError(f"transaction failed: {exc}") from exc

    async def _run(self, op: str, entity, fn):
        try:
            async with self._unit() as session:
                return await fn(session)
        except SQLAlchemyError as exc:
            name = getattr(entity, "__name__", str(entity))
            logger.exception("Repository %s on %s failed", op, name)
            raise StorageError(f"{op} on {name} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _build_select(stmt, where, joins, order_by, limit):
        for join in joins:
            stmt = stmt.join(join.target, join.onclause, isouter=join.outer)
        if where is not None:
            stmt = stmt.where(where.to_clause())
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    async def select(
        self,
        entity,
        where: Optional[Filter] = None,
        *,
        joins: Sequence[Join] = (),
        order_by: Sequence = (),
        limit: Optional[int] = None,
    ) -> list:
        """Return ``entity`` rows matching ``where``."""
        stmt = self._build_select(select(entity), where, joins, order_by, limit)

        async def _op(session):
            result = await session.execute(stmt)
            return list(result.scalars().all())

        return await self._run("select", entity, _op)

    async def select_rows(
        self,
        *entities,
        where: Optional[Filter] = None,
        joins: Sequence[Join] = (),
        order_by: Sequence = (),
        limit: Optional[int] = None,
    ) -> list[tuple]:
        """Return tuples of several entities, e.g. ``(Deal, Requirement)`` pairs."""
        stmt = self._build_select(select(*entities), where, joins, order_by, limit)

        async def _op(session):
            result = await session.execute(stmt)
            return [tuple(row) for row in result.all()]

        return await self._run("select", entities[0], _op)

    async def get(self, entity, ident: str, *, refresh: bool = False):
        """Primary-key lookup. Returns None when absent.

        ``refresh=True`` reloads a row already in the transaction's identity
        map, e.g. after an ``update`` touched it.
        """

        async def _op(session):
            return await session.get(entity, ident, populate_existing=refresh)

        return await self._run("get", entity, _op)

    async def count(
        self,
        entity,
        where: Optional[Filter] = None,
        *,
        joins: Sequence[Join] = (),
    ) -> int:
        """Count-only query mode for summaries and existence checks."""
        stmt = self._build_select(
            select(func.count()).select_from(entity), where, joins, (), None
        )

        async def _op(session):
            result = await session.execute(stmt)
            return int(result.scalar_one())

        return await self._run("count", entity, _op)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, entity, values: dict):
        """Insert one row and return it with defaults populated."""

        async def _op(session):
            row = entity(**values)
            session.add(row)
            await session.flush()
            await session.refresh(row)
            return row

        return await self._run("insert", entity, _op)

    async def update(self, entity, where: Filter, values: dict) -> int:
        """Update matching rows. Returns the number of affected rows."""
        stmt = sa_update(entity).where(where.to_clause()).values(**values)

        async def _op(session):
            result = await session.execute(stmt)
            return result.rowcount

        return await self._run("update", entity, _op)

    async def delete(self, entity, where: Filter) -> int:
        """Delete matching rows. Returns the number of affected rows."""
        stmt = sa_delete(entity).where(where.to_clause())

        async def _op(session):
            result = await session.execute(stmt)
            return result.rowcount

        return await self._run("delete", entity, _op)
