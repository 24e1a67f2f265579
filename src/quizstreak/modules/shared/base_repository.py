"""
Base Repository Pattern

Purpose
-------
Generic repository over SQLAlchemy 2.0 async sessions. Repositories build
queries against the session they are handed; they never commit, roll back
or apply business rules. Transaction boundaries belong to the service via
DatabaseService.get_transaction().

Usage
-----
    class StreakRepository(BaseRepository[Streak]):
        async def get_for_user(self, session, user_id, *, for_update=False):
            return await self.find_one_where(
                session, Streak.user_id == user_id, for_update=for_update
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Query helpers for one ORM model class `T`."""

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    @property
    def model_name(self) -> str:
        return self.model_class.__name__

    def _select(self, conditions: Sequence[ColumnElement[bool]]) -> Select[Any]:
        return select(self.model_class).where(*conditions)

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        """
        At most one row matching `conditions`.

        With `for_update=True` the row stays locked until the surrounding
        transaction ends (ignored by SQLite).
        """
        stmt = self._select(conditions)
        if for_update:
            stmt = stmt.with_for_update()

        row = (await session.execute(stmt)).scalar_one_or_none()
        self.log.debug(
            f"{self.model_name}: find_one_where",
            extra={"model": self.model_name, "found": row is not None, "locked": for_update},
        )
        return row

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        stmt = self._select(conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        rows = list((await session.execute(stmt)).scalars())
        self.log.debug(
            f"{self.model_name}: find_many_where",
            extra={"model": self.model_name, "found_count": len(rows), "limit": limit},
        )
        return rows

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        return instance

    async def flush(self, session: AsyncSession) -> None:
        """Send pending inserts so generated keys and constraints apply now."""
        await session.flush()
