"""
Base repository with common query helpers.
All repositories should extend this class for database access.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common query operations.

    Repositories are built over a session factory rather than a single
    session. Every operation opens its own short-lived session, so one
    repository instance can be shared across requests and used from
    concurrent tasks (``asyncio.gather``) safely.
    """

    def __init__(self, model: Type[ModelType], session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session_factory: Async session factory
        """
        self.model = model
        self.session_factory = session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session that commits on success and rolls back on error.

        Example:
            ```python
            async with self.session() as db:
                db.add(instance)
            ```
        """
        async with self.session_factory() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    def _apply_filters(self, query, filters: dict):
        """Apply equality filters for known columns."""
        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)
        return query

    async def count(self, **filters) -> int:
        """
        Count records matching filters.

        Args:
            **filters: Equality filter conditions

        Returns:
            Number of matching records

        Example:
            ```python
            count = await block_repo.count(blocker_id=user_id, is_active=True)
            ```
        """
        query = self._apply_filters(select(func.count()).select_from(self.model), filters)

        async with self.session() as db:
            result = await db.execute(query)
            return result.scalar_one()

    async def filter_by(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: Optional[Any] = None,
        **filters
    ) -> List[ModelType]:
        """
        Filter records by conditions.

        Args:
            limit: Maximum number of records (None for all)
            offset: Number of records to skip
            order_by: Optional SQLAlchemy order_by clause
            **filters: Equality filter conditions

        Returns:
            List of matching model instances
        """
        query = self._apply_filters(select(self.model), filters)

        if order_by is not None:
            query = query.order_by(order_by)

        query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        async with self.session() as db:
            result = await db.execute(query)
            return list(result.scalars().all())
