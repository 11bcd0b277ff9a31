"""
UserBlock repository for block edge persistence.

Every lookup is keyed by the ordered pair (blocker_id, blocked_id). The
unique constraint on that pair is what keeps concurrent inserts from
producing two edges; an insert that loses the race surfaces as
ConflictError.
"""
import logging
from typing import List, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import ConflictError, InvalidOperationError, NotFoundError
from app.models.user_block import UserBlock
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _pair(blocker_id: str, blocked_id: str):
    """WHERE clause for one ordered pair."""
    return and_(
        UserBlock.blocker_id == blocker_id,
        UserBlock.blocked_id == blocked_id,
    )


class BlockRepository(BaseRepository[UserBlock]):
    """Repository for UserBlock operations."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize block repository.

        Args:
            session_factory: Async session factory
        """
        super().__init__(UserBlock, session_factory)

    async def _get_pair(self, db: AsyncSession, blocker_id: str, blocked_id: str) -> Optional[UserBlock]:
        result = await db.execute(select(UserBlock).where(_pair(blocker_id, blocked_id)))
        return result.scalar_one_or_none()

    async def find(
        self,
        blocker_id: str,
        blocked_id: str,
        active_only: bool = False
    ) -> Optional[UserBlock]:
        """
        Get the edge for an ordered pair.

        Args:
            blocker_id: User who blocked
            blocked_id: User who was blocked
            active_only: Ignore deactivated edges

        Returns:
            UserBlock or None if no edge exists
        """
        query = select(UserBlock).where(_pair(blocker_id, blocked_id))
        if active_only:
            query = query.where(UserBlock.is_active.is_(True))

        async with self.session() as db:
            result = await db.execute(query)
            return result.scalar_one_or_none()

    async def exists_active(self, blocker_id: str, blocked_id: str) -> bool:
        """
        Check whether an active edge exists for an ordered pair.

        This is the hot path for the access guard and response filter.
        """
        query = (
            select(UserBlock.id)
            .where(_pair(blocker_id, blocked_id), UserBlock.is_active.is_(True))
            .limit(1)
        )

        async with self.session() as db:
            result = await db.execute(query)
            return result.scalar_one_or_none() is not None

    async def insert(
        self,
        blocker_id: str,
        blocked_id: str,
        reason: Optional[str] = None
    ) -> UserBlock:
        """
        Insert a new active edge.

        Args:
            blocker_id: User who blocks
            blocked_id: User being blocked
            reason: Optional reason

        Returns:
            Created UserBlock

        Raises:
            InvalidOperationError: If blocker and blocked are the same user
            ConflictError: If an edge already exists for the ordered pair
        """
        if blocker_id == blocked_id:
            raise InvalidOperationError("You cannot block yourself")

        block = UserBlock(
            blocker_id=blocker_id,
            blocked_id=blocked_id,
            reason=reason,
            is_active=True,
        )

        try:
            async with self.session() as db:
                db.add(block)
                await db.flush()
                await db.refresh(block)
        except IntegrityError as e:
            logger.info(f"Duplicate block edge {blocker_id} -> {blocked_id} rejected by unique constraint")
            raise ConflictError("User is already blocked") from e

        return block

    async def update(self, blocker_id: str, blocked_id: str, **patch) -> UserBlock:
        """
        Update fields of an existing edge.

        Args:
            blocker_id: User who blocked
            blocked_id: User who was blocked
            **patch: Fields to update (reason, is_active)

        Returns:
            Updated UserBlock

        Raises:
            NotFoundError: If no edge exists for the ordered pair
        """
        async with self.session() as db:
            block = await self._get_pair(db, blocker_id, blocked_id)
            if block is None:
                raise NotFoundError("Block relationship not found")

            for key, value in patch.items():
                setattr(block, key, value)

            await db.flush()
            await db.refresh(block)
            return block

    async def reactivate(
        self,
        blocker_id: str,
        blocked_id: str,
        reason: Optional[str] = None
    ) -> Optional[UserBlock]:
        """
        Flip a deactivated edge back to active, replacing its reason.

        The UPDATE only matches an inactive row, so of two concurrent
        reactivations exactly one sees a changed row.

        Returns:
            Reactivated UserBlock, or None if no inactive edge was found
        """
        async with self.session() as db:
            result = await db.execute(
                update(UserBlock)
                .where(_pair(blocker_id, blocked_id), UserBlock.is_active.is_(False))
                .values(is_active=True, reason=reason)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None

            return await self._get_pair(db, blocker_id, blocked_id)

    async def delete(self, blocker_id: str, blocked_id: str) -> None:
        """
        Delete an edge permanently (hard delete).

        Raises:
            NotFoundError: If no edge exists for the ordered pair
        """
        async with self.session() as db:
            result = await db.execute(delete(UserBlock).where(_pair(blocker_id, blocked_id)))
            if result.rowcount == 0:
                raise NotFoundError("Block relationship not found")

    async def list_where_blocker_is(self, user_id: str, active_only: bool = True) -> List[UserBlock]:
        """Get edges where the user is the blocker, newest first."""
        filters = {"blocker_id": user_id}
        if active_only:
            filters["is_active"] = True
        return await self.filter_by(order_by=UserBlock.created_at.desc(), **filters)

    async def list_where_blocked_is(self, user_id: str, active_only: bool = True) -> List[UserBlock]:
        """Get edges where the user is the one blocked, newest first."""
        filters = {"blocked_id": user_id}
        if active_only:
            filters["is_active"] = True
        return await self.filter_by(order_by=UserBlock.created_at.desc(), **filters)
