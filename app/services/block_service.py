"""
Block service containing business logic for block relationships.
Handles block state transitions, bidirectional queries, statistics and
the follow cascade that runs when a block is put in force.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.core.collaborators import FollowGraph, UserProfileLookup
from app.core.exceptions import ConflictError, InvalidOperationError, NotFoundError
from app.core.users_client import UserPlatformException, users_client
from app.models.user_block import UserBlock
from app.repositories.block_repo import BlockRepository
from app.schemas.user import PublicUserProfile
from app.services.follow_cascade import FollowCascade

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("reason", "is_active")


class BlockService:
    """Service for block relationship operations."""

    def __init__(
        self,
        store: BlockRepository,
        profiles: UserProfileLookup = users_client,
        follow_graph: FollowGraph = users_client,
    ):
        """
        Initialize block service.

        Args:
            store: Shared block relationship store
            profiles: Public profile lookup used to enrich lists
            follow_graph: Follow-graph mutator used by the cascade
        """
        self.store = store
        self.profiles = profiles
        self.cascade = FollowCascade(follow_graph)

    async def _insert_or_reactivate(
        self,
        actor_id: str,
        target_id: str,
        reason: Optional[str]
    ) -> Optional[UserBlock]:
        """
        Put the actor -> target edge in force.

        Returns:
            The active edge, or None if a concurrent writer won the race

        Raises:
            ConflictError: If the edge is already active
        """
        existing = await self.store.find(actor_id, target_id)

        if existing is None:
            try:
                return await self.store.insert(actor_id, target_id, reason)
            except ConflictError:
                return None

        if existing.is_active:
            raise ConflictError("User is already blocked")

        return await self.store.reactivate(actor_id, target_id, reason)

    async def create_block(
        self,
        actor_id: str,
        target_id: str,
        reason: Optional[str] = None
    ) -> UserBlock:
        """
        Block a user, or reactivate a previously deactivated block.

        Args:
            actor_id: User creating the block
            target_id: User being blocked
            reason: Optional reason (replaces any previous reason)

        Returns:
            The active UserBlock

        Raises:
            InvalidOperationError: If actor tries to block themselves
            ConflictError: If the user is already blocked
        """
        if actor_id == target_id:
            raise InvalidOperationError("You cannot block yourself")

        block = await self._insert_or_reactivate(actor_id, target_id, reason)
        if block is None:
            # Lost a race on the unique pair; the retry sees the winner's row
            logger.info(f"Retrying block {actor_id} -> {target_id} after concurrent write")
            block = await self._insert_or_reactivate(actor_id, target_id, reason)
        if block is None:
            raise ConflictError("User is already blocked")

        logger.info(f"User {actor_id} blocked {target_id}")

        await self.cascade.run(actor_id, target_id)
        return block

    async def update_block(
        self,
        actor_id: str,
        target_id: str,
        patch: Dict[str, Any]
    ) -> UserBlock:
        """
        Update reason and/or is_active of an existing block.

        Args:
            actor_id: User who created the block
            target_id: User who was blocked
            patch: Fields to change; keys other than reason/is_active are ignored

        Returns:
            Updated UserBlock

        Raises:
            NotFoundError: If no block exists for the pair
        """
        existing = await self.store.find(actor_id, target_id)
        if existing is None:
            raise NotFoundError("Block relationship not found")

        changes = {key: value for key, value in patch.items() if key in UPDATABLE_FIELDS}
        block = await self.store.update(actor_id, target_id, **changes)

        if block.is_active and not existing.is_active:
            logger.info(f"Block {actor_id} -> {target_id} reactivated by update")
            await self.cascade.run(actor_id, target_id)
        elif existing.is_active and not block.is_active:
            logger.info(f"Block {actor_id} -> {target_id} deactivated")

        return block

    async def remove_block(self, actor_id: str, target_id: str) -> Dict[str, str]:
        """
        Unblock a user by deleting the edge permanently.

        Follow relationships are not restored; users must follow again
        themselves.

        Raises:
            NotFoundError: If no block exists for the pair
        """
        await self.store.delete(actor_id, target_id)
        logger.info(f"User {actor_id} unblocked {target_id}")
        return {"message": "User unblocked successfully"}

    async def is_blocked(self, user_a: str, user_b: str) -> bool:
        """True if user_a has an active block on user_b."""
        if not user_a or not user_b or user_a == user_b:
            return False
        return await self.store.exists_active(user_a, user_b)

    async def is_blocked_by(self, user_a: str, user_b: str) -> bool:
        """True if user_b has an active block on user_a."""
        return await self.is_blocked(user_b, user_a)

    async def has_block_between(self, user_a: str, user_b: str) -> bool:
        """True if an active block exists in either direction."""
        blocked, blocked_by = await asyncio.gather(
            self.is_blocked(user_a, user_b),
            self.is_blocked_by(user_a, user_b),
        )
        return blocked or blocked_by

    async def get_relationship(self, user_a: str, user_b: str) -> Dict[str, Any]:
        """
        Get the block relationship between two users from user_a's side.

        Returns:
            {"is_blocked": bool, "is_blocked_by": bool, "block": UserBlock | None}
            where block prefers the user_a -> user_b edge
        """
        forward, reverse = await asyncio.gather(
            self.store.find(user_a, user_b, active_only=True),
            self.store.find(user_b, user_a, active_only=True),
        )

        return {
            "is_blocked": forward is not None,
            "is_blocked_by": reverse is not None,
            "block": forward or reverse,
        }

    async def _enrich_with_profiles(
        self,
        blocks: List[UserBlock],
        counterpart: str
    ) -> List[Dict[str, Any]]:
        """
        Attach the counterpart user's public profile to each edge.

        Args:
            blocks: Edges to enrich
            counterpart: "blocked_id" or "blocker_id"
        """
        user_ids = [getattr(block, counterpart) for block in blocks]

        try:
            users = await self.profiles.get_users(user_ids)
        except UserPlatformException as e:
            logger.warning(f"Profile lookup failed, returning blocks without profiles: {e}")
            users = []

        profiles = {}
        for user in users:
            try:
                profile = PublicUserProfile.model_validate(user)
            except ValidationError as e:
                logger.warning(f"Skipping malformed profile from user platform: {e.error_count()} errors")
                continue
            profiles[profile.id] = profile

        return [
            {
                "id": block.id,
                "blocker_id": block.blocker_id,
                "blocked_id": block.blocked_id,
                "reason": block.reason,
                "is_active": block.is_active,
                "created_at": block.created_at,
                "updated_at": block.updated_at,
                "user": profiles.get(getattr(block, counterpart)),
            }
            for block in blocks
        ]

    async def list_blocked(self, actor_id: str) -> List[Dict[str, Any]]:
        """Get active blocks created by the actor, with blocked users' profiles."""
        blocks = await self.store.list_where_blocker_is(actor_id)
        return await self._enrich_with_profiles(blocks, "blocked_id")

    async def list_blocked_by(self, actor_id: str) -> List[Dict[str, Any]]:
        """Get active blocks against the actor, with blockers' profiles."""
        blocks = await self.store.list_where_blocked_is(actor_id)
        return await self._enrich_with_profiles(blocks, "blocker_id")

    async def get_stats(self, actor_id: str) -> Dict[str, int]:
        """Count active blocks in each direction for the actor."""
        blocked_count, blocked_by_count = await asyncio.gather(
            self.store.count(blocker_id=actor_id, is_active=True),
            self.store.count(blocked_id=actor_id, is_active=True),
        )

        return {
            "blocked_count": blocked_count,
            "blocked_by_count": blocked_by_count,
        }
