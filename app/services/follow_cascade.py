"""
Follow cascade run after a block is put in force.

The cascade is best-effort: it runs after the block edge has been
committed, removes the follow edges in both directions through the
follow-graph collaborator, and reports failures instead of raising them.
There is no compensation if it fails and the block stands regardless.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from app.core.collaborators import FollowGraph
from app.core.exceptions import DependencyError

logger = logging.getLogger(__name__)


@dataclass
class CascadeStep:
    """Outcome of one unfollow call."""
    follower_id: str
    followee_id: str
    error: Optional[DependencyError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class CascadeReport:
    """Outcome of a whole cascade. Never raised, only returned."""
    steps: List[CascadeStep] = field(default_factory=list)

    @property
    def failures(self) -> List[CascadeStep]:
        return [step for step in self.steps if not step.succeeded]

    @property
    def complete(self) -> bool:
        return not self.failures


class FollowCascade:
    """Removes follow edges between two users on a best-effort basis."""

    def __init__(self, follow_graph: FollowGraph):
        self.follow_graph = follow_graph

    async def _unfollow(self, follower_id: str, followee_id: str) -> CascadeStep:
        step = CascadeStep(follower_id=follower_id, followee_id=followee_id)
        try:
            await self.follow_graph.unfollow(follower_id, followee_id)
        except Exception as e:
            step.error = DependencyError(
                f"Could not remove follow {follower_id} -> {followee_id}: {e}",
                cause=e,
            )
            logger.warning(
                f"Follow cascade step skipped: {step.error.message}",
                extra={"error_code": step.error.code},
            )
        return step

    async def run(self, blocker_id: str, blocked_id: str) -> CascadeReport:
        """
        Remove blocker -> blocked and blocked -> blocker follow edges.

        Args:
            blocker_id: User who created the block
            blocked_id: User who was blocked

        Returns:
            CascadeReport listing each step and any swallowed DependencyError
        """
        steps = await asyncio.gather(
            self._unfollow(blocker_id, blocked_id),
            self._unfollow(blocked_id, blocker_id),
        )
        report = CascadeReport(steps=list(steps))

        if report.complete:
            logger.info(f"Follow cascade complete for block {blocker_id} -> {blocked_id}")
        return report
