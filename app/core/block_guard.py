"""
Access guard for routes that name a target user.

The guard denies a request when an active block exists between the caller
and the target in either direction. Where the target id comes from (path,
query or body) is decided per route by a target extractor, so the guard
itself stays generic.
"""
import json
import logging
from typing import Awaitable, Callable, Optional

from fastapi import Request

from app.core.exceptions import BlockDirection, ForbiddenError
from app.repositories.block_repo import BlockRepository

logger = logging.getLogger(__name__)

TargetExtractor = Callable[[Request], Awaitable[Optional[str]]]


def _as_id(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def from_path(name: str) -> TargetExtractor:
    """Read the target id from a path parameter."""
    async def extract(request: Request) -> Optional[str]:
        return _as_id(request.path_params.get(name))
    return extract


def from_query(name: str) -> TargetExtractor:
    """Read the target id from a query parameter."""
    async def extract(request: Request) -> Optional[str]:
        return _as_id(request.query_params.get(name))
    return extract


def from_body(name: str) -> TargetExtractor:
    """Read the target id from a top-level key of a JSON body."""
    async def extract(request: Request) -> Optional[str]:
        body = await request.body()
        if not body:
            return None
        try:
            data = json.loads(body)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        return _as_id(data.get(name))
    return extract


def first_of(*extractors: TargetExtractor) -> TargetExtractor:
    """Use the first extractor that finds a target id."""
    async def extract(request: Request) -> Optional[str]:
        for extractor in extractors:
            target_id = await extractor(request)
            if target_id:
                return target_id
        return None
    return extract


default_target_extractor = first_of(
    from_path("user_id"),
    from_body("user_id"),
    from_query("user_id"),
)


class AccessGuard:
    """Denies interaction between users with a block in either direction."""

    def __init__(self, store: BlockRepository):
        self.store = store

    async def check(self, actor_id: Optional[str], target_id: Optional[str]) -> None:
        """
        Raise if the actor may not interact with the target.

        Both directions are stored as separate ordered edges, so both are
        looked up. "Blocked by target" is checked first.

        Args:
            actor_id: Caller user ID (None skips the check)
            target_id: Target user ID (None skips the check)

        Raises:
            ForbiddenError: direction BLOCKED_BY if the target blocked the
                actor, BLOCKING if the actor blocked the target
        """
        if not actor_id or not target_id or actor_id == target_id:
            return

        if await self.store.exists_active(target_id, actor_id):
            logger.info(f"Guard denied {actor_id} -> {target_id}: blocked by target")
            raise ForbiddenError(BlockDirection.BLOCKED_BY)

        if await self.store.exists_active(actor_id, target_id):
            logger.info(f"Guard denied {actor_id} -> {target_id}: actor blocked target")
            raise ForbiddenError(BlockDirection.BLOCKING)
