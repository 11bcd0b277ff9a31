"""
Response filter that removes blocked parties' entities from read results.

A single entity owned by someone the viewer blocked, or who blocked the
viewer, becomes absent (rendered as 404). Lists drop such entities and
keep the order of the rest. A relationship check that errors hides the
entity rather than failing the response.
"""
import asyncio
import contextlib
import functools
import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable, List, Optional

from app.config import settings
from app.core.exceptions import NotFoundError
from app.repositories.block_repo import BlockRepository

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[Any], Optional[str]]

OWNER_KEYS = ("owner_id", "user_id", "id", "_id")


def default_owner_resolver(entity: Any) -> Optional[str]:
    """Find the owning user id of a dict or object, or None."""
    for key in OWNER_KEYS:
        if isinstance(entity, Mapping):
            value = entity.get(key)
        else:
            value = getattr(entity, key, None)
        if value:
            return str(value)
    return None


class ResponseFilter:
    """Scrubs entities owned by blocked parties from responses."""

    def __init__(
        self,
        store: BlockRepository,
        owner_resolver: OwnerResolver = default_owner_resolver,
        max_concurrency: Optional[int] = None,
    ):
        """
        Args:
            store: Shared block relationship store
            owner_resolver: Maps an entity to its owner's user id
            max_concurrency: Cap on concurrent relationship checks per call
        """
        self.store = store
        self.owner_resolver = owner_resolver
        self.max_concurrency = max_concurrency or settings.block_filter_concurrency

    async def _is_hidden(
        self,
        viewer_id: str,
        owner_id: str,
        limiter: Optional[asyncio.Semaphore] = None
    ) -> bool:
        async with limiter or contextlib.nullcontext():
            try:
                if await self.store.exists_active(viewer_id, owner_id):
                    return True
                return await self.store.exists_active(owner_id, viewer_id)
            except Exception:
                logger.warning(
                    f"Block check failed for viewer {viewer_id} and owner {owner_id}, hiding entity",
                    exc_info=True,
                )
                return True

    async def filter_one(self, viewer_id: Optional[str], entity: Any) -> Optional[Any]:
        """
        Return the entity, or None if viewer and owner are blocked.

        Entities without an owner, or owned by the viewer, pass through.
        """
        if entity is None or not viewer_id:
            return entity

        owner_id = self.owner_resolver(entity)
        if owner_id is None or owner_id == viewer_id:
            return entity

        if await self._is_hidden(viewer_id, owner_id):
            return None
        return entity

    async def filter_many(self, viewer_id: Optional[str], entities: Iterable[Any]) -> List[Any]:
        """
        Drop entities whose owner is blocked by or blocking the viewer.

        Each distinct owner is checked once; checks run concurrently and
        are all joined before the result is built, in input order.
        Cancelling the caller cancels every pending check.
        """
        items = list(entities)
        if not viewer_id or not items:
            return items

        owners = [self.owner_resolver(item) for item in items]
        to_check = [
            owner_id for owner_id in dict.fromkeys(owners)
            if owner_id is not None and owner_id != viewer_id
        ]

        limiter = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._is_hidden(viewer_id, owner_id, limiter) for owner_id in to_check)
        )
        hidden = {owner_id for owner_id, is_hidden in zip(to_check, results) if is_hidden}

        return [item for item, owner_id in zip(items, owners) if owner_id not in hidden]

    async def apply(self, viewer_id: Optional[str], result: Any, collection_key: str = "users") -> Any:
        """
        Filter a handler result of any supported shape.

        Lists are filtered element-wise, a mapping holding a list under
        ``collection_key`` has that list filtered, anything else is
        treated as a single entity.

        Raises:
            NotFoundError: If a single entity is hidden from the viewer
        """
        if result is None:
            return None

        if isinstance(result, (list, tuple)):
            return await self.filter_many(viewer_id, result)

        if isinstance(result, Mapping) and isinstance(result.get(collection_key), list):
            page = dict(result)
            page[collection_key] = await self.filter_many(viewer_id, result[collection_key])
            return page

        if await self.filter_one(viewer_id, result) is None:
            raise NotFoundError("User not found")
        return result


class ViewerFilter:
    """A ResponseFilter bound to the current viewer for one request."""

    def __init__(self, response_filter: ResponseFilter, viewer_id: Optional[str]):
        self.response_filter = response_filter
        self.viewer_id = viewer_id

    async def apply(self, result: Any, collection_key: str = "users") -> Any:
        return await self.response_filter.apply(self.viewer_id, result, collection_key)


def filter_blocked(filter_param: str = "viewer_filter", collection_key: str = "users"):
    """
    Decorate a FastAPI endpoint so its result is block-filtered.

    The endpoint must declare a ``ViewerFilter`` parameter (by default
    ``viewer_filter: ViewerFilter = Depends(get_viewer_filter)``).

    Example:
        ```python
        @router.get("/{user_id}/followers")
        @filter_blocked()
        async def get_followers(user_id: str, viewer_filter: ViewerFilter = Depends(get_viewer_filter)):
            return await users_client.get_followers(user_id)
        ```
    """
    def decorator(endpoint):
        @functools.wraps(endpoint)
        async def wrapper(*args, **kwargs):
            result = await endpoint(*args, **kwargs)
            viewer_filter: ViewerFilter = kwargs[filter_param]
            return await viewer_filter.apply(result, collection_key)
        return wrapper
    return decorator
