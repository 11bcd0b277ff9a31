"""
Boundary Protocols - contracts for collaborators this service calls but
does not own.

Implementations are supplied by the application shell (see users_client)
and by fakes in tests.
"""
from typing import Any, Dict, List, Optional, Protocol


class UserProfileLookup(Protocol):
    """Public profile lookup used to enrich block lists."""

    async def get_user(self, user_id: str, use_cache: bool = True) -> Dict[str, Any]: ...

    async def get_users(self, user_ids: List[str]) -> List[Dict[str, Any]]: ...


class FollowGraph(Protocol):
    """Follow-graph mutator. Raises when the platform refuses the change."""

    async def follow(self, follower_id: str, followee_id: str) -> Optional[Dict[str, Any]]: ...

    async def unfollow(self, follower_id: str, followee_id: str) -> Optional[Dict[str, Any]]: ...
