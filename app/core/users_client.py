"""
User Platform API Client.
Handles public profile lookups and follow-graph mutations against the
user platform, which owns user identities and the follow graph.
"""
import logging
from typing import Optional, Dict, Any, List
import httpx
from app.config import settings
from app.core.cache import cache_user_profile, get_cached_user_profile

logger = logging.getLogger(__name__)


class UserPlatformException(Exception):
    """Exception raised for user platform API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UserPlatformClient:
    """
    Client for communicating with the user platform API.

    Implements both the UserProfileLookup and FollowGraph collaborator
    protocols. Profile reads are cached in Redis; follow mutations never are.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        """Initialize user platform API client."""
        self.base_url = (base_url or settings.user_platform_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.user_platform_api_key
        self.timeout = timeout or settings.user_platform_api_timeout

    def _get_headers(self) -> Dict[str, str]:
        """Get default headers for server-to-server requests."""
        return {
            "X-API-Key": self.api_key,
            "Content-Type": "application/json",
        }

    async def get_user(self, user_id: str, use_cache: bool = True) -> Dict[str, Any]:
        """
        Get a public user profile.

        Args:
            user_id: User platform user ID
            use_cache: Whether to use cache (default: True)

        Returns:
            User data dictionary

        Raises:
            UserPlatformException: If user not found or API error

        Example:
            ```python
            user = await users_client.get_user("cmgoip1nt0001s89pzkw7bzlg")
            username = user["username"]
            ```
        """
        if use_cache:
            cached_user = await get_cached_user_profile(user_id)
            if cached_user:
                return cached_user

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/api/v1/users/{user_id}",
                    headers=self._get_headers()
                )
                response.raise_for_status()
                user_data = response.json()

                if use_cache:
                    await cache_user_profile(user_id, user_data)

                return user_data

            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    raise UserPlatformException(f"User {user_id} not found", status_code=404)
                raise UserPlatformException(
                    f"Failed to fetch user: {e.response.text[:200]}",
                    status_code=e.response.status_code
                )
            except httpx.RequestError as e:
                # If the platform is down, fall back to cache even if use_cache=False
                cached_user = await get_cached_user_profile(user_id)
                if cached_user:
                    return cached_user
                raise UserPlatformException(f"User platform unavailable: {str(e)}")

    async def get_users(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Get multiple public profiles in a single request (batch fetch).
        Checks cache first and only fetches missing users from the API.

        Args:
            user_ids: List of user IDs

        Returns:
            List of user data dictionaries (order not guaranteed, missing users omitted)

        Raises:
            UserPlatformException: If API error and nothing is cached
        """
        if not user_ids:
            return []

        cached_users = []
        uncached_ids = []

        for user_id in dict.fromkeys(user_ids):
            cached = await get_cached_user_profile(user_id)
            if cached:
                cached_users.append(cached)
            else:
                uncached_ids.append(user_id)

        if not uncached_ids:
            return cached_users

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/api/v1/users/batch",
                    headers=self._get_headers(),
                    json={"user_ids": uncached_ids}
                )
                response.raise_for_status()
                fetched_users = response.json()

                for user in fetched_users:
                    if user.get("id"):
                        await cache_user_profile(user["id"], user)

                return cached_users + fetched_users

            except httpx.HTTPStatusError as e:
                if cached_users:
                    logger.warning(f"Batch fetch failed, returning {len(cached_users)} cached users")
                    return cached_users
                raise UserPlatformException(
                    f"Failed to fetch users: {e.response.text[:200]}",
                    status_code=e.response.status_code
                )
            except httpx.RequestError as e:
                if cached_users:
                    logger.warning(f"User platform unavailable, returning {len(cached_users)} cached users")
                    return cached_users
                raise UserPlatformException(f"User platform request failed: {str(e)}")

    async def search_users(self, query: str, limit: int = 20) -> Dict[str, Any]:
        """
        Search users by name or username.

        Args:
            query: Search query string
            limit: Maximum number of results (1-100)

        Returns:
            Search results: {"users": [...]}
        """
        if not query or not query.strip():
            return {"users": []}

        limit = max(1, min(limit, 100))

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/api/v1/users/search",
                    headers=self._get_headers(),
                    params={"q": query.strip(), "limit": limit}
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                raise UserPlatformException(
                    f"Failed to search users: {e.response.text[:200]}",
                    status_code=e.response.status_code
                )
            except httpx.RequestError as e:
                raise UserPlatformException(f"User platform request failed: {str(e)}")

    async def _get_follow_list(self, user_id: str, relation: str, limit: int, skip: int) -> List[Dict[str, Any]]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/api/v1/users/{user_id}/{relation}",
                    headers=self._get_headers(),
                    params={"limit": limit, "skip": skip}
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                raise UserPlatformException(
                    f"Failed to fetch {relation}: {e.response.text[:200]}",
                    status_code=e.response.status_code
                )
            except httpx.RequestError as e:
                raise UserPlatformException(f"User platform request failed: {str(e)}")

    async def get_followers(self, user_id: str, limit: int = 20, skip: int = 0) -> List[Dict[str, Any]]:
        """Get users following the given user."""
        return await self._get_follow_list(user_id, "followers", limit, skip)

    async def get_following(self, user_id: str, limit: int = 20, skip: int = 0) -> List[Dict[str, Any]]:
        """Get users the given user follows."""
        return await self._get_follow_list(user_id, "following", limit, skip)

    async def _mutate_follow(self, method: str, follower_id: str, followee_id: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}/api/v1/users/{follower_id}/following/{followee_id}",
                    headers=self._get_headers()
                )
                response.raise_for_status()
                return response.json() if response.content else {"success": True}
            except httpx.HTTPStatusError as e:
                raise UserPlatformException(
                    f"Follow update rejected: {e.response.text[:200]}",
                    status_code=e.response.status_code
                )
            except httpx.RequestError as e:
                raise UserPlatformException(f"User platform request failed: {str(e)}")

    async def follow(self, follower_id: str, followee_id: str) -> Dict[str, Any]:
        """
        Create a follow edge follower -> followee.

        Raises:
            UserPlatformException: If already following or API error
        """
        return await self._mutate_follow("POST", follower_id, followee_id)

    async def unfollow(self, follower_id: str, followee_id: str) -> Dict[str, Any]:
        """
        Remove the follow edge follower -> followee.

        Raises:
            UserPlatformException: If not following (404) or API error
        """
        return await self._mutate_follow("DELETE", follower_id, followee_id)

    async def health_check(self) -> bool:
        """
        Check if the user platform API is available.

        Returns:
            True if healthy, False otherwise
        """
        async with httpx.AsyncClient(timeout=5) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/health",
                    headers=self._get_headers()
                )
                return response.status_code == 200
            except httpx.RequestError:
                return False


# Global user platform client instance
users_client = UserPlatformClient()
