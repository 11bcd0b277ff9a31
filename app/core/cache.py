"""
Redis cache for public user profiles.

Only profiles are cached. Block state is always read from the database so
that a new block takes effect on the very next request. Every operation is
a no-op when Redis is not configured or unreachable at startup.
"""
import json
import logging
from typing import Any, Optional
from redis import asyncio as aioredis
from app.config import settings

logger = logging.getLogger(__name__)

PROFILE_KEY = "user:{user_id}"


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self):
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis, or stay disabled if it is unconfigured or down."""
        if not settings.redis_url:
            logger.info("No Redis URL provided - running without profile cache")
            return

        client = aioredis.from_url(
            settings.redis_url,
            password=settings.redis_password or None,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
        try:
            await client.ping()
        except aioredis.RedisError as e:
            logger.warning(f"Could not connect to Redis, running without profile cache: {e}")
            await client.aclose()
            return

        self.redis = client
        logger.info("Connected to Redis")

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get_json(self, key: str) -> Optional[Any]:
        """Get a JSON value, or None when missing or the cache is disabled."""
        if not self.redis:
            return None

        value = await self.redis.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"Dropping undecodable cache entry {key}")
            await self.redis.delete(key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int) -> bool:
        """Store a JSON value with a TTL in seconds."""
        if not self.redis:
            return False

        return bool(await self.redis.setex(key, ttl, json.dumps(value)))

    async def ping(self) -> bool:
        """Check the Redis connection is alive."""
        if not self.redis:
            return False

        return bool(await self.redis.ping())


# Global cache instance
cache = RedisCache()


async def cache_user_profile(user_id: str, profile: dict) -> bool:
    """Cache a public user profile for ``cache_user_ttl`` seconds."""
    return await cache.set_json(PROFILE_KEY.format(user_id=user_id), profile, settings.cache_user_ttl)


async def get_cached_user_profile(user_id: str) -> Optional[dict]:
    return await cache.get_json(PROFILE_KEY.format(user_id=user_id))
