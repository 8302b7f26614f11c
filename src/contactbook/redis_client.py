"""Redis connection pool.

Learn: Redis backs the rate limiter only. It's optional — if it can't
be reached at startup the app runs without rate limiting rather than
refusing to serve.
"""

from typing import Optional

import redis.asyncio as aioredis

from contactbook.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


class RedisUnavailable(RuntimeError):
    """Redis was never initialized (or failed to connect)."""


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool and verify it answers."""
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RedisUnavailable("Redis not initialized. Call init_redis() first.")
    return _redis
