"""
Redis connection for the reconciliation lock.

The pool is created lazily from ``settings.redis_url``; nothing connects
until the first pass (or health check) needs the lock backend.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.config import settings

logger = logging.getLogger(__name__)

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


async def lock_backend_available() -> bool:
    """True when Redis answers PING; passes are skipped while it doesn't."""
    client = await get_redis()
    try:
        return bool(await client.ping())
    except (RedisError, OSError) as exc:
        logger.warning("Redis unavailable for reconciliation lock: %s", exc)
        return False
