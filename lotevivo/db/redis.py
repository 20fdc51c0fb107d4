"""Redis client for the per-lot transition lock.

Only created when LOT_LOCK_ENABLED is on; with the lock disabled the API runs
on PostgreSQL alone.
"""

import redis.asyncio as redis
import structlog

from lotevivo.core.config import get_settings

logger = structlog.get_logger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str | None = None) -> redis.Redis:
    """Connect once per process; later calls return the existing client."""
    global _client

    if _client is None:
        settings = get_settings()
        client = redis.Redis.from_url(
            url or settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
        )
        await client.ping()
        _client = client
        logger.debug("redis_connected")
    return _client


async def close_redis() -> None:
    global _client

    client, _client = _client, None
    if client is not None:
        await client.aclose()


def get_redis() -> redis.Redis:
    if _client is None:
        raise RuntimeError("Redis is not connected; init_redis() runs at startup when the lot lock is enabled")
    return _client
