"""Redis client for the share listing cache."""

import redis.asyncio as aioredis
from typing import Optional
from .settings import settings

_redis_client: Optional[aioredis.Redis] = None


def create_redis() -> aioredis.Redis:
    """Build a new client; callers outside the web process own and close it."""
    return aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout_seconds,
    )


async def get_redis() -> aioredis.Redis:
    """Get the process-wide client, creating it on first use."""
    global _redis_client
    if _redis_client is None:
        _redis_client = create_redis()
    return _redis_client


async def close_redis() -> None:
    """Close the process-wide client on shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
