"""Share listing cache backed by Redis."""

import json
from typing import Any, Dict, List, Optional
import redis.asyncio as aioredis
from redis.exceptions import RedisError
from ..config import settings
from ..utils.constants import SHARE_CACHE_KEY
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ShareCacheRepository:
    """
    Read-through cache for per-user share listings.
    Redis failures are logged and treated as cache misses so that a cache
    outage never fails a request.
    """

    def __init__(self, client: aioredis.Redis, ttl_seconds: Optional[int] = None):
        self.client = client
        self.ttl_seconds = ttl_seconds or settings.share_cache_ttl_seconds

    @staticmethod
    def _key(user_id: str) -> str:
        return SHARE_CACHE_KEY.format(user_id=user_id)

    async def get(self, user_id: str) -> Optional[List[Dict[str, Any]]]:
        """Return the cached listing, or None on a miss."""
        try:
            raw = await self.client.get(self._key(user_id))
        except RedisError as e:
            logger.warning("Redis failed", user_id=user_id, error=str(e))
            return None

        if raw is None:
            return None

        try:
            shares = json.loads(raw)
        except ValueError as e:
            logger.error("Failed to unmarshal cached shares", user_id=user_id, error=str(e))
            return None

        logger.debug("Cache hit for shares", user_id=user_id)
        return shares

    async def set(self, user_id: str, shares: List[Dict[str, Any]]) -> None:
        """Cache a listing for the configured TTL."""
        try:
            await self.client.set(
                self._key(user_id), json.dumps(shares, default=str), ex=self.ttl_seconds
            )
        except RedisError as e:
            logger.warning("Failed to cache shares", user_id=user_id, error=str(e))
            return
        logger.debug("Shares cached successfully", user_id=user_id)

    async def invalidate(self, user_id: str) -> None:
        """Drop a user's cached listing after their uploads change."""
        try:
            await self.client.delete(self._key(user_id))
        except RedisError as e:
            logger.warning("Failed to delete share cache", user_id=user_id, error=str(e))
            return
        logger.debug("Share cache deleted successfully", user_id=user_id)
