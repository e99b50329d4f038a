# app/core/cache.py
"""Redis caching implementation."""
import json
import logging
from typing import Any, Optional, Union
from datetime import timedelta
import redis.asyncio as redis
from redis.exceptions import RedisError
from ..core.config import settings

logger = logging.getLogger(__name__)

class CacheManager:
    def __init__(self, url: Optional[str] = None, prefix: str = "schoolhub"):
        self.url = url if url is not None else settings.redis_url
        self.prefix = prefix
        self.redis: Optional[redis.Redis] = None

    @property
    def enabled(self) -> bool:
        return bool(self.url) or self.redis is not None

    def make_key(self, *parts: Any) -> str:
        return ":".join([self.prefix, *(str(p) for p in parts)])

    async def connect(self):
        """Initialize Redis connection."""
        if not self.redis and self.url:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.enabled:
            return None
        await self.connect()

        try:
            value = await self.redis.get(key)
            if value is not None:
                return json.loads(value)
        except (RedisError, ValueError) as e:
            logger.warning(f"Cache get failed for {key}: {e}")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set value in cache."""
        if not self.enabled:
            return False
        await self.connect()

        try:
            serialized = json.dumps(value, default=str)
            if expire:
                if isinstance(expire, timedelta):
                    expire = int(expire.total_seconds())
                return bool(await self.redis.setex(key, expire, serialized))
            return bool(await self.redis.set(key, serialized))
        except (RedisError, TypeError) as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    async def delete_prefix(self, *parts: Any) -> int:
        """Delete every key under a prefix built from parts."""
        if not self.enabled:
            return 0
        await self.connect()

        pattern = self.make_key(*parts) + "*"
        removed = 0
        try:
            async for key in self.redis.scan_iter(match=pattern):
                removed += await self.redis.delete(key)
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for {pattern}: {e}")
        return removed

    async def ping(self) -> bool:
        if not self.enabled:
            return False
        await self.connect()
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.error(f"Cache ping failed: {e}")
            return False

# Global cache instance
cache = CacheManager()

async def get_cache():
    """Dependency to get cache instance."""
    return cache
