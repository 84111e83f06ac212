"""Redis connection and utilities"""
from typing import Optional
import redis.asyncio as aioredis
from app.core.config import settings


class RedisClient:
    """Redis client wrapper"""

    def __init__(self, url: str = settings.REDIS_URL):
        self.url = url
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        self.redis = aioredis.from_url(
            self.url,
            encoding="utf-8",
            decode_responses=True
        )

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def acquire_lock(self, key: str, ttl: int, owner: str = "1") -> bool:
        """Take a short-lived lock; returns False if someone else holds it"""
        if not self.redis:
            return True
        return bool(await self.redis.set(key, owner, nx=True, ex=ttl))

    async def extend_lock(self, key: str, ttl: int, owner: str = "1") -> bool:
        """Push back the expiry of a lock we still hold"""
        if not self.redis:
            return True
        if await self.redis.get(key) != owner:
            return False
        return bool(await self.redis.expire(key, ttl))

    async def release_lock(self, key: str, owner: str = "1"):
        """Release the lock unless it already expired and was taken by someone else"""
        if not self.redis:
            return
        if await self.redis.get(key) == owner:
            await self.redis.delete(key)


redis_client = RedisClient()
