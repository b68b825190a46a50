import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from shortener.stores import StoreUnavailable

logger = logging.getLogger(__name__)


class RedisCacheStore:
    def __init__(self, redis: Redis, prefix: str = "url:", expiry_seconds: int = 0):
        self.redis = redis
        self.prefix = prefix
        self.expiry_seconds = expiry_seconds

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(self._key(key))
        except (RedisError, OSError) as exc:
            logger.error(f"Redis error reading key {self._key(key)}: {str(exc)}")
            raise StoreUnavailable("Redis", "get", str(exc)) from exc

    async def set(self, key: str, value: str) -> None:
        try:
            if self.expiry_seconds > 0:
                await self.redis.setex(self._key(key), self.expiry_seconds, value)
            else:
                await self.redis.set(self._key(key), value)
        except (RedisError, OSError) as exc:
            logger.error(f"Redis error writing key {self._key(key)}: {str(exc)}")
            raise StoreUnavailable("Redis", "set", str(exc)) from exc
