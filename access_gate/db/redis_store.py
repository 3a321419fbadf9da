"""
Redis Key-Value Store

Backend for multi-instance deployments. Expiry is delegated to Redis itself
(SET ... EX), which matches the store-level time-to-live the rate limiter and
cache rely on.
"""

from typing import Any, Optional

import redis.asyncio as aioredis

from access_gate.db.interface import KeyValueStore


class RedisKeyValueStore(KeyValueStore):
    """Key-value store on top of redis.asyncio."""

    def __init__(self, redis_client: Optional[Any] = None, redis_url: Optional[str] = None):
        """
        Args:
            redis_client: Optional pre-built client (tests pass a mock)
            redis_url: Connection URL, used when no client is given
        """
        if redis_client is None:
            if redis_url is None:
                raise ValueError("redis_url or redis_client is required")
            redis_client = aioredis.from_url(redis_url, decode_responses=True)
        self._redis = redis_client

    async def get_raw(self, key: str) -> Optional[str]:
        value = await self._redis.get(key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def put_raw(
        self,
        key: str,
        value: str,
        expiration_seconds: Optional[int]
    ) -> None:
        await self._redis.set(key, value, ex=expiration_seconds)

    async def close(self) -> None:
        await self._redis.aclose()
