"""Redis-backed cache — shared across API processes and ingestion workers."""

import logging

import redis.asyncio as redis

from resume_rag.application.interfaces.cache import Cache

logger = logging.getLogger(__name__)

_SCAN_BATCH = 500


class RedisCache(Cache):
    """Cache adapter over the redis-py asyncio client.

    Build it with :meth:`connect`, which only returns once the server has
    answered a ping.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    async def connect(cls, url: str) -> "RedisCache":
        client = redis.from_url(url, decode_responses=True)
        await client.ping()
        logger.info("Connected to Redis cache")
        return cls(client)

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        await self._client.set(key, value, ex=ttl or None)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def delete_prefix(self, prefix: str) -> int:
        removed = 0
        batch: list[str] = []
        async for key in self._client.scan_iter(match=f"{prefix}*", count=_SCAN_BATCH):
            batch.append(key)
            if len(batch) >= _SCAN_BATCH:
                removed += await self._client.delete(*batch)
                batch = []
        if batch:
            removed += await self._client.delete(*batch)
        return removed

    async def close(self) -> None:
        await self._client.aclose()
