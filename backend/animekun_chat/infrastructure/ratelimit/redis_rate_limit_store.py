"""Redis-backed counter store for the fixed-window rate limiter.

Each hit runs SET NX EX plus INCR in one MULTI/EXEC transaction, so a
window key never exists without its TTL and every API process
sharing the Redis instance sees the same counts.
"""

import logging

import redis.asyncio as redis_async

from animekun_chat.application.interfaces import RateLimitStore

logger = logging.getLogger(__name__)


class RedisRateLimitStore(RateLimitStore):
    """Rate-limit counters in Redis."""

    def __init__(self, client: redis_async.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, timeout_s: float = 5.0) -> "RedisRateLimitStore":
        client = redis_async.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=timeout_s,
            socket_timeout=timeout_s,
        )
        return cls(client)

    async def increment(self, key: str, expire_seconds: int) -> int:
        # SET NX EX creates the window key with its TTL; INCR keeps an existing TTL.
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(key, 0, ex=expire_seconds, nx=True)
            pipe.incr(key)
            _, count = await pipe.execute()
        return int(count)

    async def ping(self) -> bool:
        """Return True if Redis answers; never raises."""
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self) -> None:
        await self._client.aclose()
