"""
Key/value cache stores used by the list resolver.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as redis

from shared.logging import get_logger


class CacheStore(Protocol):
    """Key/value store with expiring writes."""

    async def get(self, key: str) -> Optional[bytes]: ...

    async def set(self, key: str, value: bytes, ttl: int) -> None: ...

    async def flush_all(self) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisCacheStore:
    """Redis-backed cache store."""

    def __init__(
        self,
        redis_url: str,
        *,
        timeout_seconds: float = 2.0,
        client: Optional[redis.Redis] = None,
    ) -> None:
        self.redis_url = redis_url
        self.logger = get_logger("srd.cache_store")
        self._redis = client or redis.from_url(
            redis_url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )

    async def get(self, key: str) -> Optional[bytes]:
        return await self._redis.get(key)

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        await self._redis.set(key, value, ex=ttl)
        self.logger.debug("Cached value", key=key, ttl=ttl)

    async def flush_all(self) -> None:
        await self._redis.flushall()
        self.logger.info("Flushed cache", redis_url=self.redis_url)

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception as exc:
            self.logger.error("Redis health check failed", error=str(exc))
            return False

    async def close(self) -> None:
        await self._redis.aclose()


class InMemoryCacheStore:
    """Process-local cache store for local runs and tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[bytes, float]] = {}

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        now = self._clock()
        self._evict_expired(now)
        self._entries[key] = (value, now + ttl)

    def _evict_expired(self, now: float) -> None:
        """Drop entries past their expiry, including keys never read again."""
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    async def flush_all(self) -> None:
        self._entries.clear()

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def __len__(self) -> int:
        return len(self._entries)
