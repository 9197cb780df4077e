"""
Cache-aside resolution of list queries.
"""

from __future__ import annotations

import hashlib
from contextlib import nullcontext
from typing import TYPE_CHECKING, Optional

from shared.logging import get_logger

from ..adapters.document_store import guarded_store_call
from ..domain.envelope import SUMMARY_FIELDS, ResultEnvelope, build_list_envelope
from ..query.filters import FilterSet

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.cache_store import CacheStore
    from ..adapters.document_store import DocumentStore
    from shared.metrics import MetricsCollector


DEFAULT_LIST_TTL = 3600


class CacheAsideResolver:
    """
    Resolves ``(collection, filters)`` list queries through the cache.

    A hit never touches the document store. A miss queries the store, writes
    the serialized envelope once with the configured TTL and returns it.
    Concurrent misses for the same key may both query and both write; the
    payloads are identical so the last write wins.
    """

    def __init__(
        self,
        document_store: "DocumentStore",
        cache_store: "CacheStore",
        *,
        ttl_seconds: int = DEFAULT_LIST_TTL,
        key_prefix: str = "srd",
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.document_store = document_store
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self.metrics = metrics
        self.logger = get_logger("srd.cache")

    def cache_key(self, collection: str, filters: FilterSet) -> str:
        """Deterministic key for a collection and canonical filter set."""
        digest = hashlib.md5(f"{collection}:{filters.cache_token()}".encode("utf-8")).hexdigest()
        return f"{self.key_prefix}:{collection}:{digest}"

    async def resolve_list(self, collection: str, filters: FilterSet) -> ResultEnvelope:
        key = self.cache_key(collection, filters)

        cached = await self._read_cache(key)
        if cached is not None:
            self._count("cache_hits_total", collection=collection)
            return cached

        self._count("cache_misses_total", collection=collection)
        records = await self._query_store(collection, filters)
        envelope = build_list_envelope(records)
        await self._write_cache(key, envelope)
        return envelope

    async def flush(self) -> bool:
        """Drop every cache entry. Returns False when the cache is unreachable."""
        try:
            await self.cache_store.flush_all()
            return True
        except Exception as exc:
            self.logger.error("Cache flush error", error=str(exc))
            self._count("cache_errors_total", operation="flush")
            return False

    async def _query_store(self, collection: str, filters: FilterSet):
        timer = (
            self.metrics.time_operation("store_query_duration_seconds", collection=collection, operation="find")
            if self.metrics
            else nullcontext()
        )
        with timer:
            return await guarded_store_call(
                self.document_store.find(collection, filters, fields=SUMMARY_FIELDS),
                collection=collection,
                action="find",
            )

    async def _read_cache(self, key: str) -> Optional[ResultEnvelope]:
        """Read a cached envelope; unreachable caches and bad payloads read as misses."""
        try:
            raw = await self.cache_store.get(key)
        except Exception as exc:
            self.logger.error("Cache fetch error", key=key, error=str(exc))
            self._count("cache_errors_total", operation="get")
            return None

        if not raw:
            return None

        try:
            return ResultEnvelope.from_bytes(raw)
        except (TypeError, ValueError) as exc:
            self.logger.warning("Discarding malformed cache payload", key=key, error=str(exc))
            return None

    async def _write_cache(self, key: str, envelope: ResultEnvelope) -> None:
        try:
            await self.cache_store.set(key, envelope.to_bytes(), self.ttl_seconds)
        except Exception as exc:
            self.logger.error("Cache set error", key=key, error=str(exc))
            self._count("cache_errors_total", operation="set")

    def _count(self, metric_name: str, **labels) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, **labels)
        except Exception as exc:  # pragma: no cover - metrics failures never break resolution
            self.logger.debug("Failed to record cache metrics", error=str(exc))
