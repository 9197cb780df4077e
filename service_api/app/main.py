"""
SRD reference API service.
"""

from typing import Any, Dict, Optional

from fastapi import Request

from shared.base_service import BaseService
from shared.circuit_breaker import CircuitBreaker
from shared.config import ServiceConfig, get_config

from service_api.app.adapters import (
    CacheStore,
    DocumentStore,
    InMemoryCacheStore,
    InMemoryDocumentStore,
    MongoDocumentStore,
    RedisCacheStore,
)
from service_api.app.caching import CacheAsideResolver
from service_api.app.domain import RecordResolver
from service_api.app.query import CollectionRegistry, DEFAULT_REGISTRY, QueryNormalizer

SERVICE_NAME = "srd"
DEFAULT_PORT = 3000


class SrdApiService(BaseService):
    """Read-only API over the SRD collections."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        document_store: Optional[DocumentStore] = None,
        cache_store: Optional[CacheStore] = None,
        registry: CollectionRegistry = DEFAULT_REGISTRY,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config)
        self.registry = registry
        self.document_store = document_store if document_store is not None else self._build_document_store()
        self.cache_store = cache_store if cache_store is not None else self._build_cache_store()

        self.normalizer = QueryNormalizer(registry)
        self.list_resolver = CacheAsideResolver(
            self.document_store,
            self.cache_store,
            ttl_seconds=self.config.cache_ttl_seconds,
            key_prefix=self.config.cache_key_prefix,
            metrics=self.metrics,
        )
        self.record_resolver = RecordResolver(self.document_store, registry)

        @self.app.on_event("startup")
        async def _startup():
            if self.config.flush_cache_on_startup:
                await self.list_resolver.flush()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.document_store.close()
            await self.cache_store.close()

        self._setup_api_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.srd_service = self

    def _build_document_store(self) -> DocumentStore:
        if self.config.document_backend == "memory":
            if not self.config.seed_dir:
                self.logger.warning("Memory document backend selected without SRD_SEED_DIR; serving no data")
                return InMemoryDocumentStore()
            return InMemoryDocumentStore.from_directory(self.config.seed_dir)

        return MongoDocumentStore(
            self.config.mongodb_uri,
            self.config.mongodb_database,
            timeout_ms=self.config.mongodb_timeout_ms,
            circuit_breaker=CircuitBreaker(
                failure_threshold=self.config.store_failure_threshold,
                recovery_timeout=self.config.store_recovery_timeout,
                name="document_store",
            ),
        )

    def _build_cache_store(self) -> CacheStore:
        if self.config.cache_backend == "memory":
            return InMemoryCacheStore()
        return RedisCacheStore(self.config.redis_url, timeout_seconds=self.config.redis_timeout_seconds)

    async def _check_dependencies(self) -> Dict[str, str]:
        return {
            "document_store": "ok" if await self.document_store.ping() else "error",
            # List queries fall through to the document store when the cache is down
            "cache_store": "ok" if await self.cache_store.ping() else "degraded",
        }

    def _setup_api_routes(self):
        """Set up the /api routes."""

        @self.app.get("/")
        async def index():
            return {"service": SERVICE_NAME, "api": "/api", "docs": "/docs"}

        @self.app.get("/api")
        async def list_collections():
            """Directory of every collection."""
            return {name: f"/api/{name}" for name in self.registry.names()}

        @self.app.get("/api/{collection}")
        async def list_records(collection: str, request: Request):
            """List a collection, filtered by its declared query parameters."""
            schema = self.registry.get(collection)
            filters = self.normalizer.normalize(collection, request.query_params.multi_items())
            envelope = await self.list_resolver.resolve_list(schema.source, filters)
            return envelope.to_dict()

        @self.app.get("/api/{collection}/{index}")
        async def get_record(collection: str, index: str):
            schema = self.registry.get(collection)
            return await self.record_resolver.resolve_one(schema.source, index)

        @self.app.get("/api/{collection}/{index}/{subresource}")
        async def get_nested(collection: str, index: str, subresource: str):
            self.registry.get(collection)
            result = await self.record_resolver.resolve_nested(collection, index, subresource)
            return _render(result)

        @self.app.get("/api/{collection}/{index}/levels/{level}")
        async def get_level(collection: str, index: str, level: str):
            self.registry.get(collection)
            return await self.record_resolver.resolve_level(collection, index, level)

        @self.app.get("/api/{collection}/{index}/levels/{level}/{subresource}")
        async def get_level_nested(collection: str, index: str, level: str, subresource: str):
            self.registry.get(collection)
            result = await self.record_resolver.resolve_level_nested(collection, index, level, subresource)
            return _render(result)


def _render(result: Any) -> Any:
    to_dict = getattr(result, "to_dict", None)
    return to_dict() if callable(to_dict) else result


def create_app(
    config: Optional[ServiceConfig] = None,
    *,
    document_store: Optional[DocumentStore] = None,
    cache_store: Optional[CacheStore] = None,
):
    """Create FastAPI application."""
    service = SrdApiService(config, document_store=document_store, cache_store=cache_store)
    return service.app


if __name__ == "__main__":
    service = SrdApiService(get_config(SERVICE_NAME, DEFAULT_PORT))
    service.run()
