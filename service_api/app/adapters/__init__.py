"""
Adapters package for the SRD API.

Wraps the two collaborators the resolvers depend on:

- Document stores (MongoDB via Motor, or in-memory seed data)
- Cache stores (Redis, or an in-process dictionary)

Both are injected into the resolvers at construction time.
"""

from .cache_store import CacheStore, InMemoryCacheStore, RedisCacheStore
from .document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    MongoDocumentStore,
    guarded_store_call,
)

__all__ = [
    "CacheStore",
    "DocumentStore",
    "InMemoryCacheStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    "RedisCacheStore",
    "guarded_store_call",
]
