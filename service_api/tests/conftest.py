"""
Shared fixtures for the SRD API tests.
"""

import pytest
from fastapi.testclient import TestClient

from service_api.app.adapters import InMemoryCacheStore, InMemoryDocumentStore
from service_api.app.main import SrdApiService
from shared.config import get_config
from shared.test_helpers import SrdDataFactory


@pytest.fixture
def seed_data():
    """Fresh seed dataset per test."""
    return SrdDataFactory.create_seed_dataset()


@pytest.fixture
def document_store(seed_data):
    return InMemoryDocumentStore(seed_data)


@pytest.fixture
def cache_store():
    return InMemoryCacheStore()


@pytest.fixture
def config():
    return get_config(
        "srd",
        3000,
        document_backend="memory",
        cache_backend="memory",
        flush_cache_on_startup=False,
    )


@pytest.fixture
def service(config, document_store, cache_store):
    return SrdApiService(config, document_store=document_store, cache_store=cache_store)


@pytest.fixture
def client(service):
    return TestClient(service.app)
