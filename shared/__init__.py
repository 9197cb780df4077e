"""
Shared utilities for the SRD reference API.

This package holds the building blocks the service is assembled from:

- config: Service configuration via pydantic-settings (``SRD_`` env prefix)
- logging: Structured JSON logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Error types mapped onto HTTP responses
- circuit_breaker: Fail-fast protection around the document store
- base_service: FastAPI service skeleton with health and metrics routes
- test_helpers: Seed dataset factory for tests and local runs

Do not import from service packages into shared/.
"""
