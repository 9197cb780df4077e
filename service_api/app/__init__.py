"""
SRD reference API service package.

Serves read-only tabletop reference data (classes, spells, monsters, rules
and friends) out of a document store, with list queries cached cache-aside.

Structure:
- app.main: FastAPI app, routes, and dependency wiring.
- app.adapters: document store (MongoDB / in-memory) and cache store (Redis / in-memory).
- app.query: filter model, per-collection schema table and query normalizer.
- app.caching: cache-aside list resolver.
- app.domain: record resolution and response envelopes.
"""
