"""
Document stores holding the SRD collections.
"""

from __future__ import annotations

import copy
import json
import re
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Sequence, TypeVar, Union

from motor.motor_asyncio import AsyncIOMotorClient

from shared.circuit_breaker import CircuitBreaker
from shared.errors import ServiceUnavailableError
from shared.logging import get_logger

from ..query.filters import Criterion, FilterSet, Operator

T = TypeVar("T")

logger = get_logger("srd.document_store")


class DocumentStore(Protocol):
    """Collection-oriented read interface."""

    async def find(
        self,
        collection: str,
        filters: FilterSet,
        *,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[str] = None,
    ) -> List[Dict[str, Any]]: ...

    async def find_one(self, collection: str, filters: FilterSet) -> Optional[Dict[str, Any]]: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


async def guarded_store_call(operation: Awaitable[T], *, collection: str, action: str) -> T:
    """Await a store call, surfacing any failure as ``ServiceUnavailableError``."""
    try:
        return await operation
    except ServiceUnavailableError as exc:
        logger.error("Document store unavailable", collection=collection, operation=action, error=exc.message)
        raise
    except Exception as exc:
        logger.error("Document store query failed", collection=collection, operation=action, error=str(exc))
        raise ServiceUnavailableError(
            "document_store",
            str(exc) or type(exc).__name__,
            {"collection": collection, "operation": action},
        ) from exc


def _criterion_to_mongo(criterion: Criterion) -> Dict[str, Any]:
    if criterion.operator is Operator.EXISTS:
        return {criterion.path: {"$exists": bool(criterion.values[0])}}

    if criterion.operator is Operator.IEXACT:
        patterns = [re.compile(f"^{re.escape(value)}$", re.IGNORECASE) for value in criterion.values]
        return {criterion.path: {"$in": patterns}}

    if criterion.operator is Operator.ICONTAINS:
        patterns = [re.compile(re.escape(value), re.IGNORECASE) for value in criterion.values]
        return {criterion.path: {"$in": patterns}}

    if len(criterion.values) == 1:
        return {criterion.path: criterion.values[0]}
    return {criterion.path: {"$in": list(criterion.values)}}


def to_mongo_query(filters: FilterSet) -> Dict[str, Any]:
    """Translate a filter set into a MongoDB query document."""
    clauses = [_criterion_to_mongo(criterion) for criterion in filters]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def to_mongo_projection(fields: Optional[Sequence[str]]) -> Dict[str, int]:
    projection = {"_id": 0}
    for name in fields or ():
        projection[name] = 1
    return projection


class MongoDocumentStore:
    """MongoDB document store using the Motor driver."""

    def __init__(
        self,
        uri: str,
        database: str,
        *,
        timeout_ms: int = 5000,
        circuit_breaker: Optional[CircuitBreaker] = None,
        client: Optional[AsyncIOMotorClient] = None,
    ) -> None:
        self.database_name = database
        self.logger = get_logger("srd.mongo")
        self._client = client or AsyncIOMotorClient(
            uri,
            serverSelectionTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
        self._db = self._client[database]
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="document_store")

    async def find(
        self,
        collection: str,
        filters: FilterSet,
        *,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = to_mongo_query(filters)

        async def _request() -> List[Dict[str, Any]]:
            cursor = self._db[collection].find(query, to_mongo_projection(fields))
            if sort:
                cursor = cursor.sort(sort, 1)
            return await cursor.to_list(length=None)

        documents = await self.circuit_breaker.call(_request)
        self.logger.debug("Documents retrieved", collection=collection, count=len(documents))
        return documents

    async def find_one(self, collection: str, filters: FilterSet) -> Optional[Dict[str, Any]]:
        query = to_mongo_query(filters)

        async def _request() -> Optional[Dict[str, Any]]:
            return await self._db[collection].find_one(query, to_mongo_projection(None))

        return await self.circuit_breaker.call(_request)

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
            return True
        except Exception as exc:
            self.logger.error("MongoDB health check failed", error=str(exc))
            return False

    async def close(self) -> None:
        self._client.close()


class InMemoryDocumentStore:
    """Document store over plain dictionaries, for local runs and tests."""

    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self._collections: Dict[str, List[Dict[str, Any]]] = {
            name: list(documents) for name, documents in (collections or {}).items()
        }

    @classmethod
    def from_directory(cls, path: Union[str, Path]) -> "InMemoryDocumentStore":
        """Load ``<collection>.json`` files, each holding a JSON array of records."""
        directory = Path(path)
        collections: Dict[str, List[Dict[str, Any]]] = {}
        for file_path in sorted(directory.glob("*.json")):
            with file_path.open(encoding="utf-8") as handle:
                documents = json.load(handle)
            if not isinstance(documents, list):
                raise ValueError(f"{file_path} must contain a JSON array")
            collections[file_path.stem] = documents
        logger.info("Loaded seed collections", directory=str(directory), collections=len(collections))
        return cls(collections)

    async def find(
        self,
        collection: str,
        filters: FilterSet,
        *,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        matches = [doc for doc in self._collections.get(collection, []) if filters.matches(doc)]
        if sort:
            matches.sort(key=lambda doc: (doc.get(sort) is None, doc.get(sort)))
        return [self._project(doc, fields) for doc in matches]

    async def find_one(self, collection: str, filters: FilterSet) -> Optional[Dict[str, Any]]:
        for doc in self._collections.get(collection, []):
            if filters.matches(doc):
                return self._project(doc, None)
        return None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    @staticmethod
    def _project(document: Dict[str, Any], fields: Optional[Sequence[str]]) -> Dict[str, Any]:
        if fields:
            return {name: copy.deepcopy(document[name]) for name in fields if name in document}
        return {key: copy.deepcopy(value) for key, value in document.items() if key != "_id"}
