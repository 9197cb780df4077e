"""
Single-record lookups and chained resolution of nested routes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from shared.errors import NotFoundError
from shared.logging import get_logger

from ..adapters.document_store import guarded_store_call
from ..query.filters import Criterion, FilterSet
from ..query.schema import CollectionRegistry, DEFAULT_REGISTRY, Shape, SubResource
from .envelope import SUMMARY_FIELDS, ResultEnvelope, build_bare_list, build_list_envelope, build_record

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.document_store import DocumentStore


NestedResult = Union[ResultEnvelope, Dict[str, Any], List[Dict[str, Any]]]


def parse_level(collection: str, raw: Union[str, int]) -> int:
    """Level path segments must be integers; anything else cannot resolve."""
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise NotFoundError(collection, f"levels/{raw}") from None


class RecordResolver:
    """
    Resolves records by index, straight from the document store.

    Nested paths resolve segment by segment: the parent by index first, then
    the level record when a level is given, then the nested collection scoped
    to the parent. A missing segment stops the chain with ``NotFoundError``.
    """

    def __init__(self, document_store: "DocumentStore", registry: CollectionRegistry = DEFAULT_REGISTRY):
        self.document_store = document_store
        self.registry = registry
        self.logger = get_logger("srd.records")

    async def resolve_one(self, collection: str, index: str) -> Dict[str, Any]:
        record = await self._find_one(collection, FilterSet.by_index(index))
        return build_record(collection, index, record)

    async def resolve_nested(self, parent: str, index: str, name: str) -> NestedResult:
        subresource = self.registry.subresource(parent, name)
        await self._resolve_parent(parent, index)
        return await self._resolve_subresource(subresource, FilterSet.of(
            (Criterion.equals(subresource.scope_path, index),) + subresource.extra
        ), index)

    async def resolve_level(self, parent: str, index: str, level: Union[str, int]) -> Dict[str, Any]:
        scope = self.registry.level_scope(parent)
        number = parse_level(parent, level)
        await self._resolve_parent(parent, index)

        filters = FilterSet.of(
            (Criterion.equals(scope.scope_path, index), Criterion.equals("level", number)) + scope.extra
        )
        record = await self._find_one(scope.target, filters)
        return build_record(scope.target, f"{index}/levels/{number}", record)

    async def resolve_level_nested(
        self,
        parent: str,
        index: str,
        level: Union[str, int],
        name: str,
    ) -> NestedResult:
        scope = self.registry.level_scope(parent)
        try:
            subresource = scope.subresources[name]
        except KeyError:
            raise NotFoundError(parent, f"levels/{level}/{name}") from None

        number = parse_level(parent, level)
        await self.resolve_level(parent, index, number)

        filters = FilterSet.of((
            Criterion.equals(subresource.scope_path, index),
            Criterion.equals("level", number),
        ) + subresource.extra)
        return await self._resolve_subresource(subresource, filters, index)

    async def _resolve_parent(self, parent: str, index: str) -> Dict[str, Any]:
        return await self.resolve_one(self.registry.get(parent).source, index)

    async def _resolve_subresource(self, subresource: SubResource, filters: FilterSet, index: str) -> NestedResult:
        if subresource.shape is Shape.RECORD:
            record = await self._find_one(subresource.target, filters)
            return build_record(subresource.target, index, record)

        if subresource.shape is Shape.BARE:
            records = await self._find(subresource.target, filters, sort=subresource.sort)
            return build_bare_list(records)

        records = await self._find(subresource.target, filters, fields=SUMMARY_FIELDS, sort=subresource.sort)
        return build_list_envelope(records)

    async def _find_one(self, collection: str, filters: FilterSet) -> Optional[Dict[str, Any]]:
        return await guarded_store_call(
            self.document_store.find_one(collection, filters),
            collection=collection,
            action="find_one",
        )

    async def _find(self, collection: str, filters: FilterSet, **options) -> List[Dict[str, Any]]:
        return await guarded_store_call(
            self.document_store.find(collection, filters, **options),
            collection=collection,
            action="find",
        )
