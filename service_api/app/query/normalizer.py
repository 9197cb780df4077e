"""
Turns raw query parameters into a canonical filter set.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from shared.errors import BadFilterError
from shared.logging import get_logger

from .filters import Criterion, FilterSet, Operator
from .schema import CollectionRegistry, DEFAULT_REGISTRY, FilterField

SEPARATOR = ","

RawParams = Union[Mapping[str, Any], Iterable[Tuple[str, str]]]


def coerce_number(field: str, raw: str) -> Union[int, float]:
    """
    Parse a numeric filter value.

    Integral values come back as ``int`` so that ``1`` and ``1.0`` hash to the
    same cache key.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise BadFilterError(field, raw) from None

    if not math.isfinite(value):
        raise BadFilterError(field, raw)
    if value.is_integer():
        return int(value)
    return value


def _iter_params(params: RawParams) -> Iterable[Tuple[str, str]]:
    if isinstance(params, Mapping):
        for key, value in params.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    yield key, str(item)
            elif value is not None:
                yield key, str(value)
        return

    for key, value in params:
        yield key, value


class QueryNormalizer:
    """Canonicalises list filters for one of the registry's collections."""

    def __init__(self, registry: CollectionRegistry = DEFAULT_REGISTRY):
        self.registry = registry
        self.logger = get_logger("srd.normalizer")

    def normalize(self, collection: str, params: RawParams) -> FilterSet:
        schema = self.registry.get(collection)
        grouped: Dict[FilterField, List[Any]] = {}

        for key, raw in _iter_params(params):
            filter_field = schema.filter_for(key)
            if filter_field is None:
                continue

            for piece in raw.split(SEPARATOR):
                piece = piece.strip()
                if not piece:
                    continue
                try:
                    value = self._coerce(filter_field, piece)
                except BadFilterError as exc:
                    self.logger.debug("Dropping filter value", collection=collection, field=exc.field, value=exc.value)
                    continue
                grouped.setdefault(filter_field, []).append(value)

        return FilterSet.of(
            Criterion.of(filter_field.path, filter_field.operator, values)
            for filter_field, values in grouped.items()
        )

    @staticmethod
    def _coerce(filter_field: FilterField, raw: str) -> Any:
        if filter_field.numeric:
            return coerce_number(filter_field.param, raw)
        if filter_field.operator in (Operator.IEXACT, Operator.ICONTAINS):
            return raw.lower()
        return raw
