"""
Query layer for the SRD API.

Holds the canonical filter model, the per-collection schema table and the
normalizer that turns request parameters into filter sets.
"""

from .filters import Criterion, FilterSet, Operator
from .normalizer import QueryNormalizer
from .schema import CollectionRegistry, CollectionSchema, DEFAULT_REGISTRY, Shape, SubResource

__all__ = [
    "CollectionRegistry",
    "CollectionSchema",
    "Criterion",
    "DEFAULT_REGISTRY",
    "FilterSet",
    "Operator",
    "QueryNormalizer",
    "Shape",
    "SubResource",
]
