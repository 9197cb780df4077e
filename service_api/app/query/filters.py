"""
Canonical filter representation shared by the normalizer, the cache and the stores.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple


class Operator(str, Enum):
    """Match operators understood by every document store."""

    IEXACT = "iexact"
    ICONTAINS = "icontains"
    IN = "in"
    EQ = "eq"
    EXISTS = "exists"


def values_at(document: Dict[str, Any], path: str) -> List[Any]:
    """
    Collect the values found at a dotted path.

    Arrays are flattened at every step, so ``classes.index`` yields the index of
    each entry in the ``classes`` array, the same way a document database
    resolves the path.
    """
    current: List[Any] = [document]
    for part in path.split("."):
        found: List[Any] = []
        for item in current:
            if not isinstance(item, dict) or part not in item:
                continue
            value = item[part]
            if isinstance(value, list):
                found.extend(value)
            else:
                found.append(value)
        current = found
    return current


@dataclass(frozen=True)
class Criterion:
    """A (path, operator, values) triple. Values are OR-ed."""

    path: str
    operator: Operator
    values: Tuple[Any, ...] = ()

    @classmethod
    def of(cls, path: str, operator: Operator, values: Iterable[Any]) -> "Criterion":
        """Build a criterion with de-duplicated, sorted values."""
        return cls(path, operator, tuple(sorted(set(values))))

    @classmethod
    def equals(cls, path: str, value: Any) -> "Criterion":
        return cls(path, Operator.EQ, (value,))

    @classmethod
    def absent(cls, path: str) -> "Criterion":
        return cls(path, Operator.EXISTS, (False,))

    def matches(self, document: Dict[str, Any]) -> bool:
        found = values_at(document, self.path)

        if self.operator is Operator.EXISTS:
            return bool(found) == bool(self.values[0])

        if self.operator is Operator.IEXACT:
            wanted = set(self.values)
            return any(isinstance(value, str) and value.lower() in wanted for value in found)

        if self.operator is Operator.ICONTAINS:
            return any(
                isinstance(value, str) and any(needle in value.lower() for needle in self.values)
                for value in found
            )

        # IN / EQ: bools never compare equal to numbers here
        return any(
            not isinstance(value, bool) and value in self.values
            for value in found
        )


@dataclass(frozen=True)
class FilterSet:
    """
    An immutable, canonically ordered conjunction of criteria.

    Criteria are sorted by path and operator so that two filter sets built from
    the same parameters in a different order compare (and hash) equal.
    """

    criteria: Tuple[Criterion, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, criteria: Iterable[Criterion]) -> "FilterSet":
        merged: Dict[Tuple[str, Operator], set] = {}
        for criterion in criteria:
            merged.setdefault((criterion.path, criterion.operator), set()).update(criterion.values)

        ordered = sorted(merged.items(), key=lambda item: (item[0][0], item[0][1].value))
        return cls(tuple(
            Criterion(path, operator, tuple(sorted(values)))
            for (path, operator), values in ordered
        ))

    @classmethod
    def by_index(cls, index: str) -> "FilterSet":
        return cls((Criterion.equals("index", index),))

    def and_(self, *criteria: Criterion) -> "FilterSet":
        return FilterSet.of(self.criteria + tuple(criteria))

    def is_empty(self) -> bool:
        return not self.criteria

    def matches(self, document: Dict[str, Any]) -> bool:
        return all(criterion.matches(document) for criterion in self.criteria)

    def cache_token(self) -> str:
        """Stable JSON rendering used to derive cache keys."""
        return json.dumps(
            [[c.path, c.operator.value, list(c.values)] for c in self.criteria],
            separators=(",", ":"),
        )

    def __iter__(self):
        return iter(self.criteria)

    def __len__(self) -> int:
        return len(self.criteria)
