"""
Declarative table of collections, their filterable fields and nested routes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from shared.errors import NotFoundError

from .filters import Criterion, Operator


class Shape(str, Enum):
    """How a nested lookup is returned to the client."""

    ENVELOPE = "envelope"
    RECORD = "record"
    BARE = "bare"


@dataclass(frozen=True)
class FilterField:
    """A query parameter accepted by a collection."""

    param: str
    path: str
    operator: Operator

    @property
    def numeric(self) -> bool:
        return self.operator is Operator.IN


NAME = FilterField("name", "name", Operator.IEXACT)
DESC = FilterField("desc", "desc", Operator.ICONTAINS)


@dataclass(frozen=True)
class CollectionSchema:
    """A top-level collection exposed under ``/api/{name}``."""

    name: str
    filters: Tuple[FilterField, ...] = (NAME,)
    store_collection: Optional[str] = None

    @property
    def source(self) -> str:
        return self.store_collection or self.name

    def filter_for(self, param: str) -> Optional[FilterField]:
        for candidate in self.filters:
            if candidate.param == param:
                return candidate
        return None


@dataclass(frozen=True)
class SubResource:
    """A collection reached through a parent record, e.g. ``classes/{index}/spells``."""

    name: str
    target: str
    scope_path: str
    shape: Shape = Shape.ENVELOPE
    extra: Tuple[Criterion, ...] = ()
    sort: Optional[str] = None


@dataclass(frozen=True)
class LevelScope:
    """Per-level records of a parent and the collections nested under each level."""

    target: str
    scope_path: str
    extra: Tuple[Criterion, ...] = ()
    subresources: Mapping[str, SubResource] = field(default_factory=dict)


COLLECTIONS: Tuple[CollectionSchema, ...] = (
    CollectionSchema("ability-scores"),
    CollectionSchema("classes"),
    CollectionSchema("conditions"),
    CollectionSchema("damage-types"),
    CollectionSchema("equipment-categories"),
    CollectionSchema("equipment"),
    CollectionSchema("features"),
    CollectionSchema("languages"),
    CollectionSchema("magic-items"),
    CollectionSchema("magic-schools"),
    CollectionSchema(
        "monsters",
        (NAME, FilterField("challenge_rating", "challenge_rating", Operator.IN)),
    ),
    CollectionSchema("proficiencies"),
    CollectionSchema("races"),
    CollectionSchema("rules", (NAME, DESC)),
    CollectionSchema("rules-sections", (NAME, DESC), store_collection="rule-sections"),
    CollectionSchema("skills"),
    CollectionSchema("spellcasting", ()),
    CollectionSchema(
        "spells",
        (
            NAME,
            FilterField("level", "level", Operator.IN),
            FilterField("school", "school.name", Operator.IEXACT),
        ),
    ),
    CollectionSchema("starting-equipment", ()),
    CollectionSchema("subclasses"),
    CollectionSchema("subraces"),
    CollectionSchema("traits"),
    CollectionSchema("weapon-properties"),
)

_NOT_SUBCLASS = (Criterion.absent("subclass"),)

SUBRESOURCES: Dict[str, Dict[str, SubResource]] = {
    "classes": {
        "subclasses": SubResource("subclasses", "subclasses", "class.index"),
        "starting-equipment": SubResource("starting-equipment", "starting-equipment", "class.index", Shape.RECORD),
        "spellcasting": SubResource("spellcasting", "spellcasting", "class.index", Shape.RECORD),
        "spells": SubResource("spells", "spells", "classes.index"),
        "features": SubResource("features", "features", "class.index"),
        "proficiencies": SubResource("proficiencies", "proficiencies", "classes.index"),
        "levels": SubResource("levels", "levels", "class.index", Shape.BARE, _NOT_SUBCLASS, sort="level"),
    },
    "races": {
        "subraces": SubResource("subraces", "subraces", "race.index"),
        "proficiencies": SubResource("proficiencies", "proficiencies", "races.index"),
        "traits": SubResource("traits", "traits", "races.index"),
    },
    "subclasses": {
        "levels": SubResource("levels", "levels", "subclass.index", Shape.BARE, sort="level"),
    },
    "subraces": {
        "traits": SubResource("traits", "traits", "subraces.index"),
        "proficiencies": SubResource("proficiencies", "proficiencies", "subraces.index"),
    },
}

LEVEL_SCOPES: Dict[str, LevelScope] = {
    "classes": LevelScope(
        "levels",
        "class.index",
        _NOT_SUBCLASS,
        {
            "spells": SubResource("spells", "spells", "classes.index"),
            "features": SubResource("features", "features", "class.index"),
        },
    ),
    "subclasses": LevelScope(
        "levels",
        "subclass.index",
        (),
        {
            "features": SubResource("features", "features", "subclass.index"),
        },
    ),
}


class CollectionRegistry:
    """Lookup of collection schemas and their nested routes."""

    def __init__(
        self,
        collections: Iterable[CollectionSchema] = COLLECTIONS,
        subresources: Optional[Mapping[str, Mapping[str, SubResource]]] = None,
        level_scopes: Optional[Mapping[str, LevelScope]] = None,
    ):
        self._collections: Dict[str, CollectionSchema] = {schema.name: schema for schema in collections}
        self._subresources = subresources if subresources is not None else SUBRESOURCES
        self._level_scopes = level_scopes if level_scopes is not None else LEVEL_SCOPES

    def names(self) -> List[str]:
        return list(self._collections)

    def get(self, name: str) -> CollectionSchema:
        """Return the schema for ``name`` or raise ``NotFoundError``."""
        try:
            return self._collections[name]
        except KeyError:
            raise NotFoundError("api", name) from None

    def subresource(self, parent: str, name: str) -> SubResource:
        try:
            return self._subresources[parent][name]
        except KeyError:
            raise NotFoundError(parent, name) from None

    def level_scope(self, parent: str) -> LevelScope:
        try:
            return self._level_scopes[parent]
        except KeyError:
            raise NotFoundError(parent, "levels") from None

    def __contains__(self, name: str) -> bool:
        return name in self._collections


DEFAULT_REGISTRY = CollectionRegistry()
