"""
Response shapes for list, single-record and bare-list lookups.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shared.errors import NotFoundError

# Fields kept on list results; full records are served by index
SUMMARY_FIELDS: Tuple[str, ...] = ("index", "name", "url")


def strip_internal(record: Dict[str, Any]) -> Dict[str, Any]:
    """Drop store-internal keys such as Mongo's ``_id``."""
    return {key: value for key, value in record.items() if key != "_id"}


@dataclass(frozen=True)
class ResultEnvelope:
    """``{count, results}`` wrapper for list queries. ``count`` is derived."""

    results: Tuple[Dict[str, Any], ...] = ()

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "results": list(self.results)}

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ResultEnvelope":
        """Rehydrate an envelope, rejecting payloads whose count disagrees."""
        results = payload.get("results")
        if not isinstance(results, list):
            raise ValueError("envelope results must be a list")
        if payload.get("count") != len(results):
            raise ValueError("envelope count does not match results")
        return cls(tuple(results))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ResultEnvelope":
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("envelope must be a JSON object")
        return cls.from_dict(payload)


def build_list_envelope(records: Iterable[Dict[str, Any]]) -> ResultEnvelope:
    return ResultEnvelope(tuple(strip_internal(record) for record in records))


def build_record(collection: str, index: Any, record: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return the record unwrapped, or raise ``NotFoundError`` when absent."""
    if record is None:
        raise NotFoundError(collection, index)
    return strip_internal(record)


def build_bare_list(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Nested ``levels`` listings are returned without the count/results wrapper."""
    return [strip_internal(record) for record in records]
