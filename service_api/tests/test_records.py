"""
Unit tests for RecordResolver and the response envelopes.
"""

import pytest
from unittest.mock import AsyncMock, patch

from service_api.app.domain import RecordResolver, ResultEnvelope
from service_api.app.domain.envelope import build_bare_list, build_list_envelope, build_record
from service_api.app.domain.records import parse_level
from shared.errors import NotFoundError, ServiceUnavailableError


class TestRecordResolver:
    """Test cases for RecordResolver."""

    @pytest.fixture
    def resolver(self, document_store):
        return RecordResolver(document_store)

    @pytest.mark.asyncio
    async def test_resolve_one_returns_full_record(self, resolver):
        record = await resolver.resolve_one("spells", "fireball")

        assert record["name"] == "Fireball"
        assert record["level"] == 3
        assert record["school"]["name"] == "Evocation"
        assert "_id" not in record

    @pytest.mark.asyncio
    async def test_resolve_one_missing(self, resolver):
        with pytest.raises(NotFoundError) as exc_info:
            await resolver.resolve_one("spells", "wish")

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == {"collection": "spells", "index": "wish"}

    @pytest.mark.asyncio
    async def test_index_match_is_case_sensitive(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_one("spells", "Fireball")

    @pytest.mark.asyncio
    async def test_nested_envelope(self, resolver):
        """classes/{index}/spells returns a summary envelope."""
        envelope = await resolver.resolve_nested("classes", "wizard", "spells")

        assert isinstance(envelope, ResultEnvelope)
        assert envelope.count == 7
        assert set(envelope.results[0]) == {"index", "name", "url"}

    @pytest.mark.asyncio
    async def test_nested_envelope_can_be_empty(self, resolver):
        envelope = await resolver.resolve_nested("classes", "barbarian", "spells")

        assert envelope.to_dict() == {"count": 0, "results": []}

    @pytest.mark.asyncio
    async def test_nested_record(self, resolver):
        record = await resolver.resolve_nested("classes", "wizard", "spellcasting")

        assert record["index"] == "wizard"
        assert record["spellcasting_ability"]["index"] == "int"

    @pytest.mark.asyncio
    async def test_nested_record_missing(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_nested("classes", "barbarian", "spellcasting")

    @pytest.mark.asyncio
    async def test_class_levels_are_sorted_and_exclude_subclass_levels(self, resolver):
        levels = await resolver.resolve_nested("classes", "barbarian", "levels")

        assert isinstance(levels, list)
        assert [level["index"] for level in levels] == ["barbarian-1", "barbarian-2", "barbarian-3"]
        assert all("_id" not in level for level in levels)

    @pytest.mark.asyncio
    async def test_subclass_levels(self, resolver):
        levels = await resolver.resolve_nested("subclasses", "berserker", "levels")

        assert [level["index"] for level in levels] == ["berserker-3"]

    @pytest.mark.asyncio
    async def test_race_and_subrace_scopes(self, resolver):
        traits = await resolver.resolve_nested("races", "dwarf", "traits")
        subraces = await resolver.resolve_nested("races", "elf", "subraces")
        subrace_traits = await resolver.resolve_nested("subraces", "high-elf", "traits")

        assert [r["index"] for r in traits.results] == ["darkvision", "dwarven-resilience"]
        assert [r["index"] for r in subraces.results] == ["high-elf"]
        assert [r["index"] for r in subrace_traits.results] == ["elf-weapon-training"]

    @pytest.mark.asyncio
    async def test_missing_parent_short_circuits(self, resolver, document_store):
        """The nested collection is never queried when the parent is missing."""
        with patch.object(document_store, "find", new_callable=AsyncMock) as mock_find:
            with pytest.raises(NotFoundError) as exc_info:
                await resolver.resolve_nested("classes", "paladin", "spells")

        mock_find.assert_not_called()
        assert exc_info.value.collection == "classes"

    @pytest.mark.asyncio
    async def test_unknown_subresource(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_nested("spells", "fireball", "levels")

    @pytest.mark.asyncio
    async def test_resolve_level(self, resolver):
        level = await resolver.resolve_level("classes", "wizard", "2")

        assert level["index"] == "wizard-2"

    @pytest.mark.asyncio
    async def test_resolve_subclass_level(self, resolver):
        level = await resolver.resolve_level("subclasses", "berserker", 3)

        assert level["index"] == "berserker-3"

    @pytest.mark.asyncio
    async def test_class_level_skips_subclass_record(self, resolver):
        level = await resolver.resolve_level("classes", "barbarian", 3)

        assert level["index"] == "barbarian-3"

    @pytest.mark.asyncio
    async def test_resolve_level_missing(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_level("classes", "wizard", 20)

    @pytest.mark.asyncio
    async def test_resolve_level_not_an_integer(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_level("classes", "wizard", "first")

    @pytest.mark.asyncio
    async def test_level_nested_features(self, resolver):
        features = await resolver.resolve_level_nested("classes", "barbarian", 2, "features")
        subclass_features = await resolver.resolve_level_nested("subclasses", "berserker", "3", "features")

        assert [r["index"] for r in features.results] == ["reckless-attack"]
        assert [r["index"] for r in subclass_features.results] == ["frenzy"]

    @pytest.mark.asyncio
    async def test_level_nested_spells(self, resolver):
        spells = await resolver.resolve_level_nested("classes", "wizard", 1, "spells")

        assert [r["index"] for r in spells.results] == ["color-spray", "magic-missile", "silent-image"]

    @pytest.mark.asyncio
    async def test_level_nested_requires_existing_level(self, resolver, document_store):
        with patch.object(document_store, "find", new_callable=AsyncMock) as mock_find:
            with pytest.raises(NotFoundError):
                await resolver.resolve_level_nested("classes", "wizard", 9, "spells")

        mock_find.assert_not_called()

    @pytest.mark.asyncio
    async def test_level_nested_unknown_name(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.resolve_level_nested("subclasses", "berserker", 3, "spells")

    @pytest.mark.asyncio
    async def test_store_failure_is_unavailable(self):
        store = AsyncMock()
        store.find_one = AsyncMock(side_effect=TimeoutError("timed out"))
        resolver = RecordResolver(store)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await resolver.resolve_one("classes", "wizard")

        assert exc_info.value.details["operation"] == "find_one"


class TestParseLevel:

    def test_integer_strings(self):
        assert parse_level("classes", "7") == 7

    @pytest.mark.parametrize("raw", ["seven", "1.5", ""])
    def test_rejects_non_integers(self, raw):
        with pytest.raises(NotFoundError):
            parse_level("classes", raw)


class TestEnvelopes:
    """Response shape helpers."""

    def test_count_is_derived_from_results(self):
        envelope = build_list_envelope([{"_id": "x", "index": "a"}, {"index": "b"}])

        assert envelope.to_dict() == {"count": 2, "results": [{"index": "a"}, {"index": "b"}]}

    def test_serialization_is_compact_and_stable(self):
        envelope = build_list_envelope([{"index": "éclair", "name": "Éclair"}])

        assert envelope.to_bytes() == '{"count":1,"results":[{"index":"éclair","name":"Éclair"}]}'.encode("utf-8")
        assert ResultEnvelope.from_bytes(envelope.to_bytes()) == envelope

    @pytest.mark.parametrize("payload", [
        {"count": 1, "results": []},
        {"results": []},
        {"count": 0, "results": {}},
    ])
    def test_from_dict_rejects_inconsistent_payloads(self, payload):
        with pytest.raises(ValueError):
            ResultEnvelope.from_dict(payload)

    def test_from_bytes_rejects_non_objects(self):
        with pytest.raises(ValueError):
            ResultEnvelope.from_bytes(b"[]")

    def test_build_record(self):
        assert build_record("spells", "x", {"_id": 1, "index": "x"}) == {"index": "x"}

        with pytest.raises(NotFoundError):
            build_record("spells", "x", None)

    def test_build_bare_list(self):
        assert build_bare_list([{"_id": 1, "level": 1}]) == [{"level": 1}]
