"""
Unit tests for query normalization and the filter model.
"""

import pytest

from service_api.app.query import Criterion, FilterSet, Operator, QueryNormalizer
from service_api.app.query.filters import values_at
from service_api.app.query.normalizer import coerce_number
from shared.errors import BadFilterError, NotFoundError


class TestQueryNormalizer:
    """Test cases for QueryNormalizer."""

    @pytest.fixture
    def normalizer(self):
        return QueryNormalizer()

    def test_no_filters_is_empty(self, normalizer):
        filters = normalizer.normalize("spells", [])

        assert filters.is_empty()
        assert filters.cache_token() == "[]"

    def test_name_is_lowercased(self, normalizer):
        filters = normalizer.normalize("spells", [("name", "Acid Arrow")])

        assert filters.criteria == (Criterion("name", Operator.IEXACT, ("acid arrow",)),)

    def test_comma_values_are_split_and_ored(self, normalizer):
        filters = normalizer.normalize("spells", [("school", "Illusion,Evocation")])

        assert filters.criteria == (
            Criterion("school.name", Operator.IEXACT, ("evocation", "illusion")),
        )

    def test_repeated_keys_merge_with_split_values(self, normalizer):
        filters = normalizer.normalize("spells", [("level", "1,2"), ("level", "8")])

        assert filters.criteria == (Criterion("level", Operator.IN, (1, 2, 8)),)

    def test_numeric_values_are_coerced(self, normalizer):
        filters = normalizer.normalize("monsters", {"challenge_rating": "0.25,1.0"})

        criterion = filters.criteria[0]
        assert criterion.values == (0.25, 1)
        assert isinstance(criterion.values[1], int)

    def test_unparseable_numbers_are_dropped(self, normalizer):
        filters = normalizer.normalize("spells", [("level", "one,2,nan,inf")])

        assert filters.criteria == (Criterion("level", Operator.IN, (2,)),)

    def test_all_numbers_dropped_means_no_criterion(self, normalizer):
        filters = normalizer.normalize("spells", [("level", "abc")])

        assert filters.is_empty()

    @pytest.mark.parametrize("collection,param", [("spells", "level"), ("monsters", "challenge_rating")])
    def test_bad_values_never_escape(self, normalizer, collection, param):
        """BadFilterError stays inside the normalizer."""
        filters = normalizer.normalize(collection, [(param, "x,,nan,-inf,1/4")])

        assert filters.is_empty()

    def test_blank_pieces_are_ignored(self, normalizer):
        filters = normalizer.normalize("spells", [("school", " Illusion , ,")])

        assert filters.criteria == (Criterion("school.name", Operator.IEXACT, ("illusion",)),)

    def test_undeclared_params_are_ignored(self, normalizer):
        filters = normalizer.normalize("classes", [("level", "1"), ("page", "2"), ("name", "Wizard")])

        assert [criterion.path for criterion in filters] == ["name"]

    def test_collections_without_filters_ignore_name(self, normalizer):
        assert normalizer.normalize("spellcasting", [("name", "wizard")]).is_empty()

    def test_desc_uses_substring_operator(self, normalizer):
        filters = normalizer.normalize("rules", {"desc": "Combat"})

        assert filters.criteria == (Criterion("desc", Operator.ICONTAINS, ("combat",)),)

    def test_order_independent(self, normalizer):
        first = normalizer.normalize("spells", [("school", "Illusion,Evocation"), ("level", "8,1")])
        second = normalizer.normalize("spells", [("level", "1"), ("level", "8"), ("school", "evocation,illusion")])

        assert first == second
        assert first.cache_token() == second.cache_token()

    def test_mapping_with_list_values(self, normalizer):
        filters = normalizer.normalize("spells", {"level": ["1", "2"], "name": None})

        assert filters.criteria == (Criterion("level", Operator.IN, (1, 2)),)

    def test_unknown_collection(self, normalizer):
        with pytest.raises(NotFoundError):
            normalizer.normalize("vehicles", [])


class TestCoerceNumber:

    @pytest.mark.parametrize("raw,expected", [("1", 1), ("1.0", 1), ("0.125", 0.125), ("-2", -2)])
    def test_valid(self, raw, expected):
        assert coerce_number("level", raw) == expected

    @pytest.mark.parametrize("raw", ["", "x", "nan", "-inf", "1/4"])
    def test_invalid(self, raw):
        with pytest.raises(BadFilterError) as exc_info:
            coerce_number("level", raw)
        assert exc_info.value.field == "level"


class TestFilterModel:
    """Matching semantics shared by every store."""

    def test_values_at_flattens_arrays(self):
        document = {"classes": [{"index": "wizard"}, {"index": "sorcerer"}], "school": {"name": "Evocation"}}

        assert values_at(document, "classes.index") == ["wizard", "sorcerer"]
        assert values_at(document, "school.name") == ["Evocation"]
        assert values_at(document, "subclass.index") == []

    def test_iexact_folds_stored_case(self):
        criterion = Criterion.of("name", Operator.IEXACT, ["fireball"])

        assert criterion.matches({"name": "Fireball"})
        assert not criterion.matches({"name": "Delayed Blast Fireball"})

    def test_icontains_matches_array_elements(self):
        criterion = Criterion.of("desc", Operator.ICONTAINS, ["sword"])

        assert criterion.matches({"desc": ["A shield.", "The clang of a Sword."]})
        assert not criterion.matches({"desc": "No blades here."})

    def test_in_matches_numbers_only(self):
        criterion = Criterion.of("level", Operator.IN, [1, 8])

        assert criterion.matches({"level": 1})
        assert criterion.matches({"level": 8.0})
        assert not criterion.matches({"level": True})
        assert not criterion.matches({"level": 2})

    def test_eq_is_case_sensitive(self):
        criterion = Criterion.equals("index", "wizard")

        assert criterion.matches({"index": "wizard"})
        assert not criterion.matches({"index": "Wizard"})

    def test_absent(self):
        criterion = Criterion.absent("subclass")

        assert criterion.matches({"level": 1})
        assert not criterion.matches({"level": 3, "subclass": {"index": "berserker"}})

    def test_filter_set_merges_and_orders(self):
        filters = FilterSet.of([
            Criterion.of("level", Operator.IN, [8]),
            Criterion.equals("classes.index", "wizard"),
            Criterion.of("level", Operator.IN, [1]),
        ])

        assert [c.path for c in filters] == ["classes.index", "level"]
        assert filters.criteria[1].values == (1, 8)

    def test_and_combines(self):
        filters = FilterSet.by_index("wizard").and_(Criterion.absent("subclass"))

        assert len(filters) == 2
        assert filters.matches({"index": "wizard"})
        assert not filters.matches({"index": "wizard", "subclass": {}})
