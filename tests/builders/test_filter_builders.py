"""Tests for filter builders."""

import uuid
from datetime import UTC, datetime

import pytest

from qdrant_wire.builders.filters import (
    FilterBuilder,
    datetime_range,
    exclude_ids,
    geo_polygon,
    geo_radius,
    has_id,
    has_ids,
    match_any,
    match_bool,
    match_except,
    match_integer,
    match_keyword,
    match_text,
    match_value,
    min_should,
    must,
    must_not,
    point_id,
    range_,
    should,
    values_count,
)
from qdrant_wire.core.exceptions import ConstructionError
from qdrant_wire.models.filters import (
    DatetimeRange,
    FieldCondition,
    Filter,
    HasId,
    IsNull,
    MatchAny,
    MatchExcept,
    MatchValue,
    MinShould,
    Range,
)
from qdrant_wire.models.points import NumericId, UuidId


class TestPointId:
    def test_int_becomes_numeric(self):
        assert point_id(7) == NumericId(7)
        assert point_id(2**64 - 1) == NumericId(2**64 - 1)

    def test_str_and_uuid_become_uuid_ids(self):
        value = uuid.uuid4()
        assert point_id(value) == UuidId(str(value))
        assert point_id("5c56c793-69f3-4fbf-87e6-c4bf54c28c26") == UuidId(
            "5c56c793-69f3-4fbf-87e6-c4bf54c28c26"
        )

    def test_no_coercion_between_variants(self):
        assert point_id("1") == UuidId("1")
        assert point_id("1") != point_id(1)

    @pytest.mark.parametrize("value", [-1, 2**64, True, "", 1.5])
    def test_rejects_invalid(self, value):
        with pytest.raises(ConstructionError):
            point_id(value)


class TestRange:
    def test_builds_float_bounds(self):
        cond = range_("price", gte=10, lte=50)
        assert cond == FieldCondition("price", Range(gte=10.0, lte=50.0))

    def test_requires_a_bound(self):
        with pytest.raises(ConstructionError, match="at least one bound"):
            range_("price")

    @pytest.mark.parametrize(
        "kwargs", [{"gt": 1.0, "gte": 2.0}, {"lt": 1.0, "lte": 2.0}]
    )
    def test_rejects_conflicting_bounds(self, kwargs):
        with pytest.raises(ConstructionError):
            range_("price", **kwargs)

    def test_values_count_rules(self):
        assert values_count("tags", gte=1).predicate.gte == 1  # pyright: ignore[reportAttributeAccessIssue]
        with pytest.raises(ConstructionError):
            values_count("tags")
        with pytest.raises(ConstructionError):
            values_count("tags", gt=-1)

    def test_datetime_range_makes_naive_values_utc(self):
        cond = datetime_range("created", gte=datetime(2024, 1, 1))
        assert cond.predicate == DatetimeRange(gte=datetime(2024, 1, 1, tzinfo=UTC))
        with pytest.raises(ConstructionError):
            datetime_range("created", gt=datetime(2024, 1, 1), gte=datetime(2024, 1, 2))


class TestMatch:
    def test_scalar_matches(self):
        assert match_keyword("category", "shoes").predicate == MatchValue("shoes")
        assert match_integer("count", 3).predicate == MatchValue(3)
        assert match_bool("active", True).predicate == MatchValue(True)
        assert match_value("category", "shoes") == match_keyword("category", "shoes")

    def test_scalar_type_checks(self):
        with pytest.raises(ConstructionError):
            match_value("price", 1.5)  # pyright: ignore[reportArgumentType]
        with pytest.raises(ConstructionError):
            match_integer("count", True)
        with pytest.raises(ConstructionError):
            match_keyword("category", 1)  # pyright: ignore[reportArgumentType]
        with pytest.raises(ConstructionError):
            match_text("body", "")

    def test_match_any_and_except(self):
        assert match_any("color", ["red", "blue"]).predicate == MatchAny(("red", "blue"))
        assert match_except("size", [1, 2]).predicate == MatchExcept((1, 2))

    @pytest.mark.parametrize("values", [[], ["red", 1], [True, False]])
    def test_match_any_rejects_empty_or_mixed(self, values):
        with pytest.raises(ConstructionError):
            match_any("color", values)


class TestGeo:
    def test_radius_must_be_positive(self):
        with pytest.raises(ConstructionError):
            geo_radius("location", lon=0.0, lat=0.0, radius=0.0)

    def test_polygon_rings_must_be_closed(self):
        ring = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0)]
        assert geo_polygon("area", ring).key == "area"
        with pytest.raises(ConstructionError):
            geo_polygon("area", ring[:-1])
        with pytest.raises(ConstructionError):
            geo_polygon("area", [(0.0, 0.0), (1.0, 1.0), (0.0, 0.0)])


class TestCombinators:
    def test_clauses_accept_any_count(self):
        assert must() == Filter()
        assert should(IsNull("a"), IsNull("b")).should == (IsNull("a"), IsNull("b"))
        assert must_not(IsNull("a")).must_not == (IsNull("a"),)

    def test_min_should_bounds(self):
        conditions = [IsNull("a"), IsNull("b")]
        assert min_should(conditions, 2) == MinShould(tuple(conditions), 2)
        with pytest.raises(ConstructionError):
            min_should(conditions, 0)
        with pytest.raises(ConstructionError):
            min_should(conditions, 3)

    def test_id_sugar_desugars_to_has_id(self):
        assert has_ids([1, 2]) == Filter(must=(HasId(frozenset({NumericId(1), NumericId(2)})),))
        assert exclude_ids(["x"]) == Filter(must_not=(has_id(["x"]),))

    def test_filter_builder(self):
        flt = (
            FilterBuilder()
            .must(match_keyword("category", "shoes"))
            .must(range_("price", gte=10.0, lte=50.0))
            .must_not(IsNull("brand"))
            .min_should([IsNull("a"), IsNull("b")], 1)
            .build()
        )
        assert flt.must == (
            match_keyword("category", "shoes"),
            FieldCondition("price", Range(gte=10.0, lte=50.0)),
        )
        assert flt.must_not == (IsNull("brand"),)
        assert flt.min_should is not None and flt.min_should.min_count == 1
        assert FilterBuilder().build().is_empty()
