"""Builders for filter expressions.

Every function returns an immutable model value and raises
``ConstructionError`` when the requested shape is meaningless, so bad filters
never reach the converter or the wire.

Example::

    flt = (
        FilterBuilder()
        .must(match_keyword("category", "shoes"))
        .must(range_("price", gte=10.0, lte=50.0))
        .must_not(is_null("brand"))
        .build()
    )
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from qdrant_wire.core.constants import MAX_NUMERIC_ID
from qdrant_wire.core.exceptions import ConstructionError
from qdrant_wire.models.filters import (
    Condition,
    DatetimeRange,
    FieldCondition,
    Filter,
    GeoBoundingBox,
    GeoPoint,
    GeoPolygon,
    GeoRadius,
    HasId,
    HasVector,
    IsEmpty,
    IsNull,
    MatchAny,
    MatchExcept,
    MatchText,
    MatchValue,
    MinShould,
    Nested,
    Range,
    ValuesCount,
)
from qdrant_wire.models.points import NumericId, PointId, UuidId

PointIdLike = PointId | int | str | uuid.UUID


def point_id(value: PointIdLike) -> PointId:
    """Build a point id. Integers become numeric ids, strings and UUIDs uuid ids."""
    if isinstance(value, (NumericId, UuidId)):
        return value
    if isinstance(value, bool):
        raise ConstructionError("Point id cannot be a boolean")
    if isinstance(value, int):
        if not 0 <= value <= MAX_NUMERIC_ID:
            raise ConstructionError(f"Numeric point id {value} is outside the uint64 range")
        return NumericId(value)
    if isinstance(value, uuid.UUID):
        return UuidId(str(value))
    if isinstance(value, str):
        if not value:
            raise ConstructionError("UUID point id cannot be empty")
        return UuidId(value)
    raise ConstructionError(f"Unsupported point id type: {type(value).__name__}")


def point_ids(values: Iterable[PointIdLike]) -> tuple[PointId, ...]:
    return tuple(point_id(v) for v in values)


# Match


def match_value(key: str, value: str | int | bool) -> FieldCondition:
    """Exact match on a keyword, integer or boolean."""
    if not isinstance(value, (str, int)):
        raise ConstructionError(
            f"match_value on '{key}' expects str, int or bool, got {type(value).__name__}"
        )
    return FieldCondition(key, MatchValue(value))


def match_keyword(key: str, value: str) -> FieldCondition:
    if not isinstance(value, str):
        raise ConstructionError(f"match_keyword on '{key}' expects a string")
    return FieldCondition(key, MatchValue(value))


def match_integer(key: str, value: int) -> FieldCondition:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConstructionError(f"match_integer on '{key}' expects an int")
    return FieldCondition(key, MatchValue(value))


def match_bool(key: str, value: bool) -> FieldCondition:
    if not isinstance(value, bool):
        raise ConstructionError(f"match_bool on '{key}' expects a bool")
    return FieldCondition(key, MatchValue(value))


def match_text(key: str, text: str) -> FieldCondition:
    """Full-text match; requires a text index on the server."""
    if not text:
        raise ConstructionError(f"match_text on '{key}' needs a non-empty query")
    return FieldCondition(key, MatchText(text))


def match_any(key: str, values: Iterable[str] | Iterable[int]) -> FieldCondition:
    """Match if the field equals any of ``values``."""
    return FieldCondition(key, MatchAny(_value_set(key, values)))


def match_except(key: str, values: Iterable[str] | Iterable[int]) -> FieldCondition:
    """Match if the field equals none of ``values``."""
    return FieldCondition(key, MatchExcept(_value_set(key, values)))


def _value_set(
    key: str, values: Iterable[str] | Iterable[int]
) -> tuple[str, ...] | tuple[int, ...]:
    items = tuple(values)
    if not items:
        raise ConstructionError(f"Match set for '{key}' cannot be empty")
    if all(isinstance(v, str) for v in items):
        return items  # type: ignore[return-value]
    if all(isinstance(v, int) and not isinstance(v, bool) for v in items):
        return items  # type: ignore[return-value]
    raise ConstructionError(f"Match set for '{key}' must be all strings or all integers")


# Bounds


def _check_bounds(kind: str, key: str, gt: object, gte: object, lt: object, lte: object) -> None:
    if gt is None and gte is None and lt is None and lte is None:
        raise ConstructionError(f"{kind} on '{key}' needs at least one bound")
    if gt is not None and gte is not None:
        raise ConstructionError(f"{kind} on '{key}' cannot set both gt and gte")
    if lt is not None and lte is not None:
        raise ConstructionError(f"{kind} on '{key}' cannot set both lt and lte")


def _opt_float(value: float | None) -> float | None:
    return None if value is None else float(value)


def range_(
    key: str,
    *,
    gt: float | None = None,
    gte: float | None = None,
    lt: float | None = None,
    lte: float | None = None,
) -> FieldCondition:
    """Numeric range condition."""
    _check_bounds("Range", key, gt, gte, lt, lte)
    return FieldCondition(
        key,
        Range(gt=_opt_float(gt), gte=_opt_float(gte), lt=_opt_float(lt), lte=_opt_float(lte)),
    )


def _utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def datetime_range(
    key: str,
    *,
    gt: datetime | None = None,
    gte: datetime | None = None,
    lt: datetime | None = None,
    lte: datetime | None = None,
) -> FieldCondition:
    """Datetime range condition. Naive datetimes are taken as UTC."""
    _check_bounds("DatetimeRange", key, gt, gte, lt, lte)
    return FieldCondition(
        key, DatetimeRange(gt=_utc(gt), gte=_utc(gte), lt=_utc(lt), lte=_utc(lte))
    )


def values_count(
    key: str,
    *,
    gt: int | None = None,
    gte: int | None = None,
    lt: int | None = None,
    lte: int | None = None,
) -> FieldCondition:
    """Condition on how many values are stored under ``key``."""
    _check_bounds("ValuesCount", key, gt, gte, lt, lte)
    for bound in (gt, gte, lt, lte):
        if bound is not None and bound < 0:
            raise ConstructionError(f"ValuesCount on '{key}' bounds must be non-negative")
    return FieldCondition(key, ValuesCount(gt=gt, gte=gte, lt=lt, lte=lte))


# Geo


def geo_radius(key: str, *, lon: float, lat: float, radius: float) -> FieldCondition:
    if radius <= 0:
        raise ConstructionError(f"Geo radius on '{key}' must be positive")
    return FieldCondition(key, GeoRadius(GeoPoint(float(lon), float(lat)), float(radius)))


def geo_bounding_box(
    key: str, *, top_left: tuple[float, float], bottom_right: tuple[float, float]
) -> FieldCondition:
    """Bounding box given as ``(lon, lat)`` corners."""
    return FieldCondition(
        key, GeoBoundingBox(GeoPoint(*map(float, top_left)), GeoPoint(*map(float, bottom_right)))
    )


def geo_polygon(
    key: str,
    exterior: Sequence[tuple[float, float]],
    interiors: Sequence[Sequence[tuple[float, float]]] = (),
) -> FieldCondition:
    """Polygon given as closed rings of ``(lon, lat)`` points."""
    rings = [exterior, *interiors]
    for ring in rings:
        if len(ring) < 4 or tuple(ring[0]) != tuple(ring[-1]):
            raise ConstructionError(
                f"Geo polygon on '{key}' rings need at least 4 points and must be closed"
            )
    return FieldCondition(
        key,
        GeoPolygon(
            exterior=tuple(GeoPoint(float(lon), float(lat)) for lon, lat in exterior),
            interiors=tuple(
                tuple(GeoPoint(float(lon), float(lat)) for lon, lat in ring) for ring in interiors
            ),
        ),
    )


# Key conditions


def is_null(key: str) -> IsNull:
    return IsNull(key)


def is_empty(key: str) -> IsEmpty:
    return IsEmpty(key)


def has_vector(name: str) -> HasVector:
    return HasVector(name)


def has_id(ids: Iterable[PointIdLike]) -> HasId:
    return HasId(frozenset(point_ids(ids)))


def nested(key: str, filter: Filter) -> Nested:
    """Apply ``filter`` to each object of the array stored under ``key``."""
    return Nested(key, filter)


# Boolean combinators


def must(*conditions: Condition) -> Filter:
    return Filter(must=conditions)


def should(*conditions: Condition) -> Filter:
    return Filter(should=conditions)


def must_not(*conditions: Condition) -> Filter:
    return Filter(must_not=conditions)


def min_should(conditions: Iterable[Condition], min_count: int) -> MinShould:
    items = tuple(conditions)
    if min_count < 1:
        raise ConstructionError("min_should count must be at least 1")
    if min_count > len(items):
        raise ConstructionError(
            f"min_should count {min_count} exceeds the {len(items)} conditions given"
        )
    return MinShould(items, min_count)


# Sugar


def has_ids(ids: Iterable[PointIdLike]) -> Filter:
    """Filter matching any of the given ids."""
    return Filter(must=(has_id(ids),))


def exclude_ids(ids: Iterable[PointIdLike]) -> Filter:
    """Filter matching every point except the given ids."""
    return Filter(must_not=(has_id(ids),))


class FilterBuilder:
    """Mutable accumulator producing an immutable ``Filter``."""

    def __init__(self) -> None:
        self._must: list[Condition] = []
        self._should: list[Condition] = []
        self._must_not: list[Condition] = []
        self._min_should: MinShould | None = None

    def must(self, *conditions: Condition) -> FilterBuilder:
        self._must.extend(conditions)
        return self

    def should(self, *conditions: Condition) -> FilterBuilder:
        self._should.extend(conditions)
        return self

    def must_not(self, *conditions: Condition) -> FilterBuilder:
        self._must_not.extend(conditions)
        return self

    def min_should(self, conditions: Iterable[Condition], min_count: int) -> FilterBuilder:
        self._min_should = min_should(conditions, min_count)
        return self

    def build(self) -> Filter:
        return Filter(
            must=tuple(self._must),
            should=tuple(self._should),
            must_not=tuple(self._must_not),
            min_should=self._min_should,
        )


__all__ = [
    "FilterBuilder",
    "PointIdLike",
    "datetime_range",
    "exclude_ids",
    "geo_bounding_box",
    "geo_polygon",
    "geo_radius",
    "has_id",
    "has_ids",
    "has_vector",
    "is_empty",
    "is_null",
    "match_any",
    "match_bool",
    "match_except",
    "match_integer",
    "match_keyword",
    "match_text",
    "match_value",
    "min_should",
    "must",
    "must_not",
    "nested",
    "point_id",
    "point_ids",
    "range_",
    "should",
    "values_count",
]
