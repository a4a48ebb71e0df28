"""Filter expression tree.

A ``Filter`` holds three clause tuples plus an optional ``MinShould``. Every
clause entry is a ``Condition``: one of the leaf predicates below or another
``Filter``. The tree is acyclic because values are immutable and built bottom-up.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

from qdrant_wire.models.points import PointId
from qdrant_wire.models.vectors import as_float32


# Match variants


@dataclass(frozen=True)
class MatchValue:
    """Exact match against a keyword, integer or boolean."""

    value: str | int | bool


@dataclass(frozen=True)
class MatchAny:
    """Match if the field equals any of the values."""

    values: tuple[str, ...] | tuple[int, ...]


@dataclass(frozen=True)
class MatchExcept:
    """Match if the field equals none of the values."""

    values: tuple[str, ...] | tuple[int, ...]


@dataclass(frozen=True)
class MatchText:
    """Full-text match."""

    text: str


Match: TypeAlias = MatchValue | MatchAny | MatchExcept | MatchText


# Numeric and temporal bounds


@dataclass(frozen=True)
class Range:
    gt: float | None = None
    gte: float | None = None
    lt: float | None = None
    lte: float | None = None


@dataclass(frozen=True)
class DatetimeRange:
    gt: datetime | None = None
    gte: datetime | None = None
    lt: datetime | None = None
    lte: datetime | None = None


@dataclass(frozen=True)
class ValuesCount:
    """Bounds on the number of values stored under a key."""

    gt: int | None = None
    gte: int | None = None
    lt: int | None = None
    lte: int | None = None


# Geo


@dataclass(frozen=True)
class GeoPoint:
    lon: float
    lat: float


@dataclass(frozen=True)
class GeoRadius:
    center: GeoPoint
    radius: float  # meters, float32 on the wire

    def __post_init__(self) -> None:
        (radius,) = as_float32([self.radius])
        object.__setattr__(self, "radius", radius)


@dataclass(frozen=True)
class GeoBoundingBox:
    top_left: GeoPoint
    bottom_right: GeoPoint


@dataclass(frozen=True)
class GeoPolygon:
    exterior: tuple[GeoPoint, ...]
    interiors: tuple[tuple[GeoPoint, ...], ...] = ()


FieldPredicate: TypeAlias = (
    MatchValue
    | MatchAny
    | MatchExcept
    | MatchText
    | Range
    | DatetimeRange
    | ValuesCount
    | GeoRadius
    | GeoBoundingBox
    | GeoPolygon
)


# Conditions


@dataclass(frozen=True)
class FieldCondition:
    """Predicate over one payload key."""

    key: str
    predicate: FieldPredicate


@dataclass(frozen=True)
class IsNull:
    key: str


@dataclass(frozen=True)
class IsEmpty:
    key: str


@dataclass(frozen=True)
class HasId:
    ids: frozenset[PointId]


@dataclass(frozen=True)
class HasVector:
    """Point has a value for the named vector."""

    name: str


@dataclass(frozen=True)
class Nested:
    """Apply a filter to every element of an array of objects under ``key``."""

    key: str
    filter: Filter


@dataclass(frozen=True)
class MinShould:
    """At least ``min_count`` of ``conditions`` must hold."""

    conditions: tuple[Condition, ...]
    min_count: int


@dataclass(frozen=True)
class Filter:
    must: tuple[Condition, ...] = ()
    should: tuple[Condition, ...] = ()
    must_not: tuple[Condition, ...] = ()
    min_should: MinShould | None = None

    def is_empty(self) -> bool:
        """An empty filter matches every point."""
        return not (self.must or self.should or self.must_not or self.min_should)


Condition: TypeAlias = FieldCondition | IsNull | IsEmpty | HasId | HasVector | Nested | Filter

__all__ = [
    "Condition",
    "DatetimeRange",
    "FieldCondition",
    "FieldPredicate",
    "Filter",
    "GeoBoundingBox",
    "GeoPoint",
    "GeoPolygon",
    "GeoRadius",
    "HasId",
    "HasVector",
    "IsEmpty",
    "IsNull",
    "Match",
    "MatchAny",
    "MatchExcept",
    "MatchText",
    "MatchValue",
    "MinShould",
    "Nested",
    "Range",
    "ValuesCount",
]
