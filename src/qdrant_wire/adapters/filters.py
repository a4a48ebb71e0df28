"""Translate filter expression trees to and from ``Filter`` messages.

Errors carry the field path of the offending node, e.g.
``filter.must[2].field.match``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from google.protobuf.timestamp_pb2 import Timestamp
from qdrant_client import grpc as pb

from qdrant_wire.adapters.common import (
    check_int64,
    check_uint64,
    has_field,
    optional,
    require_oneof,
)
from qdrant_wire.adapters.vectors import point_id_from_grpc, point_id_to_grpc
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.filters import (
    Condition,
    DatetimeRange,
    FieldCondition,
    FieldPredicate,
    Filter,
    GeoBoundingBox,
    GeoPoint,
    GeoPolygon,
    GeoRadius,
    HasId,
    HasVector,
    IsEmpty,
    IsNull,
    Match,
    MatchAny,
    MatchExcept,
    MatchText,
    MatchValue,
    MinShould,
    Nested,
    Range,
    ValuesCount,
)
from qdrant_wire.models.points import NumericId, PointId

_BOUNDS = ("gt", "gte", "lt", "lte")
_PREDICATE_FIELDS = (
    "match",
    "range",
    "geo_bounding_box",
    "geo_radius",
    "values_count",
    "geo_polygon",
    "datetime_range",
)


def _id_sort_key(point_id: PointId) -> tuple[int, str]:
    # numeric ids first, then uuids, each in natural order
    if isinstance(point_id, NumericId):
        return 0, f"{point_id.value:020d}"
    return 1, point_id.value


# Encode


def filter_to_grpc(flt: Filter, path: str = "filter") -> pb.Filter:
    """Encode a filter. An empty filter becomes the bare match-all message."""
    message = pb.Filter(
        must=[condition_to_grpc(c, f"{path}.must[{i}]") for i, c in enumerate(flt.must)],
        should=[condition_to_grpc(c, f"{path}.should[{i}]") for i, c in enumerate(flt.should)],
        must_not=[
            condition_to_grpc(c, f"{path}.must_not[{i}]") for i, c in enumerate(flt.must_not)
        ],
    )
    if flt.min_should is not None:
        message.min_should.CopyFrom(_min_should_to_grpc(flt.min_should, f"{path}.min_should"))
    return message


def _min_should_to_grpc(min_should: MinShould, path: str) -> pb.MinShould:
    if min_should.min_count < 1:
        raise ConversionError(path, "min_count must be at least 1")
    return pb.MinShould(
        conditions=[
            condition_to_grpc(c, f"{path}.conditions[{i}]")
            for i, c in enumerate(min_should.conditions)
        ],
        min_count=min_should.min_count,
    )


def condition_to_grpc(condition: Condition, path: str) -> pb.Condition:
    if isinstance(condition, FieldCondition):
        return pb.Condition(field=field_condition_to_grpc(condition, f"{path}.field"))
    if isinstance(condition, IsNull):
        return pb.Condition(is_null=pb.IsNullCondition(key=condition.key))
    if isinstance(condition, IsEmpty):
        return pb.Condition(is_empty=pb.IsEmptyCondition(key=condition.key))
    if isinstance(condition, HasId):
        ids = sorted(condition.ids, key=_id_sort_key)
        return pb.Condition(
            has_id=pb.HasIdCondition(
                has_id=[point_id_to_grpc(pid, f"{path}.has_id[{i}]") for i, pid in enumerate(ids)]
            )
        )
    if isinstance(condition, HasVector):
        return pb.Condition(has_vector=pb.HasVectorCondition(has_vector=condition.name))
    if isinstance(condition, Nested):
        return pb.Condition(
            nested=pb.NestedCondition(
                key=condition.key, filter=filter_to_grpc(condition.filter, f"{path}.nested.filter")
            )
        )
    if isinstance(condition, Filter):
        return pb.Condition(filter=filter_to_grpc(condition, f"{path}.filter"))
    raise ConversionError(path, f"unknown condition variant {type(condition).__name__}")


def field_condition_to_grpc(condition: FieldCondition, path: str) -> pb.FieldCondition:
    predicate = condition.predicate
    if isinstance(predicate, (MatchValue, MatchAny, MatchExcept, MatchText)):
        return pb.FieldCondition(key=condition.key, match=match_to_grpc(predicate, f"{path}.match"))
    if isinstance(predicate, Range):
        return pb.FieldCondition(key=condition.key, range=pb.Range(**_bounds(predicate)))
    if isinstance(predicate, ValuesCount):
        bounds = {
            name: check_uint64(value, f"{path}.values_count.{name}")
            for name, value in _bounds(predicate).items()
        }
        return pb.FieldCondition(key=condition.key, values_count=pb.ValuesCount(**bounds))
    if isinstance(predicate, DatetimeRange):
        return pb.FieldCondition(
            key=condition.key,
            datetime_range=pb.DatetimeRange(
                **{name: _timestamp(value) for name, value in _bounds(predicate).items()}
            ),
        )
    if isinstance(predicate, GeoRadius):
        return pb.FieldCondition(
            key=condition.key,
            geo_radius=pb.GeoRadius(center=_geo_point(predicate.center), radius=predicate.radius),
        )
    if isinstance(predicate, GeoBoundingBox):
        return pb.FieldCondition(
            key=condition.key,
            geo_bounding_box=pb.GeoBoundingBox(
                top_left=_geo_point(predicate.top_left),
                bottom_right=_geo_point(predicate.bottom_right),
            ),
        )
    if isinstance(predicate, GeoPolygon):
        return pb.FieldCondition(
            key=condition.key,
            geo_polygon=pb.GeoPolygon(
                exterior=_line_string(predicate.exterior),
                interiors=[_line_string(ring) for ring in predicate.interiors],
            ),
        )
    raise ConversionError(path, f"unknown field predicate {type(predicate).__name__}")


def match_to_grpc(match: Match, path: str) -> pb.Match:
    if isinstance(match, MatchValue):
        value = match.value
        if isinstance(value, bool):
            return pb.Match(boolean=value)
        if isinstance(value, int):
            return pb.Match(integer=check_int64(value, path))
        if isinstance(value, str):
            return pb.Match(keyword=value)
        raise ConversionError(path, f"cannot match on {type(value).__name__}")
    if isinstance(match, MatchText):
        return pb.Match(text=match.text)
    if isinstance(match, (MatchAny, MatchExcept)):
        values = match.values
        negate = isinstance(match, MatchExcept)
        if not values:
            raise ConversionError(path, "match set cannot be empty")
        if all(isinstance(v, str) for v in values):
            strings = pb.RepeatedStrings(strings=list(values))  # pyright: ignore[reportArgumentType]
            return pb.Match(except_keywords=strings) if negate else pb.Match(keywords=strings)
        if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            integers = pb.RepeatedIntegers(
                integers=[check_int64(v, f"{path}[{i}]") for i, v in enumerate(values)]  # pyright: ignore[reportArgumentType]
            )
            return pb.Match(except_integers=integers) if negate else pb.Match(integers=integers)
        raise ConversionError(path, "match set must be all strings or all integers")
    raise ConversionError(path, f"unknown match variant {type(match).__name__}")


def _bounds(predicate: Range | ValuesCount | DatetimeRange) -> dict:
    return {
        name: getattr(predicate, name)
        for name in _BOUNDS
        if getattr(predicate, name) is not None
    }


def _timestamp(value: datetime) -> Timestamp:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    stamp = Timestamp()
    stamp.FromDatetime(value)
    return stamp


def _geo_point(point: GeoPoint) -> pb.GeoPoint:
    return pb.GeoPoint(lon=point.lon, lat=point.lat)


def _line_string(points: tuple[GeoPoint, ...]) -> pb.GeoLineString:
    return pb.GeoLineString(points=[_geo_point(p) for p in points])


# Decode


def filter_from_grpc(message: pb.Filter, path: str = "filter") -> Filter:
    min_should = None
    if has_field(message, "min_should"):
        min_should = MinShould(
            conditions=tuple(
                condition_from_grpc(c, f"{path}.min_should.conditions[{i}]")
                for i, c in enumerate(message.min_should.conditions)
            ),
            min_count=message.min_should.min_count,
        )
    return Filter(
        must=tuple(condition_from_grpc(c, f"{path}.must[{i}]") for i, c in enumerate(message.must)),
        should=tuple(
            condition_from_grpc(c, f"{path}.should[{i}]") for i, c in enumerate(message.should)
        ),
        must_not=tuple(
            condition_from_grpc(c, f"{path}.must_not[{i}]") for i, c in enumerate(message.must_not)
        ),
        min_should=min_should,
    )


def condition_from_grpc(message: pb.Condition, path: str) -> Condition:
    arm = require_oneof(message, "condition_one_of", path)
    if arm == "field":
        return field_condition_from_grpc(message.field, f"{path}.field")
    if arm == "is_null":
        return IsNull(message.is_null.key)
    if arm == "is_empty":
        return IsEmpty(message.is_empty.key)
    if arm == "has_id":
        return HasId(
            frozenset(
                point_id_from_grpc(pid, f"{path}.has_id[{i}]")
                for i, pid in enumerate(message.has_id.has_id)
            )
        )
    if arm == "has_vector":
        return HasVector(message.has_vector.has_vector)
    if arm == "nested":
        return Nested(
            message.nested.key, filter_from_grpc(message.nested.filter, f"{path}.nested.filter")
        )
    if arm == "filter":
        return filter_from_grpc(message.filter, f"{path}.filter")
    raise ConversionError(path, f"unsupported condition arm '{arm}'")


def field_condition_from_grpc(message: pb.FieldCondition, path: str) -> Condition:
    """Decode a ``FieldCondition``.

    Newer schemas can express ``is_empty``/``is_null`` as flags on the field
    condition itself; those decode to ``IsEmpty``/``IsNull``.
    """
    present = [name for name in _PREDICATE_FIELDS if has_field(message, name)]
    flags = [name for name in ("is_empty", "is_null") if optional(message, name)]
    if len(present) + len(flags) != 1:
        found = ", ".join(present + flags) or "none"
        raise ConversionError(path, f"expected exactly one predicate, found {found}")
    if flags:
        return IsEmpty(message.key) if flags[0] == "is_empty" else IsNull(message.key)
    return FieldCondition(message.key, _predicate_from_grpc(message, present[0], path))


def _predicate_from_grpc(message: pb.FieldCondition, name: str, path: str) -> FieldPredicate:
    if name == "match":
        return match_from_grpc(message.match, f"{path}.match")
    if name == "range":
        return Range(**_bounds_from_grpc(message.range))
    if name == "values_count":
        return ValuesCount(**_bounds_from_grpc(message.values_count))
    if name == "datetime_range":
        return DatetimeRange(
            **{
                key: stamp.ToDatetime(tzinfo=UTC)
                for key, stamp in _bounds_from_grpc(message.datetime_range).items()
            }
        )
    if name == "geo_radius":
        return GeoRadius(_geo_point_from_grpc(message.geo_radius.center), message.geo_radius.radius)
    if name == "geo_bounding_box":
        box = message.geo_bounding_box
        return GeoBoundingBox(
            _geo_point_from_grpc(box.top_left), _geo_point_from_grpc(box.bottom_right)
        )
    if name == "geo_polygon":
        polygon = message.geo_polygon
        return GeoPolygon(
            exterior=_line_string_from_grpc(polygon.exterior),
            interiors=tuple(_line_string_from_grpc(ring) for ring in polygon.interiors),
        )
    raise ConversionError(path, f"unsupported predicate '{name}'")


def match_from_grpc(message: pb.Match, path: str) -> Match:
    arm = require_oneof(message, "match_value", path)
    if arm == "keyword":
        return MatchValue(message.keyword)
    if arm == "integer":
        return MatchValue(message.integer)
    if arm == "boolean":
        return MatchValue(message.boolean)
    if arm == "text":
        return MatchText(message.text)
    if arm == "keywords":
        return MatchAny(tuple(message.keywords.strings))
    if arm == "integers":
        return MatchAny(tuple(message.integers.integers))
    if arm == "except_keywords":
        return MatchExcept(tuple(message.except_keywords.strings))
    if arm == "except_integers":
        return MatchExcept(tuple(message.except_integers.integers))
    raise ConversionError(path, f"unsupported match arm '{arm}'")


def _bounds_from_grpc(message: pb.Range | pb.ValuesCount | pb.DatetimeRange) -> dict:
    return {name: getattr(message, name) for name in _BOUNDS if has_field(message, name)}


def _geo_point_from_grpc(message: pb.GeoPoint) -> GeoPoint:
    return GeoPoint(lon=message.lon, lat=message.lat)


def _line_string_from_grpc(message: pb.GeoLineString) -> tuple[GeoPoint, ...]:
    return tuple(_geo_point_from_grpc(p) for p in message.points)


__all__ = [
    "condition_from_grpc",
    "condition_to_grpc",
    "field_condition_from_grpc",
    "field_condition_to_grpc",
    "filter_from_grpc",
    "filter_to_grpc",
    "match_from_grpc",
    "match_to_grpc",
]
