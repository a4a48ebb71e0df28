"""Builder API producing expression model values."""

from qdrant_wire.builders.filters import (
    FilterBuilder,
    PointIdLike,
    datetime_range,
    exclude_ids,
    geo_bounding_box,
    geo_polygon,
    geo_radius,
    has_id,
    has_ids,
    has_vector,
    is_empty,
    is_null,
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
    nested,
    point_id,
    point_ids,
    range_,
    should,
    values_count,
)
from qdrant_wire.builders.vectors import (
    DenseLike,
    dense,
    multi_dense,
    named,
    search_params,
    sparse,
    with_payload,
    with_vectors,
    without_payload_keys,
)

__all__ = [
    # Filters
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
    # Vectors and selectors
    "DenseLike",
    "dense",
    "multi_dense",
    "named",
    "search_params",
    "sparse",
    "with_payload",
    "with_vectors",
    "without_payload_keys",
]
