"""Expression model: immutable values describing requests and results."""

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
from qdrant_wire.models.points import (
    HardwareUsage,
    InferenceUsage,
    ModelUsage,
    NumericId,
    Payload,
    PointId,
    PointStruct,
    QueryResult,
    RetrievedPoint,
    ScoredPoint,
    UpdateResult,
    Usage,
    UuidId,
)
from qdrant_wire.models.search import (
    Distance,
    ExcludePayload,
    IncludePayload,
    IncludeVectors,
    PayloadSelector,
    QuantizationSearchParams,
    SearchParams,
    SparseVectorParams,
    VectorParams,
    VectorsSelector,
    WithPayload,
    WithVectors,
)
from qdrant_wire.models.vectors import Dense, MultiDense, Named, Sparse, VectorSpec

__all__ = [
    # Vectors
    "Dense",
    "MultiDense",
    "Named",
    "Sparse",
    "VectorSpec",
    # Points
    "HardwareUsage",
    "InferenceUsage",
    "ModelUsage",
    "NumericId",
    "Payload",
    "PointId",
    "PointStruct",
    "QueryResult",
    "RetrievedPoint",
    "ScoredPoint",
    "UpdateResult",
    "Usage",
    "UuidId",
    # Filters
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
    # Search
    "Distance",
    "ExcludePayload",
    "IncludePayload",
    "IncludeVectors",
    "PayloadSelector",
    "QuantizationSearchParams",
    "SearchParams",
    "SparseVectorParams",
    "VectorParams",
    "VectorsSelector",
    "WithPayload",
    "WithVectors",
]
