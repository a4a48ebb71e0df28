"""Search parameters, selectors and collection vector configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias


@dataclass(frozen=True)
class QuantizationSearchParams:
    """Quantization hints. ``None`` leaves the server default in place."""

    ignore: bool | None = None
    rescore: bool | None = None
    oversampling: float | None = None


@dataclass(frozen=True)
class SearchParams:
    """Search tuning knobs. ``None`` means "use the server default", never zero."""

    exact: bool | None = None
    hnsw_ef: int | None = None
    quantization: QuantizationSearchParams | None = None
    indexed_only: bool | None = None


# Payload selectors


@dataclass(frozen=True)
class WithPayload:
    enable: bool


@dataclass(frozen=True)
class IncludePayload:
    fields: tuple[str, ...]


@dataclass(frozen=True)
class ExcludePayload:
    fields: tuple[str, ...]


PayloadSelector: TypeAlias = WithPayload | IncludePayload | ExcludePayload


# Vector selectors


@dataclass(frozen=True)
class WithVectors:
    enable: bool


@dataclass(frozen=True)
class IncludeVectors:
    names: tuple[str, ...]


VectorsSelector: TypeAlias = WithVectors | IncludeVectors


class Distance(str, Enum):
    """Similarity metric of a vector space."""

    COSINE = "Cosine"
    EUCLID = "Euclid"
    DOT = "Dot"
    MANHATTAN = "Manhattan"


@dataclass(frozen=True)
class VectorParams:
    """Dense vector space of a collection."""

    size: int
    distance: Distance = Distance.COSINE
    on_disk: bool | None = None


@dataclass(frozen=True)
class SparseVectorParams:
    """Sparse vector space of a collection."""

    on_disk: bool | None = None


__all__ = [
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
