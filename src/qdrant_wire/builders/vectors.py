"""Builders for vectors, search parameters and selectors."""

from __future__ import annotations

import math
import operator
from collections.abc import Iterable, Mapping, Sequence

import numpy as np
import numpy.typing as npt

from qdrant_wire.core.exceptions import ConstructionError
from qdrant_wire.models.search import (
    ExcludePayload,
    IncludePayload,
    IncludeVectors,
    PayloadSelector,
    QuantizationSearchParams,
    SearchParams,
    VectorsSelector,
    WithPayload,
    WithVectors,
)
from qdrant_wire.models.vectors import Dense, MultiDense, Named, Sparse, VectorSpec

DenseLike = Sequence[float] | npt.NDArray[np.floating]


def dense(values: DenseLike) -> Dense:
    """Dense vector from a sequence or 1-d numpy array."""
    array = np.asarray(values, dtype=np.float32)
    if array.ndim != 1:
        raise ConstructionError(f"Dense vector must be 1-dimensional, got shape {array.shape}")
    if array.size == 0:
        raise ConstructionError("Dense vector cannot be empty")
    if not np.all(np.isfinite(array)):
        raise ConstructionError("Dense vector contains NaN or infinite values")
    return Dense(tuple(array.tolist()))


def sparse(
    entries: Mapping[int, float] | None = None,
    *,
    indices: Sequence[int] | None = None,
    values: Sequence[float] | None = None,
) -> Sparse:
    """Sparse vector from an ``{index: value}`` mapping or parallel index/value lists."""
    if entries is not None:
        if indices is not None or values is not None:
            raise ConstructionError("Pass either a mapping or indices/values, not both")
        pairs = list(entries.items())
    else:
        if indices is None or values is None:
            raise ConstructionError("Sparse vector needs both indices and values")
        if len(indices) != len(values):
            raise ConstructionError(
                f"Sparse vector has {len(indices)} indices but {len(values)} values"
            )
        pairs = list(zip(indices, values, strict=True))
        if len({i for i, _ in pairs}) != len(pairs):
            raise ConstructionError("Sparse vector indices must be unique")
    checked: list[tuple[int, float]] = []
    for index, value in pairs:
        if isinstance(index, (bool, float)):
            raise ConstructionError(f"Sparse index {index!r} must be a non-negative int")
        try:
            position = operator.index(index)
        except TypeError as exc:
            raise ConstructionError(f"Sparse index {index!r} must be a non-negative int") from exc
        if position < 0:
            raise ConstructionError(f"Sparse index {index!r} must be a non-negative int")
        if not math.isfinite(value):
            raise ConstructionError(f"Sparse value at index {index} is not finite")
        checked.append((position, float(value)))
    return Sparse(tuple(checked))


def multi_dense(rows: Iterable[DenseLike]) -> MultiDense:
    """Multi-vector from dense rows of equal length."""
    vectors = tuple(dense(row) for row in rows)
    if not vectors:
        raise ConstructionError("Multi-dense vector needs at least one row")
    if len({len(v) for v in vectors}) != 1:
        raise ConstructionError("Multi-dense rows must share one dimensionality")
    return MultiDense(vectors)


def named(vectors: Mapping[str, VectorSpec | DenseLike]) -> Named:
    """Named vectors. Plain sequences are taken as dense vectors."""
    if not vectors:
        raise ConstructionError("Named vectors cannot be empty")
    items: list[tuple[str, VectorSpec]] = []
    for name, vector in vectors.items():
        if not name:
            raise ConstructionError("Vector name cannot be empty")
        if isinstance(vector, Named):
            raise ConstructionError(f"Named vector '{name}' cannot itself be named vectors")
        if isinstance(vector, (Dense, Sparse, MultiDense)):
            items.append((name, vector))
        else:
            items.append((name, dense(vector)))
    return Named(tuple(items))


def search_params(
    *,
    exact: bool | None = None,
    hnsw_ef: int | None = None,
    indexed_only: bool | None = None,
    quantization_ignore: bool | None = None,
    quantization_rescore: bool | None = None,
    quantization_oversampling: float | None = None,
) -> SearchParams:
    """Search parameters; every option left as ``None`` keeps the server default."""
    if hnsw_ef is not None and hnsw_ef < 0:
        raise ConstructionError("hnsw_ef must be non-negative")
    if quantization_oversampling is not None and quantization_oversampling < 1.0:
        raise ConstructionError("Quantization oversampling must be >= 1.0")
    quantization = None
    if (
        quantization_ignore is not None
        or quantization_rescore is not None
        or quantization_oversampling is not None
    ):
        quantization = QuantizationSearchParams(
            ignore=quantization_ignore,
            rescore=quantization_rescore,
            oversampling=quantization_oversampling,
        )
    return SearchParams(
        exact=exact, hnsw_ef=hnsw_ef, quantization=quantization, indexed_only=indexed_only
    )


def with_payload(selection: bool | Iterable[str] | PayloadSelector = True) -> PayloadSelector:
    """``True``/``False`` toggles the whole payload, a list of keys includes only those."""
    if isinstance(selection, (WithPayload, IncludePayload, ExcludePayload)):
        return selection
    if isinstance(selection, bool):
        return WithPayload(selection)
    return IncludePayload(tuple(selection))


def without_payload_keys(keys: Iterable[str]) -> PayloadSelector:
    """Return the whole payload except ``keys``."""
    return ExcludePayload(tuple(keys))


def with_vectors(selection: bool | Iterable[str] | VectorsSelector = True) -> VectorsSelector:
    """``True``/``False`` toggles all vectors, a list of names includes only those."""
    if isinstance(selection, (WithVectors, IncludeVectors)):
        return selection
    if isinstance(selection, bool):
        return WithVectors(selection)
    return IncludeVectors(tuple(selection))


__all__ = [
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
