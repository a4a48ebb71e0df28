"""Translate point ids and vector specifications to and from wire messages."""

from __future__ import annotations

from typing import Any

from qdrant_client import grpc as pb

from qdrant_wire.adapters.common import check_uint64, has_field, require_oneof, which_oneof
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.points import NumericId, PointId, UuidId
from qdrant_wire.models.vectors import Dense, MultiDense, Named, Sparse, VectorSpec

# Schema versions with a ``Vector.vector`` oneof prefer it over the legacy
# ``data``/``indices``/``vectors_count`` layout.
_VECTOR_ONEOF = "vector" in pb.Vector.DESCRIPTOR.oneofs_by_name


# Point ids


def point_id_to_grpc(point_id: PointId, path: str = "id") -> pb.PointId:
    if isinstance(point_id, NumericId):
        if isinstance(point_id.value, bool) or not isinstance(point_id.value, int):
            raise ConversionError(path, "numeric id must be an int")
        return pb.PointId(num=check_uint64(point_id.value, path))
    if isinstance(point_id, UuidId):
        if not isinstance(point_id.value, str) or not point_id.value:
            raise ConversionError(path, "uuid id must be a non-empty string")
        return pb.PointId(uuid=point_id.value)
    raise ConversionError(path, f"unknown point id variant {type(point_id).__name__}")


def point_id_from_grpc(message: pb.PointId, path: str = "id") -> PointId:
    arm = require_oneof(message, "point_id_options", path)
    if arm == "num":
        return NumericId(message.num)
    if arm == "uuid":
        return UuidId(message.uuid)
    raise ConversionError(path, f"unknown point id arm '{arm}'")


# Single vectors


def _dense_values(vector: Dense, path: str) -> list[float]:
    if not vector.values:
        raise ConversionError(path, "dense vector cannot be empty")
    return list(vector.values)


def _sparse_parts(vector: Sparse, path: str) -> tuple[list[int], list[float]]:
    indices = list(vector.indices)
    if len(set(indices)) != len(indices):
        raise ConversionError(path, "sparse indices must be unique")
    for index in indices:
        if not 0 <= index < 2**32:
            raise ConversionError(path, f"sparse index {index} does not fit in uint32")
    return indices, list(vector.values)


def _multi_rows(vector: MultiDense, path: str) -> list[list[float]]:
    if not vector.vectors:
        raise ConversionError(path, "multi-dense vector needs at least one row")
    rows = [_dense_values(row, f"{path}[{i}]") for i, row in enumerate(vector.vectors)]
    if len({len(row) for row in rows}) != 1:
        raise ConversionError(path, "multi-dense rows must share one dimensionality")
    return rows


def vector_to_grpc(vector: VectorSpec, path: str = "vector") -> pb.Vector:
    """Encode one unnamed vector into a ``Vector`` message."""
    if isinstance(vector, Dense):
        data = _dense_values(vector, path)
        if _VECTOR_ONEOF:
            return pb.Vector(dense=pb.DenseVector(data=data))
        return pb.Vector(data=data)
    if isinstance(vector, Sparse):
        indices, values = _sparse_parts(vector, path)
        if _VECTOR_ONEOF:
            return pb.Vector(sparse=pb.SparseVector(indices=indices, values=values))
        return pb.Vector(data=values, indices=pb.SparseIndices(data=indices))
    if isinstance(vector, MultiDense):
        rows = _multi_rows(vector, path)
        if _VECTOR_ONEOF:
            return pb.Vector(
                multi_dense=pb.MultiDenseVector(vectors=[pb.DenseVector(data=row) for row in rows])
            )
        return pb.Vector(data=[x for row in rows for x in row], vectors_count=len(rows))
    if isinstance(vector, Named):
        raise ConversionError(path, "named vectors cannot be nested inside a single vector")
    raise ConversionError(path, f"unknown vector variant {type(vector).__name__}")


def vector_from_grpc(message: Any, path: str = "vector") -> VectorSpec:
    """Decode a ``Vector`` or ``VectorOutput`` message."""
    arm = which_oneof(message, "vector")
    if arm == "dense":
        return Dense(tuple(message.dense.data))
    if arm == "sparse":
        return _sparse_from_parts(list(message.sparse.indices), list(message.sparse.values), path)
    if arm == "multi_dense":
        return MultiDense(tuple(Dense(tuple(row.data)) for row in message.multi_dense.vectors))
    if arm is not None:
        raise ConversionError(path, f"vector arm '{arm}' carries no decodable vector")
    return _legacy_vector_from_grpc(message, path)


def _legacy_vector_from_grpc(message: Any, path: str) -> VectorSpec:
    data = list(message.data)
    if has_field(message, "indices"):
        return _sparse_from_parts(list(message.indices.data), data, path)
    if has_field(message, "vectors_count") and message.vectors_count > 0:
        count = message.vectors_count
        if len(data) % count:
            raise ConversionError(path, f"{len(data)} values cannot form {count} equal rows")
        width = len(data) // count
        return MultiDense(
            tuple(Dense(tuple(data[i * width : (i + 1) * width])) for i in range(count))
        )
    if not data:
        raise ConversionError(path, "vector has no variant set")
    return Dense(tuple(data))


def _sparse_from_parts(indices: list[int], values: list[float], path: str) -> Sparse:
    if len(indices) != len(values):
        raise ConversionError(
            path, f"sparse vector has {len(indices)} indices but {len(values)} values"
        )
    if len(set(indices)) != len(indices):
        raise ConversionError(path, "sparse indices must be unique")
    return Sparse(tuple(zip(indices, values, strict=True)))


# Point vectors (unnamed or named)


def vectors_to_grpc(vector: VectorSpec, path: str = "vectors") -> pb.Vectors:
    """Encode the vectors of a point."""
    if isinstance(vector, Named):
        if not vector.vectors:
            raise ConversionError(path, "named vectors cannot be empty")
        seen: set[str] = set()
        for name, _ in vector.vectors:
            if name in seen:
                raise ConversionError(f"{path}.{name}", "duplicate vector name")
            seen.add(name)
        return pb.Vectors(
            vectors=pb.NamedVectors(
                vectors={
                    name: vector_to_grpc(item, f"{path}.{name}") for name, item in vector.vectors
                }
            )
        )
    return pb.Vectors(vector=vector_to_grpc(vector, path))


def vectors_from_grpc(message: Any, path: str = "vectors") -> VectorSpec:
    """Decode a ``Vectors`` or ``VectorsOutput`` message."""
    arm = require_oneof(message, "vectors_options", path)
    if arm == "vector":
        return vector_from_grpc(message.vector, path)
    if arm == "vectors":
        return Named(
            tuple(
                (name, vector_from_grpc(item, f"{path}.{name}"))
                for name, item in message.vectors.vectors.items()
            )
        )
    raise ConversionError(path, f"unknown vectors arm '{arm}'")


# Query inputs


def split_named(vector: VectorSpec, path: str) -> tuple[str | None, VectorSpec]:
    """Unwrap a single-entry ``Named`` into ``(name, vector)``."""
    if isinstance(vector, Named):
        if len(vector.vectors) != 1:
            raise ConversionError(
                path, f"a query vector must name exactly one vector, got {len(vector.vectors)}"
            )
        name, inner = vector.vectors[0]
        if isinstance(inner, Named):
            raise ConversionError(path, "named vectors cannot be nested")
        return name, inner
    return None, vector


def vector_input_to_grpc(
    query: VectorSpec | PointId, path: str = "query"
) -> tuple[pb.VectorInput, str | None]:
    """Encode a nearest-neighbour query input and the vector name it targets."""
    if isinstance(query, (NumericId, UuidId)):
        return pb.VectorInput(id=point_id_to_grpc(query, path)), None
    using, vector = split_named(query, path)
    if isinstance(vector, Dense):
        return pb.VectorInput(dense=pb.DenseVector(data=_dense_values(vector, path))), using
    if isinstance(vector, Sparse):
        indices, values = _sparse_parts(vector, path)
        return pb.VectorInput(sparse=pb.SparseVector(indices=indices, values=values)), using
    if isinstance(vector, MultiDense):
        rows = _multi_rows(vector, path)
        return (
            pb.VectorInput(
                multi_dense=pb.MultiDenseVector(vectors=[pb.DenseVector(data=row) for row in rows])
            ),
            using,
        )
    raise ConversionError(path, f"unknown vector variant {type(vector).__name__}")


def vector_input_from_grpc(
    message: pb.VectorInput, using: str | None = None, path: str = "query"
) -> VectorSpec | PointId:
    arm = require_oneof(message, "variant", path)
    decoded: VectorSpec
    if arm == "id":
        return point_id_from_grpc(message.id, path)
    if arm == "dense":
        decoded = Dense(tuple(message.dense.data))
    elif arm == "sparse":
        decoded = _sparse_from_parts(
            list(message.sparse.indices), list(message.sparse.values), path
        )
    elif arm == "multi_dense":
        decoded = MultiDense(tuple(Dense(tuple(row.data)) for row in message.multi_dense.vectors))
    else:
        raise ConversionError(path, f"query input arm '{arm}' is not supported")
    return Named(((using, decoded),)) if using else decoded


def search_vector_parts(
    vector: VectorSpec, path: str = "vector"
) -> tuple[list[float], pb.SparseIndices | None, str | None]:
    """Split a vector for the legacy search endpoints: ``(values, sparse_indices, name)``."""
    name, inner = split_named(vector, path)
    if isinstance(inner, Dense):
        return _dense_values(inner, path), None, name
    if isinstance(inner, Sparse):
        indices, values = _sparse_parts(inner, path)
        return values, pb.SparseIndices(data=indices), name
    raise ConversionError(
        path, f"{type(inner).__name__} vectors are only supported by the query endpoint"
    )


__all__ = [
    "point_id_from_grpc",
    "point_id_to_grpc",
    "search_vector_parts",
    "split_named",
    "vector_from_grpc",
    "vector_input_from_grpc",
    "vector_input_to_grpc",
    "vector_to_grpc",
    "vectors_from_grpc",
    "vectors_to_grpc",
]
