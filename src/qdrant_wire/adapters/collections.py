"""Translate collection configuration, collection info, snapshot and health messages."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC

from qdrant_client import grpc as pb

from qdrant_wire.adapters.common import enum_name, has_field, optional
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.search import Distance, SparseVectorParams, VectorParams
from qdrant_wire.schemas.collections import CollectionInfo
from qdrant_wire.schemas.health import HealthInfo
from qdrant_wire.schemas.snapshots import SnapshotDescription


def distance_to_grpc(distance: Distance, path: str = "distance") -> int:
    try:
        return pb.Distance.Value(Distance(distance).value)
    except ValueError as e:
        raise ConversionError(path, f"unknown distance {distance!r}") from e


def distance_from_grpc(value: int, path: str = "distance") -> Distance:
    name = enum_name(pb.Distance, value, path)
    try:
        return Distance(name)
    except ValueError as e:
        raise ConversionError(path, f"unsupported distance '{name}'") from e


def vector_params_to_grpc(params: VectorParams, path: str = "vectors_config") -> pb.VectorParams:
    if params.size < 1:
        raise ConversionError(f"{path}.size", "vector size must be positive")
    message = pb.VectorParams(size=params.size, distance=distance_to_grpc(params.distance, path))
    if params.on_disk is not None:
        message.on_disk = params.on_disk
    return message


def vector_params_from_grpc(message: pb.VectorParams, path: str = "vectors_config") -> VectorParams:
    return VectorParams(
        size=message.size,
        distance=distance_from_grpc(message.distance, f"{path}.distance"),
        on_disk=optional(message, "on_disk"),  # pyright: ignore[reportArgumentType]
    )


def vectors_config_to_grpc(
    config: VectorParams | Mapping[str, VectorParams], path: str = "vectors_config"
) -> pb.VectorsConfig:
    """Encode one unnamed vector space, or a mapping of named spaces."""
    if isinstance(config, VectorParams):
        return pb.VectorsConfig(params=vector_params_to_grpc(config, path))
    if not config:
        raise ConversionError(path, "at least one named vector space is required")
    return pb.VectorsConfig(
        params_map=pb.VectorParamsMap(
            map={name: vector_params_to_grpc(p, f"{path}.{name}") for name, p in config.items()}
        )
    )


def vectors_config_from_grpc(
    message: pb.VectorsConfig, path: str = "vectors_config"
) -> VectorParams | dict[str, VectorParams]:
    arm = message.WhichOneof("config")
    if arm == "params":
        return vector_params_from_grpc(message.params, path)
    if arm == "params_map":
        return {
            name: vector_params_from_grpc(p, f"{path}.{name}")
            for name, p in message.params_map.map.items()
        }
    raise ConversionError(path, "VectorsConfig.config is not set")


def sparse_vectors_config_to_grpc(
    config: Mapping[str, SparseVectorParams],
) -> pb.SparseVectorConfig:
    entries = {}
    for name, params in config.items():
        entry = pb.SparseVectorParams()
        if params.on_disk is not None:
            entry.index.on_disk = params.on_disk
        entries[name] = entry
    return pb.SparseVectorConfig(map=entries)


def sparse_vectors_config_from_grpc(
    message: pb.SparseVectorConfig,
) -> dict[str, SparseVectorParams]:
    return {
        name: SparseVectorParams(
            on_disk=optional(params.index, "on_disk") if has_field(params, "index") else None  # pyright: ignore[reportArgumentType]
        )
        for name, params in message.map.items()
    }


def collection_info_from_grpc(message: pb.CollectionInfo) -> CollectionInfo:
    params = message.config.params
    vectors = None
    if has_field(params, "vectors_config"):
        vectors = vectors_config_from_grpc(params.vectors_config, "collection_info.vectors_config")
    sparse_vectors: dict[str, SparseVectorParams] = {}
    if has_field(params, "sparse_vectors_config"):
        sparse_vectors = sparse_vectors_config_from_grpc(params.sparse_vectors_config)
    return CollectionInfo(
        status=enum_name(pb.CollectionStatus, message.status, "collection_info.status"),
        segments_count=message.segments_count,
        points_count=optional(message, "points_count"),  # pyright: ignore[reportArgumentType]
        indexed_vectors_count=optional(message, "indexed_vectors_count"),  # pyright: ignore[reportArgumentType]
        vectors=vectors,
        sparse_vectors=sparse_vectors,
    )


def snapshot_description_from_grpc(message: pb.SnapshotDescription) -> SnapshotDescription:
    creation_time = None
    if has_field(message, "creation_time"):
        creation_time = message.creation_time.ToDatetime(tzinfo=UTC)
    return SnapshotDescription(
        name=message.name,
        creation_time=creation_time,
        size=message.size,
        checksum=optional(message, "checksum"),  # pyright: ignore[reportArgumentType]
    )


def health_info_from_grpc(message: pb.HealthCheckReply) -> HealthInfo:
    return HealthInfo(
        title=message.title,
        version=message.version,
        commit=optional(message, "commit"),  # pyright: ignore[reportArgumentType]
    )


__all__ = [
    "collection_info_from_grpc",
    "distance_from_grpc",
    "distance_to_grpc",
    "health_info_from_grpc",
    "snapshot_description_from_grpc",
    "sparse_vectors_config_from_grpc",
    "sparse_vectors_config_to_grpc",
    "vector_params_from_grpc",
    "vector_params_to_grpc",
    "vectors_config_from_grpc",
    "vectors_config_to_grpc",
]
