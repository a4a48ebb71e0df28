"""Translate points, search parameters, selectors and usage reports."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from google.protobuf.message import Message
from qdrant_client import grpc as pb

from qdrant_wire.adapters.common import enum_name, has_field, optional, require_oneof
from qdrant_wire.adapters.filters import filter_from_grpc, filter_to_grpc
from qdrant_wire.adapters.payload import payload_from_grpc, payload_to_grpc
from qdrant_wire.adapters.vectors import (
    point_id_from_grpc,
    point_id_to_grpc,
    vectors_from_grpc,
    vectors_to_grpc,
)
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.filters import Filter
from qdrant_wire.models.points import (
    HardwareUsage,
    InferenceUsage,
    ModelUsage,
    PointId,
    PointStruct,
    RetrievedPoint,
    ScoredPoint,
    UpdateResult,
    Usage,
)
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

_HARDWARE_COUNTERS = (
    "cpu",
    "payload_io_read",
    "payload_io_write",
    "payload_index_io_read",
    "payload_index_io_write",
    "vector_io_read",
    "vector_io_write",
)


# Search parameters


def search_params_to_grpc(params: SearchParams, path: str = "params") -> pb.SearchParams:
    message = pb.SearchParams()
    if params.hnsw_ef is not None:
        if params.hnsw_ef < 0:
            raise ConversionError(f"{path}.hnsw_ef", "must be non-negative")
        message.hnsw_ef = params.hnsw_ef
    if params.exact is not None:
        message.exact = params.exact
    if params.indexed_only is not None:
        message.indexed_only = params.indexed_only
    if params.quantization is not None:
        quantization = params.quantization
        message.quantization.SetInParent()
        if quantization.ignore is not None:
            message.quantization.ignore = quantization.ignore
        if quantization.rescore is not None:
            message.quantization.rescore = quantization.rescore
        if quantization.oversampling is not None:
            message.quantization.oversampling = quantization.oversampling
    return message


def search_params_from_grpc(message: pb.SearchParams) -> SearchParams:
    quantization = None
    if has_field(message, "quantization"):
        q = message.quantization
        quantization = QuantizationSearchParams(
            ignore=optional(q, "ignore"),  # pyright: ignore[reportArgumentType]
            rescore=optional(q, "rescore"),  # pyright: ignore[reportArgumentType]
            oversampling=optional(q, "oversampling"),  # pyright: ignore[reportArgumentType]
        )
    return SearchParams(
        exact=optional(message, "exact"),  # pyright: ignore[reportArgumentType]
        hnsw_ef=optional(message, "hnsw_ef"),  # pyright: ignore[reportArgumentType]
        quantization=quantization,
        indexed_only=optional(message, "indexed_only"),  # pyright: ignore[reportArgumentType]
    )


# Selectors


def payload_selector_to_grpc(
    selector: PayloadSelector, path: str = "with_payload"
) -> pb.WithPayloadSelector:
    if isinstance(selector, WithPayload):
        return pb.WithPayloadSelector(enable=selector.enable)
    if isinstance(selector, IncludePayload):
        return pb.WithPayloadSelector(
            include=pb.PayloadIncludeSelector(fields=list(selector.fields))
        )
    if isinstance(selector, ExcludePayload):
        return pb.WithPayloadSelector(
            exclude=pb.PayloadExcludeSelector(fields=list(selector.fields))
        )
    raise ConversionError(path, f"unknown payload selector {type(selector).__name__}")


def payload_selector_from_grpc(
    message: pb.WithPayloadSelector, path: str = "with_payload"
) -> PayloadSelector:
    arm = require_oneof(message, "selector_options", path)
    if arm == "enable":
        return WithPayload(message.enable)
    if arm == "include":
        return IncludePayload(tuple(message.include.fields))
    if arm == "exclude":
        return ExcludePayload(tuple(message.exclude.fields))
    raise ConversionError(path, f"unknown payload selector arm '{arm}'")


def vectors_selector_to_grpc(
    selector: VectorsSelector, path: str = "with_vectors"
) -> pb.WithVectorsSelector:
    if isinstance(selector, WithVectors):
        return pb.WithVectorsSelector(enable=selector.enable)
    if isinstance(selector, IncludeVectors):
        return pb.WithVectorsSelector(include=pb.VectorsSelector(names=list(selector.names)))
    raise ConversionError(path, f"unknown vectors selector {type(selector).__name__}")


def vectors_selector_from_grpc(
    message: pb.WithVectorsSelector, path: str = "with_vectors"
) -> VectorsSelector:
    arm = require_oneof(message, "selector_options", path)
    if arm == "enable":
        return WithVectors(message.enable)
    if arm == "include":
        return IncludeVectors(tuple(message.include.names))
    raise ConversionError(path, f"unknown vectors selector arm '{arm}'")


# Points


def point_struct_to_grpc(point: PointStruct, path: str = "points") -> pb.PointStruct:
    return pb.PointStruct(
        id=point_id_to_grpc(point.id, f"{path}.id"),
        payload=payload_to_grpc(point.payload, f"{path}.payload"),
        vectors=vectors_to_grpc(point.vectors, f"{path}.vectors"),
    )


def point_struct_from_grpc(message: pb.PointStruct, path: str = "points") -> PointStruct:
    if not has_field(message, "vectors"):
        raise ConversionError(f"{path}.vectors", "point has no vectors")
    return PointStruct(
        id=point_id_from_grpc(message.id, f"{path}.id"),
        vectors=vectors_from_grpc(message.vectors, f"{path}.vectors"),
        payload=payload_from_grpc(message.payload, f"{path}.payload"),
    )


def points_to_grpc(points: Iterable[PointStruct], path: str = "points") -> list[pb.PointStruct]:
    return [point_struct_to_grpc(p, f"{path}[{i}]") for i, p in enumerate(points)]


def scored_point_from_grpc(message: pb.ScoredPoint, path: str = "result") -> ScoredPoint:
    """Decode a search hit. Absent vectors stay ``None``, absent payload is ``{}``."""
    return ScoredPoint(
        id=point_id_from_grpc(message.id, f"{path}.id"),
        score=message.score,
        payload=payload_from_grpc(message.payload, f"{path}.payload"),
        vectors=_optional_vectors(message, path),
        version=message.version,
    )


def retrieved_point_from_grpc(message: pb.RetrievedPoint, path: str = "result") -> RetrievedPoint:
    return RetrievedPoint(
        id=point_id_from_grpc(message.id, f"{path}.id"),
        payload=payload_from_grpc(message.payload, f"{path}.payload"),
        vectors=_optional_vectors(message, path),
    )


def _optional_vectors(message: Message, path: str) -> Any:
    if not has_field(message, "vectors"):
        return None
    return vectors_from_grpc(message.vectors, f"{path}.vectors")  # pyright: ignore[reportAttributeAccessIssue]


def scored_points_from_grpc(
    messages: Iterable[pb.ScoredPoint], path: str = "result"
) -> list[ScoredPoint]:
    return [scored_point_from_grpc(m, f"{path}[{i}]") for i, m in enumerate(messages)]


def retrieved_points_from_grpc(
    messages: Iterable[pb.RetrievedPoint], path: str = "result"
) -> list[RetrievedPoint]:
    return [retrieved_point_from_grpc(m, f"{path}[{i}]") for i, m in enumerate(messages)]


def points_selector_to_grpc(
    selector: Iterable[PointId] | Filter, path: str = "points"
) -> pb.PointsSelector:
    """Select points either by id list or by filter."""
    if isinstance(selector, Filter):
        return pb.PointsSelector(filter=filter_to_grpc(selector, f"{path}.filter"))
    ids = [point_id_to_grpc(pid, f"{path}.ids[{i}]") for i, pid in enumerate(selector)]
    if not ids:
        raise ConversionError(path, "id selector cannot be empty")
    return pb.PointsSelector(points=pb.PointsIdsList(ids=ids))


def points_selector_from_grpc(
    message: pb.PointsSelector, path: str = "points"
) -> list[PointId] | Filter:
    arm = require_oneof(message, "points_selector_one_of", path)
    if arm == "points":
        return [
            point_id_from_grpc(pid, f"{path}.ids[{i}]") for i, pid in enumerate(message.points.ids)
        ]
    if arm == "filter":
        return filter_from_grpc(message.filter, f"{path}.filter")
    raise ConversionError(path, f"unknown points selector arm '{arm}'")


# Results


def update_result_from_grpc(message: pb.UpdateResult, path: str = "result") -> UpdateResult:
    return UpdateResult(
        status=enum_name(pb.UpdateStatus, message.status, f"{path}.status"),
        operation_id=optional(message, "operation_id"),  # pyright: ignore[reportArgumentType]
    )


def usage_from_grpc(response: Message) -> Usage | None:
    """Read the usage report of a response, if the server sent one.

    Older schemas report ``HardwareUsage`` directly in ``usage``, newer ones
    wrap hardware and inference counters in a ``Usage`` message.
    """
    if not has_field(response, "usage"):
        return None
    usage = response.usage  # pyright: ignore[reportAttributeAccessIssue]
    if "hardware" not in usage.DESCRIPTOR.fields_by_name:
        return Usage(hardware=_hardware_from_grpc(usage))
    hardware = _hardware_from_grpc(usage.hardware) if has_field(usage, "hardware") else None
    inference = None
    if has_field(usage, "inference"):
        inference = InferenceUsage(
            models={
                name: ModelUsage(tokens=model.tokens)
                for name, model in usage.inference.models.items()
            }
        )
    return Usage(hardware=hardware, inference=inference)


def _hardware_from_grpc(message: Message) -> HardwareUsage:
    fields = message.DESCRIPTOR.fields_by_name
    return HardwareUsage(
        **{name: getattr(message, name) for name in _HARDWARE_COUNTERS if name in fields}
    )


__all__ = [
    "payload_selector_from_grpc",
    "payload_selector_to_grpc",
    "point_struct_from_grpc",
    "point_struct_to_grpc",
    "points_selector_from_grpc",
    "points_selector_to_grpc",
    "points_to_grpc",
    "retrieved_point_from_grpc",
    "retrieved_points_from_grpc",
    "scored_point_from_grpc",
    "scored_points_from_grpc",
    "search_params_from_grpc",
    "search_params_to_grpc",
    "update_result_from_grpc",
    "usage_from_grpc",
    "vectors_selector_from_grpc",
    "vectors_selector_to_grpc",
]
