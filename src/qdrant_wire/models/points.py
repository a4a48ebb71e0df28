"""Point identifiers, point records and usage accounting."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from qdrant_wire.models.vectors import VectorSpec


@dataclass(frozen=True)
class NumericId:
    """Unsigned 64-bit point id."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class UuidId:
    """UUID point id, kept as its string form."""

    value: str

    def __str__(self) -> str:
        return self.value


PointId: TypeAlias = NumericId | UuidId

Payload: TypeAlias = dict[str, Any]


@dataclass(frozen=True)
class PointStruct:
    """A point to upsert."""

    id: PointId
    vectors: VectorSpec
    payload: Payload = field(default_factory=dict, hash=False)


class _PayloadAccess:
    payload: Payload

    def get(self, key: str, default: Any = None) -> Any:
        """Get a payload value, or ``default`` when the key is absent."""
        return self.payload.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def __contains__(self, key: object) -> bool:
        return key in self.payload


@dataclass(frozen=True, eq=True)
class ScoredPoint(_PayloadAccess):
    """A search hit decoded from a response."""

    id: PointId
    score: float
    payload: Payload = field(default_factory=dict)
    vectors: VectorSpec | None = None
    version: int = 0

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True, eq=True)
class RetrievedPoint(_PayloadAccess):
    """A point fetched by id or scroll."""

    id: PointId
    payload: Payload = field(default_factory=dict)
    vectors: VectorSpec | None = None

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of a write operation."""

    status: str
    operation_id: int | None = None


@dataclass(frozen=True)
class ModelUsage:
    tokens: int = 0

    def aggregate(self, other: ModelUsage) -> ModelUsage:
        return ModelUsage(tokens=self.tokens + other.tokens)


@dataclass(frozen=True)
class HardwareUsage:
    """Server-side resource counters reported with a response."""

    cpu: int = 0
    payload_io_read: int = 0
    payload_io_write: int = 0
    payload_index_io_read: int = 0
    payload_index_io_write: int = 0
    vector_io_read: int = 0
    vector_io_write: int = 0

    def aggregate(self, other: HardwareUsage) -> HardwareUsage:
        return HardwareUsage(
            cpu=self.cpu + other.cpu,
            payload_io_read=self.payload_io_read + other.payload_io_read,
            payload_io_write=self.payload_io_write + other.payload_io_write,
            payload_index_io_read=self.payload_index_io_read + other.payload_index_io_read,
            payload_index_io_write=self.payload_index_io_write + other.payload_index_io_write,
            vector_io_read=self.vector_io_read + other.vector_io_read,
            vector_io_write=self.vector_io_write + other.vector_io_write,
        )

    @staticmethod
    def aggregate_opts(
        this: HardwareUsage | None, other: HardwareUsage | None
    ) -> HardwareUsage | None:
        return _aggregate_opts(this, other)


@dataclass(frozen=True)
class InferenceUsage:
    """Token usage per inference model."""

    models: Mapping[str, ModelUsage] = field(default_factory=dict, hash=False)

    def aggregate(self, other: InferenceUsage) -> InferenceUsage:
        models = dict(self.models)
        for name, usage in other.models.items():
            models[name] = models[name].aggregate(usage) if name in models else usage
        return InferenceUsage(models=models)

    @staticmethod
    def aggregate_opts(
        this: InferenceUsage | None, other: InferenceUsage | None
    ) -> InferenceUsage | None:
        return _aggregate_opts(this, other)


@dataclass(frozen=True)
class Usage:
    hardware: HardwareUsage | None = None
    inference: InferenceUsage | None = None

    def aggregate(self, other: Usage) -> Usage:
        return Usage(
            hardware=HardwareUsage.aggregate_opts(self.hardware, other.hardware),
            inference=InferenceUsage.aggregate_opts(self.inference, other.inference),
        )

    @staticmethod
    def aggregate_opts(this: Usage | None, other: Usage | None) -> Usage | None:
        return _aggregate_opts(this, other)


@dataclass(frozen=True)
class QueryResult:
    """Hits of a search, recommend or query call with the server's accounting."""

    points: tuple[ScoredPoint, ...] = ()
    time: float = 0.0
    usage: Usage | None = None

    def __iter__(self) -> Iterator[ScoredPoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> ScoredPoint:
        return self.points[index]


def _aggregate_opts(this: Any, other: Any) -> Any:
    if this is None:
        return other
    if other is None:
        return this
    return this.aggregate(other)


__all__ = [
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
]
