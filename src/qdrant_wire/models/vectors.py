"""Vector specifications.

``VectorSpec`` is a closed union of four variants. Component values are held at
float32 precision, the precision the engine stores them with, so a vector read
back from the wire compares equal to the one that was sent.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeAlias

import numpy as np


def as_float32(values: Iterable[float]) -> tuple[float, ...]:
    """Round values to float32 precision, returned as plain Python floats."""
    return tuple(np.asarray(list(values), dtype=np.float32).tolist())


@dataclass(frozen=True)
class Dense:
    """Dense vector."""

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", as_float32(self.values))

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Sparse:
    """Sparse vector stored as ``(index, value)`` pairs sorted by index."""

    entries: tuple[tuple[int, float], ...]

    def __post_init__(self) -> None:
        pairs = sorted((int(i), v) for i, v in self.entries)
        values = as_float32(v for _, v in pairs)
        object.__setattr__(
            self, "entries", tuple((i, v) for (i, _), v in zip(pairs, values, strict=True))
        )

    @property
    def indices(self) -> tuple[int, ...]:
        return tuple(i for i, _ in self.entries)

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(v for _, v in self.entries)

    def as_dict(self) -> dict[int, float]:
        return dict(self.entries)


@dataclass(frozen=True)
class MultiDense:
    """Several dense rows addressed as one vector (late interaction)."""

    vectors: tuple[Dense, ...]


@dataclass(frozen=True)
class Named:
    """Named vectors, sorted by name."""

    vectors: tuple[tuple[str, VectorSpec], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "vectors", tuple(sorted(self.vectors, key=lambda kv: kv[0])))

    def get(self, name: str) -> VectorSpec | None:
        for key, vector in self.vectors:
            if key == name:
                return vector
        return None

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.vectors)


VectorSpec: TypeAlias = Dense | Sparse | Named | MultiDense

__all__ = ["Dense", "MultiDense", "Named", "Sparse", "VectorSpec", "as_float32"]
