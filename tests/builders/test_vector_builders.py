"""Tests for vector, search parameter and selector builders."""

import numpy as np
import pytest

from qdrant_wire.builders.vectors import (
    dense,
    multi_dense,
    named,
    search_params,
    sparse,
    with_payload,
    with_vectors,
    without_payload_keys,
)
from qdrant_wire.core.exceptions import ConstructionError
from qdrant_wire.models.search import (
    ExcludePayload,
    IncludePayload,
    IncludeVectors,
    QuantizationSearchParams,
    SearchParams,
    WithPayload,
    WithVectors,
)
from qdrant_wire.models.vectors import Dense, Sparse


def test_dense_accepts_numpy_arrays():
    vector = dense(np.arange(4, dtype=np.float64))
    assert vector == Dense((0.0, 1.0, 2.0, 3.0))


@pytest.mark.parametrize("values", [[], [[1.0, 2.0]], [1.0, float("nan")], [float("inf")]])
def test_dense_rejects_bad_input(values):
    with pytest.raises(ConstructionError):
        dense(values)


def test_sparse_from_mapping_and_lists_agree():
    from_mapping = sparse({3: 0.5, 7: 1.2, 100: 0.9})
    from_lists = sparse(indices=[100, 3, 7], values=[0.9, 0.5, 1.2])
    assert from_mapping == from_lists
    assert from_mapping == Sparse(((3, 0.5), (7, 1.2), (100, 0.9)))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"indices": [1, 1], "values": [0.1, 0.2]},
        {"indices": [1, 2], "values": [0.1]},
        {"indices": [-1], "values": [0.1]},
        {"indices": [1.0], "values": [0.1]},
        {"indices": [1], "values": [float("nan")]},
        {"indices": [1]},
    ],
)
def test_sparse_rejects_bad_input(kwargs):
    with pytest.raises(ConstructionError):
        sparse(**kwargs)


def test_sparse_rejects_mapping_with_lists():
    with pytest.raises(ConstructionError):
        sparse({1: 0.1}, indices=[1], values=[0.1])


def test_multi_dense_rows_must_match():
    assert len(multi_dense([[1.0, 2.0], [3.0, 4.0]]).vectors) == 2
    with pytest.raises(ConstructionError):
        multi_dense([[1.0, 2.0], [3.0]])
    with pytest.raises(ConstructionError):
        multi_dense([])


def test_named_wraps_sequences_as_dense():
    vectors = named({"text": [1.0, 2.0], "keywords": sparse({1: 0.5})})
    assert vectors.get("text") == Dense((1.0, 2.0))
    assert vectors.names == ("keywords", "text")


@pytest.mark.parametrize("value", [{}, {"": [1.0]}])
def test_named_rejects_empty(value):
    with pytest.raises(ConstructionError):
        named(value)


def test_named_rejects_nesting():
    inner = named({"a": [1.0]})
    with pytest.raises(ConstructionError):
        named({"outer": inner})


def test_search_params_only_sets_requested_fields():
    assert search_params() == SearchParams()
    params = search_params(hnsw_ef=128, quantization_rescore=True)
    assert params == SearchParams(
        hnsw_ef=128, quantization=QuantizationSearchParams(rescore=True)
    )
    with pytest.raises(ConstructionError):
        search_params(quantization_oversampling=0.5)
    with pytest.raises(ConstructionError):
        search_params(hnsw_ef=-1)


def test_selectors():
    assert with_payload() == WithPayload(True)
    assert with_payload(False) == WithPayload(False)
    assert with_payload(["a", "b"]) == IncludePayload(("a", "b"))
    assert without_payload_keys(["secret"]) == ExcludePayload(("secret",))
    assert with_vectors() == WithVectors(True)
    assert with_vectors(["image"]) == IncludeVectors(("image",))
