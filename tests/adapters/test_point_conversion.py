"""Tests for point, selector and result conversion."""

import pytest
from qdrant_client import grpc as pb

from qdrant_wire.adapters.points import (
    payload_selector_from_grpc,
    payload_selector_to_grpc,
    point_struct_from_grpc,
    point_struct_to_grpc,
    points_selector_from_grpc,
    points_selector_to_grpc,
    scored_point_from_grpc,
    search_params_from_grpc,
    search_params_to_grpc,
    update_result_from_grpc,
    usage_from_grpc,
    vectors_selector_from_grpc,
    vectors_selector_to_grpc,
)
from qdrant_wire.builders.filters import match_keyword, must, point_id
from qdrant_wire.builders.vectors import (
    dense,
    named,
    search_params,
    sparse,
    with_payload,
    with_vectors,
    without_payload_keys,
)
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.points import HardwareUsage, NumericId, PointStruct, UpdateResult
from qdrant_wire.models.search import SearchParams


def _usage_field():
    return pb.SearchResponse.DESCRIPTOR.fields_by_name["usage"].message_type


def test_point_struct_round_trip():
    point = PointStruct(
        id=point_id(17),
        vectors=named({"text": [0.1, 0.2], "keywords": sparse({5: 1.0})}),
        payload={"category": "shoes", "sizes": [40, 41]},
    )
    assert point_struct_from_grpc(point_struct_to_grpc(point)) == point


def test_point_struct_without_vectors_is_rejected():
    with pytest.raises(ConversionError) as exc_info:
        point_struct_from_grpc(pb.PointStruct(id=pb.PointId(num=1)))
    assert exc_info.value.path == "points.vectors"


def test_scored_point_defaults():
    point = scored_point_from_grpc(pb.ScoredPoint(id=pb.PointId(num=3), score=0.75))
    assert point.id == NumericId(3)
    assert point.payload == {}
    assert point.vectors is None
    assert point.score == 0.75


def test_empty_search_params_encode_nothing():
    assert search_params_to_grpc(SearchParams()).ByteSize() == 0
    assert search_params_from_grpc(pb.SearchParams()) == SearchParams()


def test_search_params_round_trip():
    params = search_params(hnsw_ef=128, exact=False, quantization_rescore=True)
    assert search_params_from_grpc(search_params_to_grpc(params)) == params


@pytest.mark.parametrize(
    "selector", [with_payload(True), with_payload(["a", "b"]), without_payload_keys(["c"])]
)
def test_payload_selector_round_trip(selector):
    assert payload_selector_from_grpc(payload_selector_to_grpc(selector)) == selector


@pytest.mark.parametrize("selector", [with_vectors(False), with_vectors(["image"])])
def test_vectors_selector_round_trip(selector):
    assert vectors_selector_from_grpc(vectors_selector_to_grpc(selector)) == selector


def test_points_selector_by_ids_and_filter():
    ids = [point_id(1), point_id("5c56c793-69f3-4fbf-87e6-c4bf54c28c26")]
    assert points_selector_from_grpc(points_selector_to_grpc(ids)) == ids

    flt = must(match_keyword("category", "shoes"))
    assert points_selector_from_grpc(points_selector_to_grpc(flt)) == flt


def test_empty_id_selector_is_rejected():
    with pytest.raises(ConversionError):
        points_selector_to_grpc([])


def test_update_result():
    message = pb.UpdateResult(operation_id=5, status=pb.UpdateStatus.Completed)
    assert update_result_from_grpc(message) == UpdateResult(status="Completed", operation_id=5)


def test_update_result_unknown_status():
    message = pb.UpdateResult()
    message.ParseFromString(b"\x10\x63")
    with pytest.raises(ConversionError) as exc_info:
        update_result_from_grpc(message)
    assert exc_info.value.path == "result.status"


def test_usage_absent():
    assert usage_from_grpc(pb.SearchResponse(time=0.1)) is None


def test_usage_hardware_counters():
    counters = pb.HardwareUsage(cpu=3)
    if "hardware" in _usage_field().fields_by_name:
        response = pb.SearchResponse(usage=pb.Usage(hardware=counters))
    else:
        response = pb.SearchResponse(usage=counters)

    usage = usage_from_grpc(response)

    assert usage is not None
    assert usage.hardware == HardwareUsage(cpu=3)


def test_dense_point_uses_unnamed_vectors_arm():
    point = PointStruct(id=point_id(1), vectors=dense([1.0, 2.0]))
    message = point_struct_to_grpc(point)
    assert message.vectors.WhichOneof("vectors_options") == "vector"
    assert dict(message.payload) == {}
