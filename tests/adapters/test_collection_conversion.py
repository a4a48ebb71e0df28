"""Tests for collection, snapshot and health conversion."""

from datetime import UTC, datetime

import pytest
from google.protobuf.timestamp_pb2 import Timestamp
from qdrant_client import grpc as pb

from qdrant_wire.adapters.collections import (
    collection_info_from_grpc,
    distance_from_grpc,
    distance_to_grpc,
    health_info_from_grpc,
    snapshot_description_from_grpc,
    sparse_vectors_config_from_grpc,
    sparse_vectors_config_to_grpc,
    vectors_config_from_grpc,
    vectors_config_to_grpc,
)
from qdrant_wire.core.exceptions import ConversionError
from qdrant_wire.models.search import Distance, SparseVectorParams, VectorParams


@pytest.mark.parametrize("distance", list(Distance))
def test_distance_round_trip(distance):
    assert distance_from_grpc(distance_to_grpc(distance)) is distance


def test_unnamed_vectors_config():
    config = VectorParams(size=128, distance=Distance.DOT, on_disk=True)
    message = vectors_config_to_grpc(config)
    assert message.WhichOneof("config") == "params"
    assert vectors_config_from_grpc(message) == config


def test_named_vectors_config():
    config = {"text": VectorParams(size=384), "image": VectorParams(size=512, distance="Euclid")}
    assert vectors_config_from_grpc(vectors_config_to_grpc(config)) == {
        "text": VectorParams(size=384),
        "image": VectorParams(size=512, distance=Distance.EUCLID),
    }


@pytest.mark.parametrize("config", [VectorParams(size=0), {}])
def test_invalid_vectors_config(config):
    with pytest.raises(ConversionError):
        vectors_config_to_grpc(config)


def test_sparse_vectors_config_round_trip():
    config = {"keywords": SparseVectorParams(on_disk=True), "bm25": SparseVectorParams()}
    assert sparse_vectors_config_from_grpc(sparse_vectors_config_to_grpc(config)) == config


def test_collection_info():
    info = collection_info_from_grpc(
        pb.CollectionInfo(status=pb.CollectionStatus.Green, segments_count=2, points_count=10)
    )
    assert info.status == "Green"
    assert info.segments_count == 2
    assert info.points_count == 10
    assert info.indexed_vectors_count is None


def test_collection_info_vector_config():
    message = pb.CollectionInfo(
        status=pb.CollectionStatus.Yellow,
        config=pb.CollectionConfig(
            params=pb.CollectionParams(
                vectors_config=vectors_config_to_grpc({"text": VectorParams(size=384)}),
                sparse_vectors_config=sparse_vectors_config_to_grpc(
                    {"keywords": SparseVectorParams(on_disk=True)}
                ),
            )
        ),
    )
    info = collection_info_from_grpc(message)
    assert info.vectors == {"text": VectorParams(size=384)}
    assert info.sparse_vectors == {"keywords": SparseVectorParams(on_disk=True)}


def test_collection_info_without_config():
    info = collection_info_from_grpc(pb.CollectionInfo(status=pb.CollectionStatus.Green))
    assert info.vectors is None
    assert info.sparse_vectors == {}


def test_unknown_distance_value():
    with pytest.raises(ConversionError) as exc_info:
        distance_from_grpc(99)
    assert exc_info.value.path == "distance"


def test_unknown_collection_status():
    message = pb.CollectionInfo()
    message.ParseFromString(b"\x08\x63")
    with pytest.raises(ConversionError) as exc_info:
        collection_info_from_grpc(message)
    assert exc_info.value.path == "collection_info.status"


def test_snapshot_description():
    created = Timestamp()
    created.FromDatetime(datetime(2024, 3, 1, 8, 30, tzinfo=UTC))
    message = pb.SnapshotDescription(
        name="docs-2024-03-01.snapshot", creation_time=created, size=2048, checksum="ab" * 32
    )

    snapshot = snapshot_description_from_grpc(message)

    assert snapshot.name == "docs-2024-03-01.snapshot"
    assert snapshot.creation_time == datetime(2024, 3, 1, 8, 30, tzinfo=UTC)
    assert snapshot.size == 2048
    assert snapshot.checksum == "ab" * 32


def test_snapshot_description_without_optional_fields():
    snapshot = snapshot_description_from_grpc(pb.SnapshotDescription(name="s", size=1))
    assert snapshot.creation_time is None
    assert snapshot.checksum is None


def test_health_info():
    reply = pb.HealthCheckReply(title="qdrant - vector search engine", version="1.13.2")
    health = health_info_from_grpc(reply)
    assert health.version == "1.13.2"
    assert health.commit is None
