"""Typed async client: builder values in, converted requests over the channel, typed results out."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path
from urllib.parse import quote

from qdrant_client import grpc as pb

from qdrant_wire.adapters.collections import (
    collection_info_from_grpc,
    health_info_from_grpc,
    snapshot_description_from_grpc,
    sparse_vectors_config_to_grpc,
    vectors_config_to_grpc,
)
from qdrant_wire.adapters.filters import filter_to_grpc
from qdrant_wire.adapters.points import (
    payload_selector_to_grpc,
    points_selector_to_grpc,
    points_to_grpc,
    retrieved_points_from_grpc,
    scored_points_from_grpc,
    search_params_to_grpc,
    update_result_from_grpc,
    usage_from_grpc,
    vectors_selector_to_grpc,
)
from qdrant_wire.adapters.vectors import (
    point_id_from_grpc,
    point_id_to_grpc,
    search_vector_parts,
    vector_input_to_grpc,
    vector_to_grpc,
)
from qdrant_wire.adapters.version import client_schema_version, is_compatible
from qdrant_wire.builders.filters import PointIdLike, point_id
from qdrant_wire.config import Settings, get_settings
from qdrant_wire.core.constants import (
    SERVICE_COLLECTIONS,
    SERVICE_POINTS,
    SERVICE_QDRANT,
    SERVICE_SNAPSHOTS,
)
from qdrant_wire.core.exceptions import ConversionError, IncompatibleVersionError, QdrantWireError
from qdrant_wire.core.logging import get_logger
from qdrant_wire.models.filters import Filter
from qdrant_wire.models.points import (
    NumericId,
    PointId,
    PointStruct,
    QueryResult,
    RetrievedPoint,
    UpdateResult,
    UuidId,
)
from qdrant_wire.models.search import (
    PayloadSelector,
    SearchParams,
    SparseVectorParams,
    VectorParams,
    VectorsSelector,
    WithPayload,
    WithVectors,
)
from qdrant_wire.models.vectors import Dense, Named, Sparse, VectorSpec
from qdrant_wire.schemas.collections import CollectionDescription, CollectionInfo
from qdrant_wire.schemas.health import HealthInfo
from qdrant_wire.schemas.snapshots import SnapshotDescription, SnapshotTransferResult
from qdrant_wire.services.channel import ChannelManager, ChannelState
from qdrant_wire.services.snapshot_transfer import ProgressCallback, SnapshotDownloader

logger = get_logger(__name__)

_WITH_PAYLOAD = WithPayload(True)
_WITHOUT_VECTORS = WithVectors(False)


class QdrantWireClient:
    """Async client for one Qdrant endpoint.

    Instances are independent; each owns its own ``ChannelManager``.

    Example::

        async with QdrantWireClient(Settings(url="http://localhost:6334")) as client:
            hits = await client.search(
                "products",
                dense(embedding),
                filter=must(match_keyword("category", "shoes")),
                limit=5,
            )
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        channel: ChannelManager | None = None,
        downloader: SnapshotDownloader | None = None,
    ):
        self.settings = settings or get_settings()
        self.channel = channel or ChannelManager(self.settings)
        self.downloader = downloader or SnapshotDownloader(self.settings)

    @property
    def state(self) -> ChannelState:
        return self.channel.state

    async def connect(self) -> None:
        """Open the session and, when enabled, verify schema compatibility.

        Raises:
            IncompatibleVersionError: The server version is too far from the client schema.
        """
        await self.channel.connect()
        if not self.settings.check_compatibility:
            return

        info = await self.health_check()
        client_version = client_schema_version()
        if not is_compatible(client_version, info.version):
            error = IncompatibleVersionError(client_version or "unknown", info.version)
            await self.channel.drop(error.message)
            raise error
        logger.info("Server %s is compatible with client schema %s", info.version, client_version)

    async def close(self) -> None:
        await self.channel.close()

    async def __aenter__(self) -> QdrantWireClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # Service

    async def health_check(self, *, timeout: float | None = None) -> HealthInfo:
        reply = await self.channel.invoke(
            SERVICE_QDRANT, "HealthCheck", pb.HealthCheckRequest(), timeout=timeout
        )
        return health_info_from_grpc(reply)

    # Collections

    async def create_collection(
        self,
        collection_name: str,
        vectors: VectorParams | Mapping[str, VectorParams],
        *,
        sparse_vectors: Mapping[str, SparseVectorParams] | None = None,
        on_disk_payload: bool | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Create a collection.

        Args:
            collection_name: Name of the new collection.
            vectors: One unnamed vector space or a mapping of named spaces.
            sparse_vectors: Named sparse vector spaces.
            on_disk_payload: Store payload on disk instead of in memory.
            timeout: Call budget in seconds.

        Returns:
            bool: Whether the server created the collection.
        """
        request = pb.CreateCollection(
            collection_name=collection_name,
            vectors_config=vectors_config_to_grpc(vectors),
        )
        if sparse_vectors:
            request.sparse_vectors_config.CopyFrom(sparse_vectors_config_to_grpc(sparse_vectors))
        if on_disk_payload is not None:
            request.on_disk_payload = on_disk_payload
        response = await self.channel.invoke(
            SERVICE_COLLECTIONS, "Create", request, timeout=timeout, idempotent=False
        )
        logger.info("Created collection '%s'", collection_name)
        return response.result

    async def delete_collection(
        self, collection_name: str, *, timeout: float | None = None
    ) -> bool:
        response = await self.channel.invoke(
            SERVICE_COLLECTIONS,
            "Delete",
            pb.DeleteCollection(collection_name=collection_name),
            timeout=timeout,
            idempotent=False,
        )
        logger.info("Deleted collection '%s'", collection_name)
        return response.result

    async def collection_exists(
        self, collection_name: str, *, timeout: float | None = None
    ) -> bool:
        response = await self.channel.invoke(
            SERVICE_COLLECTIONS,
            "CollectionExists",
            pb.CollectionExistsRequest(collection_name=collection_name),
            timeout=timeout,
        )
        return response.result.exists

    async def get_collection(
        self, collection_name: str, *, timeout: float | None = None
    ) -> CollectionInfo:
        response = await self.channel.invoke(
            SERVICE_COLLECTIONS,
            "Get",
            pb.GetCollectionInfoRequest(collection_name=collection_name),
            timeout=timeout,
        )
        return collection_info_from_grpc(response.result)

    async def list_collections(
        self, *, timeout: float | None = None
    ) -> list[CollectionDescription]:
        response = await self.channel.invoke(
            SERVICE_COLLECTIONS, "List", pb.ListCollectionsRequest(), timeout=timeout
        )
        return [CollectionDescription(name=c.name) for c in response.collections]

    # Points

    async def upsert(
        self,
        collection_name: str,
        points: Iterable[PointStruct],
        *,
        wait: bool = True,
        timeout: float | None = None,
    ) -> UpdateResult:
        """Insert or overwrite points.

        Writes are at-least-once: a retried upsert may be applied twice, which
        is harmless because upserting the same point is idempotent on the server.
        """
        request = pb.UpsertPoints(
            collection_name=collection_name, wait=wait, points=points_to_grpc(points)
        )
        response = await self.channel.invoke(
            SERVICE_POINTS, "Upsert", request, timeout=timeout, idempotent=False
        )
        return update_result_from_grpc(response.result)

    async def delete_points(
        self,
        collection_name: str,
        selector: Iterable[PointIdLike] | Filter,
        *,
        wait: bool = True,
        timeout: float | None = None,
    ) -> UpdateResult:
        """Delete points by id list or by filter."""
        if not isinstance(selector, Filter):
            selector = [point_id(v) for v in selector]
        request = pb.DeletePoints(
            collection_name=collection_name,
            wait=wait,
            points=points_selector_to_grpc(selector),
        )
        response = await self.channel.invoke(
            SERVICE_POINTS, "Delete", request, timeout=timeout, idempotent=False
        )
        return update_result_from_grpc(response.result)

    async def retrieve(
        self,
        collection_name: str,
        ids: Iterable[PointIdLike],
        *,
        with_payload: PayloadSelector = _WITH_PAYLOAD,
        with_vectors: VectorsSelector = _WITHOUT_VECTORS,
        timeout: float | None = None,
    ) -> list[RetrievedPoint]:
        request = pb.GetPoints(
            collection_name=collection_name,
            ids=[point_id_to_grpc(point_id(v), f"ids[{i}]") for i, v in enumerate(ids)],
            with_payload=payload_selector_to_grpc(with_payload),
            with_vectors=vectors_selector_to_grpc(with_vectors),
        )
        response = await self.channel.invoke(SERVICE_POINTS, "Get", request, timeout=timeout)
        return retrieved_points_from_grpc(response.result)

    async def scroll(
        self,
        collection_name: str,
        *,
        filter: Filter | None = None,
        limit: int = 10,
        offset: PointIdLike | None = None,
        with_payload: PayloadSelector = _WITH_PAYLOAD,
        with_vectors: VectorsSelector = _WITHOUT_VECTORS,
        timeout: float | None = None,
    ) -> tuple[list[RetrievedPoint], PointId | None]:
        """Page through a collection.

        Returns:
            tuple: The page of points and the offset of the next page, ``None`` on the last page.
        """
        request = pb.ScrollPoints(
            collection_name=collection_name,
            limit=limit,
            with_payload=payload_selector_to_grpc(with_payload),
            with_vectors=vectors_selector_to_grpc(with_vectors),
        )
        if filter is not None:
            request.filter.CopyFrom(filter_to_grpc(filter))
        if offset is not None:
            request.offset.CopyFrom(point_id_to_grpc(point_id(offset), "offset"))
        response = await self.channel.invoke(SERVICE_POINTS, "Scroll", request, timeout=timeout)
        next_offset = None
        if response.HasField("next_page_offset"):
            next_offset = point_id_from_grpc(response.next_page_offset, "next_page_offset")
        return retrieved_points_from_grpc(response.result), next_offset

    async def count(
        self,
        collection_name: str,
        *,
        filter: Filter | None = None,
        exact: bool = True,
        timeout: float | None = None,
    ) -> int:
        request = pb.CountPoints(collection_name=collection_name, exact=exact)
        if filter is not None:
            request.filter.CopyFrom(filter_to_grpc(filter))
        response = await self.channel.invoke(SERVICE_POINTS, "Count", request, timeout=timeout)
        return response.result.count

    # Search

    async def search(
        self,
        collection_name: str,
        vector: VectorSpec,
        *,
        filter: Filter | None = None,
        limit: int = 10,
        offset: int | None = None,
        params: SearchParams | None = None,
        score_threshold: float | None = None,
        with_payload: PayloadSelector = _WITH_PAYLOAD,
        with_vectors: VectorsSelector = _WITHOUT_VECTORS,
        timeout: float | None = None,
    ) -> QueryResult:
        """Nearest-neighbour search with a dense or sparse vector.

        A single-entry ``Named`` vector searches that named vector space.
        Multi-dense vectors are only accepted by ``query``.
        """
        values, sparse_indices, vector_name = search_vector_parts(vector)
        request = pb.SearchPoints(
            collection_name=collection_name,
            vector=values,
            limit=limit,
            with_payload=payload_selector_to_grpc(with_payload),
            with_vectors=vectors_selector_to_grpc(with_vectors),
        )
        if sparse_indices is not None:
            request.sparse_indices.CopyFrom(sparse_indices)
        if vector_name is not None:
            request.vector_name = vector_name
        self._apply_search_options(request, filter, offset, params, score_threshold)
        response = await self.channel.invoke(SERVICE_POINTS, "Search", request, timeout=timeout)
        return _query_result(response)

    async def recommend(
        self,
        collection_name: str,
        positive: Iterable[PointIdLike | VectorSpec],
        negative: Iterable[PointIdLike | VectorSpec] = (),
        *,
        using: str | None = None,
        filter: Filter | None = None,
        limit: int = 10,
        offset: int | None = None,
        params: SearchParams | None = None,
        score_threshold: float | None = None,
        with_payload: PayloadSelector = _WITH_PAYLOAD,
        with_vectors: VectorsSelector = _WITHOUT_VECTORS,
        timeout: float | None = None,
    ) -> QueryResult:
        """Find points similar to ``positive`` and dissimilar to ``negative`` examples.

        Examples are point ids or dense/sparse vectors.
        """
        positive_ids, positive_vectors = _split_examples(positive, "positive")
        negative_ids, negative_vectors = _split_examples(negative, "negative")
        request = pb.RecommendPoints(
            collection_name=collection_name,
            positive=positive_ids,
            negative=negative_ids,
            limit=limit,
            with_payload=payload_selector_to_grpc(with_payload),
            with_vectors=vectors_selector_to_grpc(with_vectors),
        )
        if positive_vectors:
            request.positive_vectors.extend(positive_vectors)
        if negative_vectors:
            request.negative_vectors.extend(negative_vectors)
        if using is not None:
            request.using = using
        self._apply_search_options(request, filter, offset, params, score_threshold)
        response = await self.channel.invoke(SERVICE_POINTS, "Recommend", request, timeout=timeout)
        return _query_result(response)

    async def query(
        self,
        collection_name: str,
        query: VectorSpec | PointIdLike,
        *,
        using: str | None = None,
        filter: Filter | None = None,
        limit: int = 10,
        offset: int | None = None,
        params: SearchParams | None = None,
        score_threshold: float | None = None,
        with_payload: PayloadSelector = _WITH_PAYLOAD,
        with_vectors: VectorsSelector = _WITHOUT_VECTORS,
        timeout: float | None = None,
    ) -> QueryResult:
        """Universal nearest-neighbour query.

        Accepts dense, sparse and multi-dense vectors or the id of an existing
        point. A single-entry ``Named`` vector selects the vector space, as does
        ``using``; giving both with different names is an error.
        """
        if isinstance(query, (int, str, uuid.UUID)):
            query = point_id(query)
        vector_input, named_using = vector_input_to_grpc(query)  # pyright: ignore[reportArgumentType]
        if named_using is not None and using is not None and named_using != using:
            raise ConversionError(
                "query.using", f"named vector '{named_using}' conflicts with using='{using}'"
            )
        request = pb.QueryPoints(
            collection_name=collection_name,
            query=pb.Query(nearest=vector_input),
            limit=limit,
            with_payload=payload_selector_to_grpc(with_payload),
            with_vectors=vectors_selector_to_grpc(with_vectors),
        )
        if named_using or using:
            request.using = named_using or using
        self._apply_search_options(request, filter, offset, params, score_threshold)
        response = await self.channel.invoke(SERVICE_POINTS, "Query", request, timeout=timeout)
        return _query_result(response)

    @staticmethod
    def _apply_search_options(
        request: pb.SearchPoints | pb.RecommendPoints | pb.QueryPoints,
        filter: Filter | None,
        offset: int | None,
        params: SearchParams | None,
        score_threshold: float | None,
    ) -> None:
        if filter is not None:
            request.filter.CopyFrom(filter_to_grpc(filter))
        if offset is not None:
            request.offset = offset
        if params is not None:
            request.params.CopyFrom(search_params_to_grpc(params))
        if score_threshold is not None:
            request.score_threshold = score_threshold

    # Snapshots

    async def create_snapshot(
        self, collection_name: str, *, timeout: float | None = None
    ) -> SnapshotDescription:
        response = await self.channel.invoke(
            SERVICE_SNAPSHOTS,
            "Create",
            pb.CreateSnapshotRequest(collection_name=collection_name),
            timeout=timeout,
            idempotent=False,
        )
        snapshot = snapshot_description_from_grpc(response.snapshot_description)
        logger.info("Created snapshot '%s' of '%s'", snapshot.name, collection_name)
        return snapshot

    async def list_snapshots(
        self, collection_name: str, *, timeout: float | None = None
    ) -> list[SnapshotDescription]:
        response = await self.channel.invoke(
            SERVICE_SNAPSHOTS,
            "List",
            pb.ListSnapshotsRequest(collection_name=collection_name),
            timeout=timeout,
        )
        return [snapshot_description_from_grpc(s) for s in response.snapshot_descriptions]

    async def delete_snapshot(
        self, collection_name: str, snapshot_name: str, *, timeout: float | None = None
    ) -> None:
        await self.channel.invoke(
            SERVICE_SNAPSHOTS,
            "Delete",
            pb.DeleteSnapshotRequest(collection_name=collection_name, snapshot_name=snapshot_name),
            timeout=timeout,
            idempotent=False,
        )
        logger.info("Deleted snapshot '%s' of '%s'", snapshot_name, collection_name)

    async def snapshot_url(self, collection_name: str, snapshot_name: str | None = None) -> str:
        """HTTP URL of a snapshot; the newest one when ``snapshot_name`` is omitted."""
        if snapshot_name is None:
            snapshot_name = (await self._latest_snapshot(collection_name)).name
        return (
            f"{self.settings.snapshot_base_url}/collections/{quote(collection_name, safe='')}"
            f"/snapshots/{quote(snapshot_name, safe='')}"
        )

    async def download_snapshot(
        self,
        collection_name: str,
        destination: str | Path,
        snapshot_name: str | None = None,
        *,
        checksum: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> SnapshotTransferResult:
        """Download a snapshot, resuming a previous partial download when present.

        The newest snapshot is used when ``snapshot_name`` is omitted. Its
        listed checksum is verified unless ``checksum`` overrides it.
        """
        if snapshot_name is None:
            latest = await self._latest_snapshot(collection_name)
            snapshot_name = latest.name
            checksum = checksum or latest.checksum
        url = await self.snapshot_url(collection_name, snapshot_name)
        return await self.downloader.download(
            url, destination, checksum=checksum, progress=progress
        )

    async def _latest_snapshot(self, collection_name: str) -> SnapshotDescription:
        snapshots = await self.list_snapshots(collection_name)
        if not snapshots:
            raise QdrantWireError(f"Collection '{collection_name}' has no snapshots")
        return max(snapshots, key=lambda s: (s.creation_time is not None, s.creation_time, s.name))


def _query_result(
    response: pb.SearchResponse | pb.RecommendResponse | pb.QueryResponse,
) -> QueryResult:
    return QueryResult(
        points=tuple(scored_points_from_grpc(response.result)),
        time=response.time,
        usage=usage_from_grpc(response),
    )


def _split_examples(
    examples: Iterable[PointIdLike | VectorSpec], path: str
) -> tuple[list[pb.PointId], list[pb.Vector]]:
    """Separate recommend examples into point ids and raw vectors."""
    ids: list[pb.PointId] = []
    vectors: list[pb.Vector] = []
    for i, example in enumerate(examples):
        item_path = f"{path}[{i}]"
        if isinstance(example, (NumericId, UuidId, int, str, uuid.UUID)):
            ids.append(point_id_to_grpc(point_id(example), item_path))
        elif isinstance(example, (Dense, Sparse)):
            vectors.append(vector_to_grpc(example, item_path))
        elif isinstance(example, Named):
            raise ConversionError(
                item_path, "pick the vector space with `using`, not a named vector"
            )
        else:
            raise ConversionError(
                item_path, f"{type(example).__name__} examples are only supported by query"
            )
    return ids, vectors
