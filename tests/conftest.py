# conftest.py
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import grpc
import pytest
import pytest_asyncio
from qdrant_client import grpc as pb

from qdrant_wire.config import Settings

StartServer = Callable[..., Awaitable[int]]

_REGISTRARS = {
    "points": pb.add_PointsServicer_to_server,
    "collections": pb.add_CollectionsServicer_to_server,
    "snapshots": pb.add_SnapshotsServicer_to_server,
    "qdrant": pb.add_QdrantServicer_to_server,
}


@pytest.fixture
def test_settings() -> Settings:
    """Settings that never read the environment and back off quickly."""
    return Settings(
        _env_file=None,  # pyright: ignore[reportCallIssue]
        url="http://127.0.0.1:6334",
        api_key=None,
        check_compatibility=False,
        retry_jitter=False,
        initial_backoff=0.01,
        max_backoff=0.05,
        max_attempts=3,
        timeout=5.0,
        connect_timeout=2.0,
    )


@pytest_asyncio.fixture
async def grpc_server() -> AsyncIterator[StartServer]:
    """Start in-process gRPC servers hosting the given servicers; returns the bound port."""
    servers: list[grpc.aio.Server] = []

    async def start(**servicers: Any) -> int:
        server = grpc.aio.server()
        for name, servicer in servicers.items():
            _REGISTRARS[name](servicer, server)
        port = server.add_insecure_port("127.0.0.1:0")
        await server.start()
        servers.append(server)
        return port

    yield start

    for server in servers:
        await server.stop(None)


@pytest.fixture
def local_settings(test_settings: Settings) -> Callable[..., Settings]:
    """Build settings pointing at a local server port."""

    def make(port: int, **overrides: Any) -> Settings:
        return test_settings.model_copy(update={"url": f"http://127.0.0.1:{port}", **overrides})

    return make
