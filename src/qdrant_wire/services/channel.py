"""gRPC session management: channel lifecycle, credentials, metadata and retries."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Any

import grpc
from qdrant_client import grpc as pb

from qdrant_wire.config import Settings, get_settings
from qdrant_wire.core.constants import (
    API_KEY_HEADER,
    CLIENT_VERSION,
    KEEPALIVE_TIME_MS,
    KEEPALIVE_TIMEOUT_MS,
    MAX_MESSAGE_LENGTH,
    SERVICE_COLLECTIONS,
    SERVICE_POINTS,
    SERVICE_QDRANT,
    SERVICE_SNAPSHOTS,
    USER_AGENT,
)
from qdrant_wire.core.exceptions import (
    AuthenticationError,
    NotConnectedError,
    RetriesExhaustedError,
    TransportError,
    classify_rpc_error,
)
from qdrant_wire.core.logging import get_logger
from qdrant_wire.services.retry import RetryLoop, RetryPolicy

logger = get_logger(__name__)

_STUBS: dict[str, Callable[[grpc.aio.Channel], Any]] = {
    SERVICE_POINTS: pb.PointsStub,
    SERVICE_COLLECTIONS: pb.CollectionsStub,
    SERVICE_SNAPSHOTS: pb.SnapshotsStub,
    SERVICE_QDRANT: pb.QdrantStub,
}


class ChannelState(str, Enum):
    """Session state as reported by ``ChannelManager.state``."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    RETRYING = "retrying"


class ChannelManager:
    """Owns one ``grpc.aio`` channel and dispatches calls through it.

    Calls retry transient failures with backoff inside their own deadline.
    Authentication failures and exhausted retries drop the session; every
    later call raises ``NotConnectedError`` until ``connect()`` is called again.

    Example::

        async with ChannelManager(Settings(url="http://localhost:6334")) as channel:
            reply = await channel.invoke("qdrant", "HealthCheck", pb.HealthCheckRequest())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.policy = RetryPolicy.from_settings(self.settings)
        self._sleep = sleep
        self._rng = rng
        self._channel: grpc.aio.Channel | None = None
        self._stubs: dict[str, Any] = {}
        self._connecting = False
        self._connect_lock = asyncio.Lock()
        self._backing_off = 0
        self._compression = grpc.Compression.Gzip if self.settings.compression else None

    @property
    def state(self) -> ChannelState:
        if self._connecting:
            return ChannelState.CONNECTING
        if self._channel is None:
            return ChannelState.DISCONNECTED
        if self._backing_off:
            return ChannelState.RETRYING
        return ChannelState.READY

    @property
    def is_connected(self) -> bool:
        return self._channel is not None

    async def connect(self) -> None:
        """Open the channel and wait until it is ready. Concurrent callers share one channel.

        Raises:
            TransportError: The endpoint was not reachable within ``connect_timeout``.
        """
        async with self._connect_lock:
            if self._channel is not None:
                return

            target = self.settings.grpc_target
            self._connecting = True
            try:
                channel = self._create_channel(target)
                try:
                    await asyncio.wait_for(channel.channel_ready(), self.settings.connect_timeout)
                except TimeoutError as e:
                    await channel.close()
                    raise TransportError(
                        f"Could not connect to {target} within {self.settings.connect_timeout}s",
                        transient=True,
                        code=grpc.StatusCode.UNAVAILABLE,
                    ) from e
            finally:
                self._connecting = False

            self._channel = channel
            self._stubs = {name: factory(channel) for name, factory in _STUBS.items()}
            logger.info("Connected to %s (tls=%s)", target, self.settings.use_tls)

    async def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        channel, self._channel = self._channel, None
        self._stubs = {}
        if channel is not None:
            await channel.close()
            logger.info("Closed channel to %s", self.settings.grpc_target)

    async def drop(self, reason: str) -> None:
        """Tear the session down after a terminal failure."""
        if self._channel is None:
            return
        logger.warning("Dropping session to %s: %s", self.settings.grpc_target, reason)
        await self.close()

    async def __aenter__(self) -> ChannelManager:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def invoke(
        self,
        service: str,
        method: str,
        request: Any,
        *,
        timeout: float | None = None,
        idempotent: bool = True,
    ) -> Any:
        """Dispatch one unary call with metadata, deadline and retries.

        Args:
            service: One of ``points``, ``collections``, ``snapshots``, ``qdrant``.
            method: RPC name on the service stub, e.g. ``Search``.
            request: The request message.
            timeout: Overall budget in seconds; defaults to ``settings.timeout``.
            idempotent: Whether the call can be replayed after an ambiguous failure.

        Returns:
            The response message.
        """
        if service not in _STUBS:
            raise ValueError(f"Unknown service '{service}'")
        self._stub(service)

        label = f"{service}.{method}"
        loop = RetryLoop(
            self.policy,
            timeout=timeout if timeout is not None else self.settings.timeout,
            idempotent=idempotent,
            sleep=self._sleep,
            rng=self._rng,
            on_backoff_start=self._enter_backoff,
            on_backoff_end=self._leave_backoff,
            label=label,
        )

        async def attempt(remaining: float | None) -> Any:
            # the session can be dropped by another call while this one backs off
            rpc = getattr(self._stub(service), method)
            try:
                return await rpc(
                    request,
                    timeout=remaining,
                    metadata=self._metadata(),
                    compression=self._compression,
                )
            except grpc.aio.AioRpcError as e:
                raise classify_rpc_error(e, idempotent) from e

        try:
            return await loop.run(attempt)
        except (AuthenticationError, RetriesExhaustedError) as e:
            await self.drop(f"{label}: {e.message}")
            raise

    def _stub(self, service: str) -> Any:
        stub = self._stubs.get(service)
        if stub is None:
            raise NotConnectedError()
        return stub

    def _enter_backoff(self) -> None:
        self._backing_off += 1

    def _leave_backoff(self) -> None:
        self._backing_off -= 1

    def _metadata(self) -> tuple[tuple[str, str], ...] | None:
        if not self.settings.api_key:
            return None
        return ((API_KEY_HEADER, self.settings.api_key),)

    def _channel_options(self) -> list[tuple[str, Any]]:
        return [
            ("grpc.primary_user_agent", f"{USER_AGENT}/{CLIENT_VERSION}"),
            ("grpc.keepalive_time_ms", KEEPALIVE_TIME_MS),
            ("grpc.keepalive_timeout_ms", KEEPALIVE_TIMEOUT_MS),
            ("grpc.keepalive_permit_without_calls", int(self.settings.keep_alive_while_idle)),
            ("grpc.max_send_message_length", MAX_MESSAGE_LENGTH),
            ("grpc.max_receive_message_length", MAX_MESSAGE_LENGTH),
        ]

    def _create_channel(self, target: str) -> grpc.aio.Channel:
        options = self._channel_options()
        if self.settings.use_tls:
            return grpc.aio.secure_channel(
                target, self._credentials(), options=options, compression=self._compression
            )
        if self.settings.api_key:
            logger.warning("API key is sent over a plaintext channel to %s", target)
        return grpc.aio.insecure_channel(target, options=options, compression=self._compression)

    def _credentials(self) -> grpc.ChannelCredentials:
        settings = self.settings
        return grpc.ssl_channel_credentials(
            root_certificates=_read_optional(settings.root_certificates_path),
            private_key=_read_optional(settings.client_key_path),
            certificate_chain=_read_optional(settings.client_certificate_path),
        )


def _read_optional(path: Path | None) -> bytes | None:
    return path.read_bytes() if path is not None else None
