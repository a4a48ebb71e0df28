"""Typed asyncio client binding for the Qdrant vector search engine."""

from qdrant_wire.config import Settings, get_settings
from qdrant_wire.core.constants import CLIENT_VERSION
from qdrant_wire.core.exceptions import (
    AmbiguousWriteError,
    AuthenticationError,
    ConstructionError,
    ConversionError,
    DeadlineExceededError,
    IncompatibleVersionError,
    IntegrityError,
    NotConnectedError,
    QdrantWireError,
    RetriesExhaustedError,
    ServerError,
    TransportError,
)
from qdrant_wire.services.channel import ChannelManager, ChannelState
from qdrant_wire.services.client import QdrantWireClient
from qdrant_wire.services.retry import RetryLoop, RetryPolicy, RetryState
from qdrant_wire.services.snapshot_transfer import SnapshotDownloader

__version__ = CLIENT_VERSION

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Client
    "ChannelManager",
    "ChannelState",
    "QdrantWireClient",
    "RetryLoop",
    "RetryPolicy",
    "RetryState",
    "SnapshotDownloader",
    # Errors
    "AmbiguousWriteError",
    "AuthenticationError",
    "ConstructionError",
    "ConversionError",
    "DeadlineExceededError",
    "IncompatibleVersionError",
    "IntegrityError",
    "NotConnectedError",
    "QdrantWireError",
    "RetriesExhaustedError",
    "ServerError",
    "TransportError",
    "__version__",
]
