"""Constants shared across the client stack."""

from typing import Final

# Default Qdrant ports.
DEFAULT_GRPC_PORT: Final[int] = 6334
DEFAULT_REST_PORT: Final[int] = 6333

# Metadata / header carrying the static credential.
API_KEY_HEADER: Final[str] = "api-key"

USER_AGENT: Final[str] = "qdrant-wire-python"
CLIENT_VERSION: Final[str] = "0.1.0"

# Largest value representable by a numeric point id (uint64).
MAX_NUMERIC_ID: Final[int] = 2**64 - 1

# Service names accepted by ChannelManager.invoke.
SERVICE_POINTS: Final[str] = "points"
SERVICE_COLLECTIONS: Final[str] = "collections"
SERVICE_SNAPSHOTS: Final[str] = "snapshots"
SERVICE_QDRANT: Final[str] = "qdrant"

# Channel options.
KEEPALIVE_TIME_MS: Final[int] = 30_000
KEEPALIVE_TIMEOUT_MS: Final[int] = 10_000
MAX_MESSAGE_LENGTH: Final[int] = 64 * 1024 * 1024

# Snapshot transfer.
PARTIAL_SUFFIX: Final[str] = ".part"
DIGEST_ALGORITHM: Final[str] = "sha-256"
