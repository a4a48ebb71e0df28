"""Client configuration and settings."""

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qdrant_wire.core.constants import DEFAULT_GRPC_PORT, DEFAULT_REST_PORT


class Settings(BaseSettings):
    """Client settings loaded from keyword arguments or ``QDRANT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QDRANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Endpoint
    url: str = f"http://localhost:{DEFAULT_GRPC_PORT}"
    rest_url: str | None = None  # Snapshot downloads; derived from url when unset
    api_key: str | None = None

    # Transport security
    root_certificates_path: Path | None = None  # None uses the system trust store
    client_certificate_path: Path | None = None
    client_key_path: Path | None = None

    # Transport tuning
    compression: bool = False  # gzip when enabled
    timeout: float = Field(5.0, gt=0)  # Default per-call deadline in seconds
    connect_timeout: float = Field(5.0, gt=0)
    keep_alive_while_idle: bool = True

    # Retry / backoff
    max_attempts: int = Field(3, ge=1)  # Total tries including the first one
    initial_backoff: float = Field(0.1, gt=0)
    max_backoff: float = Field(5.0, gt=0)
    backoff_multiplier: float = Field(2.0, ge=1.0)
    retry_jitter: bool = True

    # Server version check at connect time
    check_compatibility: bool = True

    # Snapshot transfer
    snapshot_chunk_size: int = Field(64 * 1024, gt=0)
    snapshot_timeout: float = Field(300.0, gt=0)
    snapshot_max_attempts: int = Field(3, ge=1)

    # Logging
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_backoff_bounds(self) -> "Settings":
        if self.initial_backoff > self.max_backoff:
            raise ValueError("initial_backoff cannot exceed max_backoff")
        if (self.client_certificate_path is None) != (self.client_key_path is None):
            raise ValueError("client_certificate_path and client_key_path must be set together")
        return self

    @property
    def use_tls(self) -> bool:
        """Whether the gRPC endpoint requires TLS."""
        return urlsplit(self.url).scheme == "https"

    @property
    def grpc_target(self) -> str:
        """``host:port`` target for the gRPC channel."""
        parts = urlsplit(self.url if "://" in self.url else f"http://{self.url}")
        host = parts.hostname or "localhost"
        port = parts.port or DEFAULT_GRPC_PORT
        return f"{host}:{port}"

    @property
    def snapshot_base_url(self) -> str:
        """Base REST URL used for snapshot downloads."""
        if self.rest_url:
            return self.rest_url.rstrip("/")
        parts = urlsplit(self.url if "://" in self.url else f"http://{self.url}")
        scheme = parts.scheme or "http"
        host = parts.hostname or "localhost"
        return f"{scheme}://{host}:{DEFAULT_REST_PORT}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Settings built from the environment.
    """
    return Settings()
