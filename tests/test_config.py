"""Tests for configuration."""

import pytest
from pydantic import ValidationError

from qdrant_wire.config import Settings, get_settings


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)  # pyright: ignore[reportCallIssue]


def test_settings_defaults():
    """Test that settings have correct default values."""
    settings = _settings()
    assert settings.url == "http://localhost:6334"
    assert settings.api_key is None
    assert settings.compression is False
    assert settings.timeout == 5.0
    assert settings.max_attempts == 3
    assert settings.snapshot_chunk_size == 65536
    assert settings.check_compatibility is True


def test_get_settings_returns_singleton():
    """Test that get_settings returns the same instance."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QDRANT_URL", "https://qdrant.example.com:6334")
    monkeypatch.setenv("QDRANT_API_KEY", "secret")
    monkeypatch.setenv("QDRANT_COMPRESSION", "true")

    settings = _settings()

    assert settings.use_tls is True
    assert settings.api_key == "secret"
    assert settings.compression is True


def test_grpc_target_and_snapshot_url_derivation():
    settings = _settings(url="https://db.example.com:7000")
    assert settings.grpc_target == "db.example.com:7000"
    assert settings.snapshot_base_url == "https://db.example.com:6333"

    bare = _settings(url="localhost")
    assert bare.grpc_target == "localhost:6334"
    assert bare.use_tls is False

    explicit = _settings(rest_url="http://rest.example.com:8080/")
    assert explicit.snapshot_base_url == "http://rest.example.com:8080"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"timeout": 0},
        {"connect_timeout": -1},
        {"initial_backoff": 10.0, "max_backoff": 1.0},
        {"client_certificate_path": "/tmp/cert.pem"},
    ],
)
def test_settings_validation(kwargs):
    with pytest.raises(ValidationError):
        _settings(**kwargs)


def test_settings_are_frozen():
    settings = _settings()
    with pytest.raises(ValidationError):
        settings.timeout = 1.0  # pyright: ignore[reportAttributeAccessIssue]
