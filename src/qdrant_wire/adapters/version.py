"""Client/server schema version compatibility."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version

from qdrant_wire.core.logging import get_logger

logger = get_logger(__name__)

_VERSION_RE = re.compile(r"^\s*v?(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version(value: str | None) -> tuple[int, int, int] | None:
    """Parse ``major.minor[.patch]``; trailing build tags are ignored.

    Returns:
        tuple[int, int, int] | None: The version triple, or ``None`` when unparsable.
    """
    if not value:
        return None
    match = _VERSION_RE.match(value)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def is_compatible(client_version: str | None, server_version: str | None) -> bool:
    """Decide whether a client schema can talk to a server.

    Majors must match and minors may differ by at most one. Unparsable versions
    are assumed compatible.
    """
    client = parse_version(client_version)
    server = parse_version(server_version)
    if client is None or server is None:
        logger.warning(
            "Unable to compare versions (client=%r, server=%r), assuming compatible",
            client_version,
            server_version,
        )
        return True
    if client[0] != server[0]:
        return False
    return abs(client[1] - server[1]) <= 1


@lru_cache
def client_schema_version() -> str | None:
    """Version of the installed ``qdrant-client`` distribution that ships the wire schema."""
    try:
        return version("qdrant-client")
    except PackageNotFoundError:
        return None
