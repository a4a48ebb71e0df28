"""Resumable, checksummed snapshot download over HTTP."""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import os
import random
import re
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any

import aiohttp

from qdrant_wire.config import Settings, get_settings
from qdrant_wire.core.constants import API_KEY_HEADER, DIGEST_ALGORITHM, PARTIAL_SUFFIX
from qdrant_wire.core.exceptions import IntegrityError, ServerError, TransportError
from qdrant_wire.core.logging import get_logger
from qdrant_wire.schemas.snapshots import SnapshotTransferResult
from qdrant_wire.services.retry import RetryLoop, RetryPolicy

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int | None], None]

_CONTENT_RANGE_RE = re.compile(r"^\s*bytes\s+(\d+)-(\d+)/(\d+|\*)\s*$")
_HASH_BLOCK = 1024 * 1024


def partial_path(destination: Path) -> Path:
    """Location of the in-progress download for ``destination``."""
    return destination.with_name(destination.name + PARTIAL_SUFFIX)


def parse_content_range(value: str | None) -> tuple[int, int | None] | None:
    """Parse ``bytes <start>-<end>/<total>`` into ``(start, total)``."""
    if not value:
        return None
    match = _CONTENT_RANGE_RE.match(value)
    if match is None:
        return None
    start, _end, total = match.groups()
    return int(start), None if total == "*" else int(total)


def digest_from_headers(headers: Mapping[str, str]) -> str | None:
    """Extract the advertised SHA-256 as hex from ``Repr-Digest`` or ``Digest``.

    ``Repr-Digest: sha-256=:<base64>:`` is preferred over the older
    ``Digest: SHA-256=<base64>``. Other algorithms are ignored.
    """
    for header in ("Repr-Digest", "Digest"):
        raw = headers.get(header)
        if not raw:
            continue
        for item in raw.split(","):
            algorithm, _, value = item.strip().partition("=")
            if algorithm.strip().lower() != DIGEST_ALGORITHM:
                continue
            try:
                return base64.b64decode(value.strip().strip(":"), validate=True).hex()
            except (binascii.Error, ValueError):
                logger.warning("Ignoring malformed %s header: %s", header, raw)
    return None


def hash_file(path: Path) -> tuple[Any, int]:
    """SHA-256 state and size of a file, read in blocks. Blocking; run it off the event loop."""
    digest = hashlib.sha256()
    size = 0
    with path.open("rb") as fh:
        for block in iter(lambda: fh.read(_HASH_BLOCK), b""):
            digest.update(block)
            size += len(block)
    return digest, size


class _PartialFile:
    """The ``.part`` file together with a running SHA-256 of the bytes written to it."""

    def __init__(self, path: Path):
        self.path = path
        self.digest = hashlib.sha256()
        self.size = 0

    async def sync(self) -> int:
        """Bring the digest in line with the bytes on disk and return the resume offset."""
        size = self.path.stat().st_size if self.path.exists() else 0
        if size != self.size:
            if size:
                self.digest, self.size = await asyncio.to_thread(hash_file, self.path)
            else:
                self.restart()
        return self.size

    def restart(self) -> None:
        self.digest = hashlib.sha256()
        self.size = 0

    def discard(self) -> None:
        self.path.unlink(missing_ok=True)
        self.restart()

    def update(self, chunk: bytes) -> None:
        self.digest.update(chunk)
        self.size += len(chunk)


class SnapshotDownloader:
    """Streams a snapshot to disk, resuming an interrupted transfer when possible.

    Data is written to ``<destination>.part`` and renamed into place only once
    the artifact is complete and its digest matches.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.policy = RetryPolicy.from_settings(
            self.settings, max_attempts=self.settings.snapshot_max_attempts
        )
        self._session = session
        self._sleep = sleep
        self._rng = rng

    async def download(
        self,
        url: str,
        destination: str | Path,
        *,
        checksum: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> SnapshotTransferResult:
        """Download ``url`` to ``destination``.

        Args:
            url: Snapshot URL.
            destination: Final file path.
            checksum: Expected SHA-256 hex digest. Takes precedence over digest headers.
            progress: Called with ``(bytes_received, total_bytes)`` after every chunk.

        Returns:
            SnapshotTransferResult: Where the artifact landed and how it got there.

        Raises:
            ServerError: The server answered with a 4xx status.
            IntegrityError: The artifact does not match the expected digest.
            TransportError: Network failures persisted through every attempt.
        """
        destination = Path(destination)
        partial = _PartialFile(partial_path(destination))
        resumed_from = await partial.sync()
        if resumed_from:
            logger.info("Resuming snapshot download %s from byte %d", url, resumed_from)
        else:
            logger.info("Starting snapshot download %s -> %s", url, destination)

        loop = RetryLoop(
            self.policy,
            idempotent=True,
            sleep=self._sleep,
            rng=self._rng,
            label=f"snapshot download {url}",
        )

        session = self._session or aiohttp.ClientSession()
        try:

            async def attempt(_remaining: float | None) -> str | None:
                return await self._fetch(session, url, partial, progress)

            advertised = await loop.run(attempt)
        finally:
            if self._session is None:
                await session.close()

        expected = checksum.lower() if checksum else advertised
        actual = partial.digest.hexdigest()
        if expected is not None and actual != expected:
            partial.discard()
            logger.error(
                "Snapshot %s failed integrity check: expected %s, got %s", url, expected, actual
            )
            raise IntegrityError(expected, actual)

        os.replace(partial.path, destination)
        logger.info("Snapshot download complete: %s (%d bytes)", destination, partial.size)
        return SnapshotTransferResult(
            path=destination,
            size=partial.size,
            sha256=actual,
            resumed_from=resumed_from,
            attempts=loop.attempts,
            verified=expected is not None,
        )

    async def _fetch(
        self,
        session: aiohttp.ClientSession,
        url: str,
        partial: _PartialFile,
        progress: ProgressCallback | None,
    ) -> str | None:
        """One HTTP request; appends to or restarts ``partial``. Returns the advertised digest."""
        offset = await partial.sync()
        headers = {}
        if self.settings.api_key:
            headers[API_KEY_HEADER] = self.settings.api_key
        if offset:
            headers["Range"] = f"bytes={offset}-"

        timeout = aiohttp.ClientTimeout(total=self.settings.snapshot_timeout)
        try:
            async with session.get(url, headers=headers, timeout=timeout) as response:
                if response.status == 416 and offset:
                    logger.warning(
                        "Server rejected resume of %s at byte %d, restarting", url, offset
                    )
                    partial.discard()
                    return await self._fetch(session, url, partial, progress)
                if response.status >= 500:
                    raise TransportError(
                        f"Snapshot server returned HTTP {response.status}", transient=True
                    )
                if response.status >= 400:
                    partial.discard()
                    raise ServerError(response.status, await response.text())

                mode, total = self._plan_write(response, offset, partial)
                with partial.path.open(mode) as fh:
                    async for chunk in response.content.iter_chunked(
                        self.settings.snapshot_chunk_size
                    ):
                        fh.write(chunk)
                        partial.update(chunk)
                        if progress is not None:
                            progress(partial.size, total)
                return digest_from_headers(response.headers)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise TransportError(f"Snapshot transfer interrupted: {e}", transient=True) from e

    def _plan_write(
        self, response: aiohttp.ClientResponse, offset: int, partial: _PartialFile
    ) -> tuple[str, int | None]:
        """Decide between appending and restarting; returns ``(file mode, total size)``."""
        if response.status == 206:
            content_range = parse_content_range(response.headers.get("Content-Range"))
            if content_range is None or content_range[0] != offset:
                partial.discard()
                raise TransportError(
                    f"Unexpected Content-Range {response.headers.get('Content-Range')!r} "
                    f"for resume at byte {offset}",
                    transient=True,
                )
            total = content_range[1]
            if total is None and response.content_length is not None:
                total = offset + response.content_length
            return "ab", total

        if offset:
            logger.info(
                "Server ignored the range request, restarting %s from zero", partial.path.name
            )
        partial.restart()
        return "wb", response.content_length
