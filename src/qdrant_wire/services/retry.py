"""Per-call retry state machine with exponential backoff and full jitter.

A ``RetryLoop`` drives one logical call through its attempts::

    ATTEMPTING -> SUCCEEDED
    ATTEMPTING -> BACKING_OFF -> ATTEMPTING
    ATTEMPTING -> FAILED

It only sees already-classified ``QdrantWireError`` values, so it can be
exercised without any transport.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

import grpc

from qdrant_wire.config import Settings
from qdrant_wire.core.exceptions import (
    DeadlineExceededError,
    RetriesExhaustedError,
    TransportError,
)
from qdrant_wire.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Attempt = Callable[[float | None], Awaitable[T]]


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff configuration.

    Attributes:
        max_attempts: Total tries including the first one.
        initial_backoff: Backoff before the first retry, in seconds.
        max_backoff: Cap on a single backoff, in seconds.
        multiplier: Growth factor per retry.
        jitter: Sleep a uniform random time in ``[0, backoff]`` instead of ``backoff``.
    """

    max_attempts: int = 3
    initial_backoff: float = 0.1
    max_backoff: float = 5.0
    multiplier: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_backoff <= 0 or self.max_backoff <= 0:
            raise ValueError("Backoff times must be positive")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if self.initial_backoff > self.max_backoff:
            raise ValueError("initial_backoff cannot exceed max_backoff")

    @classmethod
    def from_settings(cls, settings: Settings, *, max_attempts: int | None = None) -> RetryPolicy:
        return cls(
            max_attempts=max_attempts or settings.max_attempts,
            initial_backoff=settings.initial_backoff,
            max_backoff=settings.max_backoff,
            multiplier=settings.backoff_multiplier,
            jitter=settings.retry_jitter,
        )

    def backoff(self, retry_index: int) -> float:
        """Upper bound of the sleep before retry number ``retry_index`` (0-based)."""
        return min(self.initial_backoff * (self.multiplier**retry_index), self.max_backoff)

    def delay(self, retry_index: int, rng: random.Random | None = None) -> float:
        backoff = self.backoff(retry_index)
        if not self.jitter:
            return backoff
        return (rng or random).uniform(0, backoff)


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RetryLoop:
    """Retry bookkeeping for a single call.

    Args:
        policy: Backoff configuration.
        timeout: Overall budget for the call in seconds, shared by every
            attempt and backoff. ``None`` means unbounded.
        idempotent: Non-idempotent calls are only retried on ``UNAVAILABLE``.
        sleep: Awaitable sleep, injectable for tests.
        rng: Random source for jitter.
        clock: Monotonic clock in seconds.
        on_backoff_start: Called when the loop starts sleeping.
        on_backoff_end: Called when the sleep ends, including on cancellation.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        timeout: float | None = None,
        idempotent: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_backoff_start: Callable[[], None] | None = None,
        on_backoff_end: Callable[[], None] | None = None,
        label: str = "call",
    ):
        self.policy = policy
        self.idempotent = idempotent
        self.state = RetryState.ATTEMPTING
        self.attempts = 0
        self.total_delay = 0.0
        self.last_error: TransportError | None = None
        self.label = label
        self._sleep = sleep
        self._rng = rng
        self._clock = clock
        self._deadline = None if timeout is None else clock() + timeout
        self._on_backoff_start = on_backoff_start
        self._on_backoff_end = on_backoff_end

    def remaining(self) -> float | None:
        """Seconds left in the call budget, ``None`` when unbounded."""
        if self._deadline is None:
            return None
        return self._deadline - self._clock()

    def is_retryable(self, error: TransportError) -> bool:
        if not error.transient:
            return False
        if self.idempotent:
            return True
        # a non-idempotent request is only safe to resend if it never left the client
        return error.code == grpc.StatusCode.UNAVAILABLE

    async def run(self, attempt: Attempt[T]) -> T:
        """Run ``attempt`` until it succeeds or the loop gives up.

        ``attempt`` receives the remaining budget to use as its own timeout.

        Raises:
            DeadlineExceededError: The call budget was spent.
            RetriesExhaustedError: Transient failures persisted through ``max_attempts``.
            QdrantWireError: Any non-retryable error raised by ``attempt``, unchanged.
        """
        while True:
            remaining = self.remaining()
            if remaining is not None and remaining <= 0:
                self.state = RetryState.FAILED
                raise DeadlineExceededError(
                    f"{self.label} exceeded its deadline after {self.attempts} attempts"
                )

            self.attempts += 1
            self.state = RetryState.ATTEMPTING
            try:
                result = await attempt(remaining)
            except TransportError as e:
                await self._handle_failure(e)
                continue
            except BaseException:
                self.state = RetryState.FAILED
                raise

            self.state = RetryState.SUCCEEDED
            return result

    async def _handle_failure(self, error: TransportError) -> None:
        self.last_error = error
        if not self.is_retryable(error):
            self.state = RetryState.FAILED
            raise error

        if self.attempts >= self.policy.max_attempts:
            self.state = RetryState.FAILED
            raise RetriesExhaustedError(self.attempts, error) from error

        delay = self.policy.delay(self.attempts - 1, self._rng)
        remaining = self.remaining()
        if remaining is not None and delay >= remaining:
            self.state = RetryState.FAILED
            if isinstance(error, DeadlineExceededError):
                raise error
            raise DeadlineExceededError(
                f"{self.label} has no budget left to retry: {error.message}"
            ) from error

        logger.warning(
            "%s failed (attempt %d/%d): %s; retrying in %.3fs",
            self.label,
            self.attempts,
            self.policy.max_attempts,
            error.message,
            delay,
        )
        self.state = RetryState.BACKING_OFF
        if self._on_backoff_start is not None:
            self._on_backoff_start()
        try:
            await self._sleep(delay)
        finally:
            if self._on_backoff_end is not None:
                self._on_backoff_end()
        self.total_delay += delay

