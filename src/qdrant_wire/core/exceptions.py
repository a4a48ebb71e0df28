"""Error taxonomy for the client."""

from __future__ import annotations

import grpc


class QdrantWireError(Exception):
    """Base client exception."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConstructionError(QdrantWireError):
    """A builder was given a structurally invalid expression."""


class ConversionError(QdrantWireError):
    """Model and wire message could not be mapped onto each other."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class IncompatibleVersionError(ConversionError):
    """Server speaks a schema version this client cannot handle."""

    def __init__(self, client_version: str, server_version: str):
        self.client_version = client_version
        self.server_version = server_version
        super().__init__(
            "health_check.version",
            f"client schema {client_version} is incompatible with server {server_version}",
        )


class TransportError(QdrantWireError):
    """Connection, TLS or deadline failure."""

    def __init__(
        self,
        message: str,
        *,
        transient: bool = False,
        code: grpc.StatusCode | None = None,
    ):
        self.transient = transient
        self.code = code
        super().__init__(message)


class DeadlineExceededError(TransportError):
    """The call's deadline elapsed before a response arrived."""

    def __init__(self, message: str = "Deadline exceeded"):
        super().__init__(message, transient=True, code=grpc.StatusCode.DEADLINE_EXCEEDED)


class AuthenticationError(TransportError):
    """The server rejected the credential."""

    def __init__(self, message: str, code: grpc.StatusCode = grpc.StatusCode.UNAUTHENTICATED):
        super().__init__(message, transient=False, code=code)


class NotConnectedError(TransportError):
    """The session is not established; call ``connect()`` first."""

    def __init__(self, message: str = "Session is not connected"):
        super().__init__(message, transient=False)


class RetriesExhaustedError(TransportError):
    """Transient failures persisted through every allowed attempt."""

    def __init__(self, attempts: int, last_error: TransportError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Gave up after {attempts} attempts: {last_error.message}",
            transient=False,
            code=last_error.code,
        )


class AmbiguousWriteError(TransportError):
    """A non-idempotent call failed after dispatch; it may or may not have been applied."""

    def __init__(self, message: str, code: grpc.StatusCode | None = None):
        super().__init__(message, transient=False, code=code)


class ServerError(QdrantWireError):
    """The engine rejected the request. Never retried."""

    def __init__(self, code: grpc.StatusCode | int, message: str):
        self.code = code
        self.server_message = message
        label = code.name if isinstance(code, grpc.StatusCode) else str(code)
        super().__init__(f"{label}: {message}")


class IntegrityError(QdrantWireError):
    """Downloaded artifact does not match the advertised digest."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checksum mismatch: expected {expected}, got {actual}")


_TRANSIENT_CODES = frozenset({grpc.StatusCode.UNAVAILABLE, grpc.StatusCode.DEADLINE_EXCEEDED})
_AUTH_CODES = frozenset({grpc.StatusCode.UNAUTHENTICATED, grpc.StatusCode.PERMISSION_DENIED})


def classify_rpc_error(exc: grpc.aio.AioRpcError, idempotent: bool = True) -> QdrantWireError:
    """Map a gRPC failure onto the client error taxonomy.

    Args:
        exc: The error raised by a ``grpc.aio`` call.
        idempotent: Whether the call can be replayed safely. A deadline on a
            non-idempotent call becomes an ``AmbiguousWriteError``.

    Returns:
        QdrantWireError: ``TransportError`` for transport level failures,
        ``ServerError`` for everything the engine reported itself.
    """
    code = exc.code()
    details = exc.details() or ""
    if code == grpc.StatusCode.DEADLINE_EXCEEDED:
        if not idempotent:
            return AmbiguousWriteError(
                f"Write may or may not have been applied: {details or 'deadline exceeded'}",
                code=code,
            )
        return DeadlineExceededError(details or "Deadline exceeded")
    if code in _TRANSIENT_CODES:
        return TransportError(details or code.name, transient=True, code=code)
    if code in _AUTH_CODES:
        return AuthenticationError(details or code.name, code=code)
    return ServerError(code, details)
