"""Error taxonomy shared by the API client, event feed and control loop.

Transport errors are retried, protocol errors drop one message, and API
status errors are reported upward as transient toasts. Nothing here is
fatal to the process.
"""

from __future__ import annotations

from enum import Enum

import httpx


class LazySyncError(Exception):
    """Base class for all lazysync errors."""


class TransportError(LazySyncError):
    """Connection refused, DNS failure, timeout or other network failure."""


class ProtocolError(LazySyncError):
    """Malformed response body or unexpected payload shape."""


class ActionError(LazySyncError):
    """A remote or local action could not be carried out."""


class ApiStatusError(LazySyncError):
    """Daemon answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ErrorKind(str, Enum):
    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    OTHER = "other"


def _root_cause(exc: BaseException) -> BaseException:
    current = exc
    seen: set[int] = set()
    while current.__cause__ is not None and id(current) not in seen:
        seen.add(id(current))
        current = current.__cause__
    return current


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception to the coarse kind shown by the connection indicator."""
    if isinstance(exc, ApiStatusError):
        if exc.status_code in (401, 403):
            return ErrorKind.UNAUTHORIZED
        if exc.status_code == 404:
            return ErrorKind.NOT_FOUND
        if exc.status_code >= 500:
            return ErrorKind.SERVER_ERROR
        return ErrorKind.OTHER

    cause = _root_cause(exc)
    if isinstance(cause, httpx.TimeoutException):
        return ErrorKind.TIMEOUT
    message = f"{exc} {cause}".lower()
    if "connection refused" in message:
        return ErrorKind.CONNECTION_REFUSED
    if "timeout" in message or "timed out" in message:
        return ErrorKind.TIMEOUT
    if isinstance(cause, httpx.ConnectError) or "dns" in message or "network" in message:
        return ErrorKind.NETWORK
    return ErrorKind.OTHER


def format_error_message(exc: BaseException) -> str:
    """Return the most specific human-readable message in the cause chain."""
    cause = _root_cause(exc)
    text = str(cause).strip() or str(exc).strip()
    return text or exc.__class__.__name__


__all__ = [
    "LazySyncError",
    "TransportError",
    "ProtocolError",
    "ApiStatusError",
    "ActionError",
    "ErrorKind",
    "classify_error",
    "format_error_message",
]
