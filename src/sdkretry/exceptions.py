r"""Exceptions raised for terminal request failures.

Retries are signalled through ``RetryDecision`` values. The exceptions in
this module are reserved for logical requests that have definitively
failed. Each one carries the original cause, the classification supplied
by the caller's ``ErrorClassifier`` and, when the server answered, the
last response received.
"""

from __future__ import annotations

__all__ = [
    "ClientError",
    "ErrorKind",
    "NonRetryable",
    "ParseFailure",
    "RetryExhausted",
    "TransportFailure",
    "UnsuccessfulResponse",
]

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ErrorKind(Enum):
    """Platform-independent classification of a failed call."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ABORTED = "ABORTED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    CANCELLED = "CANCELLED"
    DATA_LOSS = "DATA_LOSS"
    UNKNOWN = "UNKNOWN"
    INTERNAL = "INTERNAL"
    UNAVAILABLE = "UNAVAILABLE"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"


class ClientError(Exception):
    """Base class for terminal failures of a logical request.

    Args:
        message: A descriptive error message.
        kind: The classification of the failure.
        method: The HTTP method of the logical request, if known.
        url: The URL of the logical request, if known.
        cause: The exception that caused the failure, if any.
        response: The last HTTP response received, if any.

    Example:
        ```pycon
        >>> from sdkretry.exceptions import ClientError, ErrorKind
        >>> error = ClientError("boom", kind=ErrorKind.INTERNAL)
        >>> error.kind
        <ErrorKind.INTERNAL: 'INTERNAL'>
        >>> error.status_code is None
        True

        ```
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        method: str | None = None,
        url: str | None = None,
        cause: BaseException | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.method = method
        self.url = url
        self.cause = cause
        self.response = response

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(kind={self.kind.value}, "
            f"status_code={self.status_code}, message={self.message!r})"
        )

    @property
    def status_code(self) -> int | None:
        """Status code of the last response, if any."""
        return self.response.status_code if self.response is not None else None

    @property
    def headers(self) -> httpx.Headers | None:
        """Headers of the last response, if any."""
        return self.response.headers if self.response is not None else None

    @property
    def body(self) -> str | None:
        """Decoded body of the last response, if any."""
        return self.response.text if self.response is not None else None


class TransportFailure(ClientError):
    """Connection or I/O level failure that was not retried."""


class UnsuccessfulResponse(ClientError):
    """The server answered with a non-2xx status."""


class NonRetryable(UnsuccessfulResponse):
    """The status code, or an over-long ``Retry-After``, disqualified any
    further retry."""


class RetryExhausted(ClientError):
    """The retry budget reached zero while the failure was still
    retryable."""


class ParseFailure(ClientError):
    """The response body arrived but could not be decoded. Never
    retried."""
