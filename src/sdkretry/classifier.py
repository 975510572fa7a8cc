r"""Classification of terminal failures.

An ``ErrorClassifier`` maps a failure to an ``ErrorKind`` and a human
readable message. The request client consults it once a logical request
has definitively failed. Calling modules plug in their own classifier to
decode service specific error payloads.
"""

from __future__ import annotations

__all__ = [
    "ErrorClassifier",
    "HttpErrorClassifier",
    "PlatformErrorClassifier",
    "classify_failure",
]

import json
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from sdkretry.exceptions import ErrorKind

if TYPE_CHECKING:
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

HTTP_ERROR_KINDS: Mapping[int, ErrorKind] = {
    400: ErrorKind.INVALID_ARGUMENT,
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.PERMISSION_DENIED,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    429: ErrorKind.RESOURCE_EXHAUSTED,
    500: ErrorKind.INTERNAL,
    503: ErrorKind.UNAVAILABLE,
}


@runtime_checkable
class ErrorClassifier(Protocol):
    """Maps a terminal failure to a kind and a message."""

    def classify(
        self,
        failure: BaseException | httpx.Response,
        *,
        response: httpx.Response | None = None,
    ) -> tuple[ErrorKind, str]:
        """Classify a failure.

        Args:
            failure: Either the unsuccessful ``httpx.Response``, the
                transport exception, or the exception raised while
                decoding a response body.
            response: The response whose body could not be decoded. Only
                set for parse failures.

        Returns:
            A ``(kind, message)`` tuple.
        """


def classify_failure(
    classifier: ErrorClassifier,
    failure: BaseException | httpx.Response,
    *,
    response: httpx.Response | None = None,
) -> tuple[ErrorKind, str]:
    """Run a caller supplied classifier and fall back to
    ``ErrorKind.UNKNOWN`` if it breaks.

    A faulty classifier must not mask the original failure, so errors
    raised by it are logged and replaced by a generic classification.
    """
    try:
        return classifier.classify(failure, response=response)
    except Exception:
        logger.exception(f"Error classifier {classifier!r} failed")
        return ErrorKind.UNKNOWN, f"Unclassified failure: {failure!r}"


class HttpErrorClassifier:
    r"""Classifier based on HTTP status codes and transport exceptions.

    - HTTP responses are mapped from their status code; the message
      includes the status and the full payload to aid debugging.
    - Timeouts are ``DEADLINE_EXCEEDED``, connection failures are
      ``UNAVAILABLE``, other transport errors are ``UNKNOWN``.
    - Parse failures are ``UNKNOWN``.

    Subclasses can override ``classify_response``, ``classify_io_error``
    and ``classify_parse_error`` individually.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry.classifier import HttpErrorClassifier
        >>> classifier = HttpErrorClassifier()
        >>> kind, message = classifier.classify(httpx.Response(404, text="missing"))
        >>> kind
        <ErrorKind.NOT_FOUND: 'NOT_FOUND'>
        >>> print(message)
        Unexpected HTTP response with status: 404
        missing
        >>> classifier.classify(httpx.ConnectTimeout("too slow"))[0]
        <ErrorKind.DEADLINE_EXCEEDED: 'DEADLINE_EXCEEDED'>

        ```
    """

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}()"

    def classify(
        self,
        failure: BaseException | httpx.Response,
        *,
        response: httpx.Response | None = None,
    ) -> tuple[ErrorKind, str]:
        if isinstance(failure, httpx.Response):
            return self.classify_response(failure)
        if response is not None:
            return self.classify_parse_error(failure, response)
        return self.classify_io_error(failure)

    def classify_response(self, response: httpx.Response) -> tuple[ErrorKind, str]:
        kind = HTTP_ERROR_KINDS.get(response.status_code, ErrorKind.UNKNOWN)
        message = f"Unexpected HTTP response with status: {response.status_code}\n{response.text}"
        return kind, message

    def classify_io_error(self, error: BaseException) -> tuple[ErrorKind, str]:
        if _in_cause_chain(error, (httpx.TimeoutException, TimeoutError)):
            return ErrorKind.DEADLINE_EXCEEDED, f"Timed out while making an API call: {error}"
        if _in_cause_chain(error, (httpx.ConnectError, ConnectionError)):
            return ErrorKind.UNAVAILABLE, f"Failed to establish a connection: {error}"
        return (
            ErrorKind.UNKNOWN,
            f"Unknown error while making a remote service call: {error}",
        )

    def classify_parse_error(
        self,
        error: BaseException,
        response: httpx.Response,  # noqa: ARG002
    ) -> tuple[ErrorKind, str]:
        return ErrorKind.UNKNOWN, f"Error while parsing HTTP response: {error}"


class PlatformErrorClassifier(HttpErrorClassifier):
    r"""Classifier that understands the platform error envelope.

    Error responses of the form
    ``{"error": {"status": "NOT_FOUND", "message": "..."}}`` refine the
    status code based classification: a known ``status`` replaces the
    kind and a non-empty ``message`` replaces the message. Payloads that
    are not JSON, or do not follow the envelope, are ignored.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry.classifier import PlatformErrorClassifier
        >>> response = httpx.Response(
        ...     400, json={"error": {"status": "ALREADY_EXISTS", "message": "Exists"}}
        ... )
        >>> PlatformErrorClassifier().classify(response)
        (<ErrorKind.ALREADY_EXISTS: 'ALREADY_EXISTS'>, 'Exists')

        ```
    """

    def classify_response(self, response: httpx.Response) -> tuple[ErrorKind, str]:
        kind, message = super().classify_response(response)
        status, platform_message = _parse_error_envelope(response.text)
        if status:
            try:
                kind = ErrorKind(status)
            except ValueError:
                logger.debug(f"Ignoring unknown platform error status: {status!r}")
        if platform_message:
            message = platform_message
        return kind, message


def _parse_error_envelope(content: str) -> tuple[str | None, str | None]:
    if not content:
        return None, None
    try:
        payload = json.loads(content)
    except ValueError:
        # The server may respond with a non-JSON payload.
        return None, None
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return None, None
    status = error.get("status")
    message = error.get("message")
    return (
        status if isinstance(status, str) else None,
        message if isinstance(message, str) else None,
    )


def _in_cause_chain(
    error: BaseException, types: type[BaseException] | tuple[type[BaseException], ...]
) -> bool:
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, types):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False
