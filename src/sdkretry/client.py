r"""Synchronous request client with automatic retry logic.

This module provides the ``RequestClient`` that executes logical requests
over a ``Transport``. Each logical request may span several attempts on
the wire: failed attempts are handed to a ``RetryCoordinator`` which
decides whether to retry, and terminal failures are classified and
raised as ``ClientError`` subclasses.
"""

from __future__ import annotations

__all__ = ["METHOD_OVERRIDE_HEADER", "RequestClient"]

import logging
import time
from typing import TYPE_CHECKING, Any, NoReturn

import httpx

from sdkretry.classifier import HttpErrorClassifier, classify_failure
from sdkretry.core.config import DEFAULT_RETRY_CONFIG
from sdkretry.exceptions import (
    NonRetryable,
    ParseFailure,
    RetryExhausted,
    TransportFailure,
)
from sdkretry.retry.coordinator import RetryCoordinator
from sdkretry.retry.credentials import CredentialRefreshGate
from sdkretry.retry.decision import RetryState
from sdkretry.retry.manager import CallbackManager
from sdkretry.transport import HttpxTransport
from sdkretry.utils.clock import cancellation_scope
from sdkretry.utils.structured_logging import correlation_scope, log_structured

if TYPE_CHECKING:
    import threading
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    from sdkretry.callbacks import CallbackConfig
    from sdkretry.classifier import ErrorClassifier
    from sdkretry.core.config import RetryConfig
    from sdkretry.exceptions import ClientError
    from sdkretry.retry.credentials import CredentialSource
    from sdkretry.retry.decision import RetryDecision
    from sdkretry.transport import Transport

logger: logging.Logger = logging.getLogger(__name__)

# Header carrying the real verb when a request is tunnelled through POST
METHOD_OVERRIDE_HEADER = "X-HTTP-Method-Override"


class RequestClient:
    r"""Synchronous client executing logical requests with automatic
    retries.

    A logical request is retried according to ``config``:

    - 2xx and 3xx responses are returned as is.
    - Responses with status >= 400 are first offered to the credential
      refresh gate, if any, which may grant an immediate retry. Otherwise
      they are retried with backoff if their status is retryable.
    - ``httpx.TransportError`` failures are retried with backoff if
      ``config.retry_on_io_exceptions`` is enabled.

    The total number of retries never exceeds ``config.max_retries``,
    whatever their cause. If a backoff wait is interrupted, the
    ``InterruptedError`` propagates to the caller unchanged. Waits are
    interrupted by setting the ``cancel_event`` of that request, which
    leaves other requests running.

    Methods missing from ``transport.supported_methods`` are sent as
    ``POST`` with the real verb in the ``X-HTTP-Method-Override`` header.

    Args:
        transport: The transport used to send attempts. If ``None``, an
            ``HttpxTransport`` is created and closed together with this
            client.
        config: The retry configuration. Defaults to
            ``DEFAULT_RETRY_CONFIG``.
        credentials: Optional credential refresh gate, or a credential
            source wrapped in a gate with default settings.
        error_classifier: Classifier for terminal failures. Defaults to
            ``HttpErrorClassifier``.
        callbacks: Optional lifecycle callbacks.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry import RequestClient, RetryConfig
        >>> from sdkretry.transport import HttpxTransport
        >>> responses = iter([httpx.Response(503), httpx.Response(200, text="ok")])
        >>> mock = httpx.MockTransport(lambda request: next(responses))
        >>> class NoSleep:
        ...     def sleep(self, millis):
        ...         pass
        ...
        >>> config = RetryConfig(max_retries=1, retry_status_codes={503}, sleeper=NoSleep())
        >>> with RequestClient(HttpxTransport(httpx.Client(transport=mock)), config=config) as client:
        ...     client.get("https://example.com").text
        ...
        'ok'

        ```
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        config: RetryConfig | None = None,
        credentials: CredentialRefreshGate | CredentialSource | None = None,
        error_classifier: ErrorClassifier | None = None,
        callbacks: CallbackConfig | None = None,
    ) -> None:
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._config: RetryConfig = config or DEFAULT_RETRY_CONFIG
        if credentials is not None and not isinstance(credentials, CredentialRefreshGate):
            credentials = CredentialRefreshGate(credentials)
        self._credential_gate: CredentialRefreshGate | None = credentials
        self._error_classifier: ErrorClassifier = error_classifier or HttpErrorClassifier()
        self._callbacks = CallbackManager(callbacks)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(transport={self._transport!r}, "
            f"config={self._config!r})"
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            self._transport.close()

    def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> httpx.Response:
        r"""Execute a logical request with automatic retry logic.

        Args:
            method: The HTTP method (GET, POST, PUT, PATCH, DELETE, ...).
            url: The URL to send the request to.
            headers: Optional request headers.
            body: Optional request body.
            cancel_event: Optional event that interrupts the backoff
                waits of this request when set. Other requests are not
                affected. Defaults to the event of the enclosing
                ``cancellation_scope``, or a fresh event.

        Returns:
            The first 2xx or 3xx response.

        Raises:
            NonRetryable: If the server answered with a status that is not
                retried, or asked to wait longer than allowed.
            RetryExhausted: If the retry budget ran out while the failure
                was still retryable.
            TransportFailure: If the request failed at the I/O level and
                I/O failures are not retried.
            InterruptedError: If a backoff wait was interrupted.

        Example:
            ```pycon
            >>> from sdkretry import RequestClient
            >>> with RequestClient() as client:  # doctest: +SKIP
            ...     response = client.execute("GET", "https://api.example.com/data")
            ...

            ```
        """
        method = method.upper()
        with correlation_scope(), cancellation_scope(cancel_event):
            return self._execute(method, url, headers, body)

    def execute_json(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> Any:
        r"""Execute a logical request and decode its JSON body.

        A body that cannot be decoded is never retried, and is reported
        to ``on_failure`` like any other terminal failure.

        Raises:
            ParseFailure: If the response body is not valid JSON.
            ClientError: See ``execute``.
        """
        method = method.upper()
        with correlation_scope(), cancellation_scope(cancel_event):
            return self._execute(method, url, headers, body, parse_json=True)

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> httpx.Response:
        """Send a GET request with automatic retry logic."""
        return self.execute("GET", url, headers=headers)

    def post(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> httpx.Response:
        """Send a POST request with automatic retry logic."""
        return self.execute("POST", url, headers=headers, body=body)

    def put(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> httpx.Response:
        """Send a PUT request with automatic retry logic."""
        return self.execute("PUT", url, headers=headers, body=body)

    def patch(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> httpx.Response:
        """Send a PATCH request with automatic retry logic.

        Transports that cannot send PATCH natively receive a POST with
        the ``X-HTTP-Method-Override: PATCH`` header.
        """
        return self.execute("PATCH", url, headers=headers, body=body)

    def delete(self, url: str, headers: Mapping[str, str] | None = None) -> httpx.Response:
        """Send a DELETE request with automatic retry logic."""
        return self.execute("DELETE", url, headers=headers)

    def build_request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> httpx.Request:
        """Build the wire request of a logical request.

        The same request object is re-sent on every attempt, so updates
        made by the credential gate carry over to the next attempt.
        """
        method = method.upper()
        request_headers = httpx.Headers(headers)
        wire_method = method
        if method not in self._transport.supported_methods:
            logger.debug(f"{method} not supported by the transport, sending POST with override")
            wire_method = "POST"
            request_headers[METHOD_OVERRIDE_HEADER] = method
        return httpx.Request(wire_method, url, headers=request_headers, content=body)

    def _execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        body: bytes | str | None,
        *,
        parse_json: bool = False,
    ) -> Any:
        request = self.build_request(method, url, headers=headers, body=body)
        coordinator = RetryCoordinator(self._config, credential_gate=self._credential_gate)
        if self._credential_gate is not None:
            self._credential_gate.initialize(request)

        max_retries = self._config.max_retries
        start_time = time.time()
        attempt = 0
        while True:
            self._callbacks.on_request(url, method, attempt, max_retries)
            logger.debug(f"{method} request to {url} (attempt {attempt + 1}/{max_retries + 1})")
            error: httpx.TransportError | None = None
            response: httpx.Response | None = None
            try:
                response = self._transport.send(request)
            except httpx.TransportError as exc:
                logger.debug(f"{method} request to {url} failed with {type(exc).__name__}: {exc}")
                error = exc
            else:
                if response.status_code < 400:
                    logger.debug(
                        f"{method} request to {url} succeeded with status {response.status_code}"
                    )
                    result = (
                        self._decode_json(method, url, attempt, response, start_time)
                        if parse_json
                        else response
                    )
                    self._callbacks.on_success(
                        url, method, attempt, max_retries, response, start_time
                    )
                    return result

            decision = coordinator.decide(request, error if error is not None else response)
            if not decision.retry:
                self._fail(method, url, attempt, decision, request, error, response, start_time)

            self._callbacks.on_retry(
                url,
                method,
                attempt,
                max_retries,
                decision.wait_millis,
                error,
                response.status_code if response is not None else None,
            )
            attempt += 1

    def _decode_json(
        self,
        method: str,
        url: str,
        attempt: int,
        response: httpx.Response,
        start_time: float,
    ) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            kind, message = classify_failure(self._error_classifier, exc, response=response)
            failure = ParseFailure(
                message, kind=kind, method=method, url=url, cause=exc, response=response
            )
            self._report_failure(
                method,
                url,
                attempt,
                failure,
                RetryState.NON_RETRYABLE,
                "undecodable response body",
                start_time,
            )
            raise failure from exc

    def _fail(
        self,
        method: str,
        url: str,
        attempt: int,
        decision: RetryDecision,
        request: httpx.Request,
        error: httpx.TransportError | None,
        response: httpx.Response | None,
        start_time: float,
    ) -> NoReturn:
        exhausted = decision.state == RetryState.EXHAUSTED
        failure: ClientError
        cause: Exception
        if error is not None:
            kind, message = classify_failure(self._error_classifier, error)
            error_class = RetryExhausted if exhausted else TransportFailure
            cause = error
            failure = error_class(message, kind=kind, method=method, url=url, cause=cause)
        else:
            kind, message = classify_failure(self._error_classifier, response)
            error_class = RetryExhausted if exhausted else NonRetryable
            cause = httpx.HTTPStatusError(message, request=request, response=response)
            failure = error_class(
                message, kind=kind, method=method, url=url, cause=cause, response=response
            )

        self._report_failure(
            method, url, attempt, failure, decision.state, decision.reason, start_time
        )
        raise failure from cause

    def _report_failure(
        self,
        method: str,
        url: str,
        attempt: int,
        failure: ClientError,
        state: RetryState,
        reason: str,
        start_time: float,
    ) -> None:
        log_structured(
            logger,
            logging.DEBUG,
            f"{method} request to {url} failed after {attempt + 1} attempt(s): {reason}",
            method=method,
            url=url,
            attempts=attempt + 1,
            retry_state=state.value,
            error_kind=failure.kind.value,
            status_code=failure.status_code,
        )
        self._callbacks.on_failure(
            url,
            method,
            attempt,
            self._config.max_retries,
            failure,
            failure.status_code,
            start_time,
        )
