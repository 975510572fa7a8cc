r"""Callback types and data structures for observability.

This module provides callback support for sdkretry, enabling users to
hook into the lifecycle of a logical request for logging, metrics or
alerting.

The callback system provides four lifecycle hooks:
- on_request: Called before each attempt
- on_retry: Called before each retry (after the wait, if any)
- on_success: Called when a request succeeds
- on_failure: Called when a request definitively fails

Example:
    ```pycon
    >>> from sdkretry import RequestClient
    >>> from sdkretry.callbacks import CallbackConfig, RetryInfo
    >>> def log_retry(retry_info: RetryInfo):
    ...     print(f"Retry {retry_info.attempt}/{retry_info.max_retries + 1}")
    ...
    >>> client = RequestClient(callbacks=CallbackConfig(on_retry=log_retry))  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "CallbackConfig",
    "FailureInfo",
    "RequestInfo",
    "ResponseInfo",
    "RetryInfo",
]

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx


@dataclass
class RequestInfo:
    """Information passed to on_request callback.

    Attributes:
        url: The URL being requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The current attempt number (1-indexed). First attempt is 1.
        max_retries: Maximum number of retries configured.
    """

    url: str
    method: str
    attempt: int
    max_retries: int


@dataclass
class RetryInfo:
    """Information passed to on_retry callback.

    Attributes:
        url: The URL being requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The attempt about to be made (1-indexed). First retry is
            attempt 2.
        max_retries: Maximum number of retries configured.
        wait_millis: The time waited before this retry, in milliseconds.
            Zero for immediate retries such as credential refreshes.
        error: The exception that triggered the retry (if any).
        status_code: The HTTP status code that triggered the retry (if any).
    """

    url: str
    method: str
    attempt: int
    max_retries: int
    wait_millis: int
    error: BaseException | None
    status_code: int | None


@dataclass
class ResponseInfo:
    """Information passed to on_success callback.

    Attributes:
        url: The URL that was requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The attempt number that succeeded (1-indexed).
        max_retries: Maximum number of retries configured.
        response: The successful HTTP response object.
        total_time: Total time spent on all attempts including waits (seconds).
    """

    url: str
    method: str
    attempt: int
    max_retries: int
    response: httpx.Response
    total_time: float


@dataclass
class FailureInfo:
    """Information passed to on_failure callback.

    Attributes:
        url: The URL that was requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The final attempt number (1-indexed).
        max_retries: Maximum number of retries configured.
        error: The terminal exception raised to the caller.
        status_code: The final HTTP status code (if any).
        total_time: Total time spent on all attempts including waits (seconds).
    """

    url: str
    method: str
    attempt: int
    max_retries: int
    error: Exception
    status_code: int | None
    total_time: float


@dataclass
class CallbackConfig:
    """Configuration for callbacks.

    Attributes:
        on_request: Optional callback invoked before each attempt.
        on_retry: Optional callback invoked before each retry.
        on_success: Optional callback invoked when a request succeeds.
        on_failure: Optional callback invoked when a request fails.
    """

    on_request: Callable[[RequestInfo], None] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None
