r"""Callback manager for orchestrating request lifecycle events.

This module provides the CallbackManager class that handles invocation
of user-defined callbacks at various points of a logical request.
"""

from __future__ import annotations

__all__ = ["CallbackManager"]

import time
from typing import TYPE_CHECKING

from sdkretry.callbacks import (
    CallbackConfig,
    FailureInfo,
    RequestInfo,
    ResponseInfo,
    RetryInfo,
)

if TYPE_CHECKING:
    import httpx


class CallbackManager:
    """Manages callback invocations during the lifecycle of a request.

    Attempt numbers are received 0-indexed and handed to the callbacks
    1-indexed. Callback exceptions propagate to the caller.

    Attributes:
        callbacks: Configuration containing callback functions for lifecycle events.
    """

    def __init__(self, callbacks: CallbackConfig | None = None) -> None:
        """Initialize callback manager.

        Args:
            callbacks: Callback configuration. ``None`` disables all
                callbacks.
        """
        self.callbacks = callbacks or CallbackConfig()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(callbacks={self.callbacks!r})"

    def on_request(self, url: str, method: str, attempt: int, max_retries: int) -> None:
        """Invoke on_request callback.

        Args:
            url: The URL being requested.
            method: The HTTP method.
            attempt: Current attempt number (0-indexed).
            max_retries: Maximum number of retries.
        """
        if self.callbacks.on_request:
            self.callbacks.on_request(
                RequestInfo(url=url, method=method, attempt=attempt + 1, max_retries=max_retries)
            )

    def on_retry(
        self,
        url: str,
        method: str,
        attempt: int,
        max_retries: int,
        wait_millis: int,
        error: BaseException | None,
        status_code: int | None,
    ) -> None:
        """Invoke on_retry callback.

        Args:
            url: The URL being requested.
            method: The HTTP method.
            attempt: Number of the failed attempt (0-indexed). The
                callback receives the next attempt number, 1-indexed.
            max_retries: Maximum number of retries.
            wait_millis: Time waited before the retry.
            error: Exception that triggered retry (if any).
            status_code: Status code that triggered retry (if any).
        """
        if self.callbacks.on_retry:
            self.callbacks.on_retry(
                RetryInfo(
                    url=url,
                    method=method,
                    attempt=attempt + 2,  # Next attempt number
                    max_retries=max_retries,
                    wait_millis=wait_millis,
                    error=error,
                    status_code=status_code,
                )
            )

    def on_success(
        self,
        url: str,
        method: str,
        attempt: int,
        max_retries: int,
        response: httpx.Response,
        start_time: float,
    ) -> None:
        """Invoke on_success callback.

        Args:
            url: The URL that was requested.
            method: The HTTP method.
            attempt: Attempt number that succeeded (0-indexed).
            max_retries: Maximum number of retries.
            response: The successful response.
            start_time: Timestamp when request started.
        """
        if self.callbacks.on_success:
            self.callbacks.on_success(
                ResponseInfo(
                    url=url,
                    method=method,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    response=response,
                    total_time=time.time() - start_time,
                )
            )

    def on_failure(
        self,
        url: str,
        method: str,
        attempt: int,
        max_retries: int,
        error: Exception,
        status_code: int | None,
        start_time: float,
    ) -> None:
        """Invoke on_failure callback.

        Args:
            url: The URL that was requested.
            method: The HTTP method.
            attempt: Final attempt number (0-indexed).
            max_retries: Maximum number of retries.
            error: The error raised to the caller.
            status_code: Status code if available.
            start_time: Timestamp when request started.
        """
        if self.callbacks.on_failure:
            self.callbacks.on_failure(
                FailureInfo(
                    url=url,
                    method=method,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    error=error,
                    status_code=status_code,
                    total_time=time.time() - start_time,
                )
            )
