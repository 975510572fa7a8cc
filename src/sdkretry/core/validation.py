r"""Parameter validation utilities for retry configuration.

This module provides validation functions for retry parameters to ensure
they meet the required constraints before being used by the retry
engine.
"""

from __future__ import annotations

__all__ = ["validate_retry_params", "validate_timeout"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    import httpx


def validate_timeout(timeout: float | httpx.Timeout) -> None:
    """Validate timeout parameter.

    Args:
        timeout: Maximum seconds to wait for server responses.
            Must be > 0 if provided as a numeric value.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from sdkretry.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(0)
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_retry_params(
    max_retries: int,
    *,
    initial_interval_millis: int = 500,
    max_interval_millis: int = 120000,
    backoff_multiplier: float = 2.0,
    max_retry_after_millis: int | None = None,
    retry_status_codes: Iterable[int] = (),
) -> None:
    """Validate retry parameters.

    Args:
        max_retries: Maximum number of retries for one logical request.
            Must be >= 0. A value of 0 means no retries (only the initial attempt).
        initial_interval_millis: The first backoff interval. Must be > 0.
        max_interval_millis: Cap applied to backoff intervals. Must be
            >= 500 and >= initial_interval_millis.
        backoff_multiplier: Exponential growth factor. Must be >= 1.0.
        max_retry_after_millis: Longest server requested delay that is
            honored. Must be >= 0 if provided.
        retry_status_codes: HTTP status codes that trigger a retry. Each
            must be an integer in [100, 599].

    Raises:
        ValueError: If any parameter is out of range.

    Example:
        ```pycon
        >>> from sdkretry.core import validate_retry_params
        >>> validate_retry_params(max_retries=3)
        >>> validate_retry_params(max_retries=3, max_interval_millis=60000)
        >>> validate_retry_params(max_retries=-1)
        Traceback (most recent call last):
        ...
        ValueError: max_retries must be >= 0, got -1

        ```
    """
    if max_retries < 0:
        msg = f"max_retries must be >= 0, got {max_retries}"
        raise ValueError(msg)
    if initial_interval_millis <= 0:
        msg = f"initial_interval_millis must be > 0, got {initial_interval_millis}"
        raise ValueError(msg)
    if max_interval_millis < 500:
        msg = f"max_interval_millis must be >= 500, got {max_interval_millis}"
        raise ValueError(msg)
    if max_interval_millis < initial_interval_millis:
        msg = (
            f"max_interval_millis must be >= initial_interval_millis "
            f"({initial_interval_millis}), got {max_interval_millis}"
        )
        raise ValueError(msg)
    if backoff_multiplier < 1.0:
        msg = f"backoff_multiplier must be >= 1.0, got {backoff_multiplier}"
        raise ValueError(msg)
    if max_retry_after_millis is not None and max_retry_after_millis < 0:
        msg = f"max_retry_after_millis must be >= 0, got {max_retry_after_millis}"
        raise ValueError(msg)
    for code in retry_status_codes:
        if isinstance(code, bool) or not isinstance(code, int) or not 100 <= code <= 599:
            msg = f"retry_status_codes must contain HTTP status codes, got {code!r}"
            raise ValueError(msg)
