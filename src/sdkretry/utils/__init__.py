r"""Utility functions and primitives used by the retry layer.

This package provides the injectable clock and sleeper, request-scoped
cancellation, Retry-After header parsing, and opt-in structured logging
helpers.
"""

from __future__ import annotations

__all__ = [
    "Clock",
    "Sleeper",
    "SystemClock",
    "SystemSleeper",
    "cancellation_scope",
    "get_cancel_event",
    "parse_retry_after",
]

from sdkretry.utils.clock import (
    Clock,
    Sleeper,
    SystemClock,
    SystemSleeper,
    cancellation_scope,
    get_cancel_event,
)
from sdkretry.utils.retry_after import parse_retry_after
