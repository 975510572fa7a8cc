r"""Core configuration for the retry layer.

This package contains the immutable retry configuration, its builder,
the SDK-wide defaults and parameter validation.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_INITIAL_INTERVAL_MILLIS",
    "DEFAULT_MAX_INTERVAL_MILLIS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_CONFIG",
    "DEFAULT_RETRY_STATUS_CODES",
    "DEFAULT_TIMEOUT",
    "RetryConfig",
    "RetryConfigBuilder",
    "validate_retry_params",
    "validate_timeout",
]

from sdkretry.core.config import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_INTERVAL_MILLIS,
    DEFAULT_MAX_INTERVAL_MILLIS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_CONFIG,
    DEFAULT_RETRY_STATUS_CODES,
    DEFAULT_TIMEOUT,
    RetryConfig,
    RetryConfigBuilder,
)
from sdkretry.core.validation import validate_retry_params, validate_timeout
