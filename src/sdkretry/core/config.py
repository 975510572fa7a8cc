r"""Retry configuration and defaults.

This module provides configuration constants, the immutable
``RetryConfig`` dataclass shared read-only by every request, and a
fluent builder for it.
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
]

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

from sdkretry.backoff import BackoffState, ExponentialBackoff
from sdkretry.core.validation import validate_retry_params
from sdkretry.utils.clock import Clock, Sleeper, SystemClock, SystemSleeper

if TYPE_CHECKING:
    from collections.abc import Iterable


# Default timeout in seconds for a single attempt on the wire
DEFAULT_TIMEOUT = 10.0

# Default maximum number of retries used by the SDK-wide configuration
# Total attempts = max_retries + 1 (initial attempt)
DEFAULT_MAX_RETRIES = 4

# First backoff interval. Not configurable.
DEFAULT_INITIAL_INTERVAL_MILLIS = 500

# Cap applied to backoff intervals (2 minutes)
DEFAULT_MAX_INTERVAL_MILLIS = 120000

# Interval = initial * multiplier ** attempt
# With 2.0: 500ms, 1s, 2s, 4s, ...
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# HTTP status codes retried by the SDK-wide configuration
# 500: Internal Server Error - Temporary server issue
# 503: Service Unavailable - Server overloaded or down
DEFAULT_RETRY_STATUS_CODES = (500, 503)


@dataclass(frozen=True)
class RetryConfig:
    """Immutable retry policy for logical requests.

    A ``RetryConfig`` is safe to share across threads and requests. The
    per-request mutable state (retry budget and backoff progression) is
    derived from it by the retry coordinator.

    With the dataclass defaults no request is ever retried: retries are
    opt-in through ``max_retries`` together with ``retry_status_codes``
    and/or ``retry_on_io_exceptions``. See ``DEFAULT_RETRY_CONFIG`` for the
    SDK-wide policy.

    Args:
        max_retries: Cumulative number of retries allowed for one logical
            request, regardless of their cause (I/O errors, HTTP error
            responses, credential refreshes). Must be >= 0.
        retry_status_codes: HTTP status codes that should be retried. If
            empty, requests that produce an HTTP response are never
            retried on the basis of their status.
        retry_on_io_exceptions: Whether transport-level failures are
            retried.
        max_interval_millis: Cap applied to backoff intervals. Must be
            >= 500. Defaults to 2 minutes.
        backoff_multiplier: Factor applied to the interval after each
            backoff. Must be >= 1.0.
        max_retry_after_millis: Longest ``Retry-After`` delay that is
            honored. A server asking for a longer wait makes the failure
            non-retryable. ``None`` means ``max_interval_millis``.
        clock: Time source used to evaluate HTTP-date ``Retry-After``
            values.
        sleeper: Blocking-wait primitive used between retries.

    Example:
        ```pycon
        >>> from sdkretry.core.config import RetryConfig
        >>> config = RetryConfig(max_retries=4, retry_status_codes={503})
        >>> config.retry_status_codes
        frozenset({503})
        >>> config.effective_max_retry_after_millis
        120000
        >>> config.merge(max_retries=2).max_retries
        2
        >>> config.max_retries  # Original unchanged
        4

        ```
    """

    max_retries: int = 0
    retry_status_codes: frozenset[int] = field(default_factory=frozenset)
    retry_on_io_exceptions: bool = False
    max_interval_millis: int = DEFAULT_MAX_INTERVAL_MILLIS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    max_retry_after_millis: int | None = None
    clock: Clock = field(default_factory=SystemClock, compare=False)
    sleeper: Sleeper = field(default_factory=SystemSleeper, compare=False)

    def __post_init__(self) -> None:
        """Normalize and validate configuration parameters.

        Raises:
            ValueError: If any parameter fails validation.
        """
        codes = self.retry_status_codes if self.retry_status_codes is not None else ()
        object.__setattr__(self, "retry_status_codes", frozenset(codes))
        validate_retry_params(
            max_retries=self.max_retries,
            initial_interval_millis=self.initial_interval_millis,
            max_interval_millis=self.max_interval_millis,
            backoff_multiplier=self.backoff_multiplier,
            max_retry_after_millis=self.max_retry_after_millis,
            retry_status_codes=self.retry_status_codes,
        )

    @property
    def initial_interval_millis(self) -> int:
        return DEFAULT_INITIAL_INTERVAL_MILLIS

    @property
    def effective_max_retry_after_millis(self) -> int:
        """The longest ``Retry-After`` delay that is honored."""
        if self.max_retry_after_millis is None:
            return self.max_interval_millis
        return self.max_retry_after_millis

    @classmethod
    def builder(cls) -> RetryConfigBuilder:
        """Return a fluent builder for ``RetryConfig``."""
        return RetryConfigBuilder()

    def new_backoff(self) -> BackoffState:
        """Create the backoff progression for a new logical request.

        Example:
            ```pycon
            >>> from sdkretry.core.config import RetryConfig
            >>> backoff = RetryConfig(backoff_multiplier=3.0).new_backoff()
            >>> backoff.next_interval(), backoff.next_interval()
            (500, 1500)

            ```
        """
        return BackoffState(
            ExponentialBackoff(
                initial_interval_millis=self.initial_interval_millis,
                multiplier=self.backoff_multiplier,
                max_interval_millis=self.max_interval_millis,
            )
        )

    def merge(self, **overrides: Any) -> RetryConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new RetryConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Example:
            ```pycon
            >>> from sdkretry.core.config import RetryConfig
            >>> RetryConfig(max_retries=5).to_dict()["max_retries"]
            5

            ```
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}


class RetryConfigBuilder:
    r"""Fluent builder for ``RetryConfig``.

    Example:
        ```pycon
        >>> from sdkretry.core.config import RetryConfig
        >>> config = (
        ...     RetryConfig.builder()
        ...     .set_max_retries(4)
        ...     .set_retry_status_codes([500, 503])
        ...     .set_max_interval_millis(60000)
        ...     .build()
        ... )
        >>> config.max_retries, sorted(config.retry_status_codes)
        (4, [500, 503])

        ```
    """

    def __init__(self) -> None:
        self._options: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self._options})"

    def set_max_retries(self, max_retries: int) -> RetryConfigBuilder:
        self._options["max_retries"] = max_retries
        return self

    def set_retry_status_codes(self, retry_status_codes: Iterable[int] | None) -> RetryConfigBuilder:
        """Set the retried status codes. ``None`` or empty disables
        status based retries."""
        self._options["retry_status_codes"] = frozenset(retry_status_codes or ())
        return self

    def set_retry_on_io_exceptions(self, retry_on_io_exceptions: bool) -> RetryConfigBuilder:
        self._options["retry_on_io_exceptions"] = retry_on_io_exceptions
        return self

    def set_max_interval_millis(self, max_interval_millis: int) -> RetryConfigBuilder:
        self._options["max_interval_millis"] = max_interval_millis
        return self

    def set_backoff_multiplier(self, backoff_multiplier: float) -> RetryConfigBuilder:
        self._options["backoff_multiplier"] = backoff_multiplier
        return self

    def set_max_retry_after_millis(self, max_retry_after_millis: int | None) -> RetryConfigBuilder:
        self._options["max_retry_after_millis"] = max_retry_after_millis
        return self

    def set_clock(self, clock: Clock) -> RetryConfigBuilder:
        self._options["clock"] = clock
        return self

    def set_sleeper(self, sleeper: Sleeper) -> RetryConfigBuilder:
        self._options["sleeper"] = sleeper
        return self

    def build(self) -> RetryConfig:
        """Build the configuration.

        Raises:
            ValueError: If any option fails validation.
        """
        return RetryConfig(**self._options)


# Policy applied to every outbound SDK call unless overridden
DEFAULT_RETRY_CONFIG = RetryConfig(
    max_retries=DEFAULT_MAX_RETRIES,
    retry_status_codes=frozenset(DEFAULT_RETRY_STATUS_CODES),
    retry_on_io_exceptions=True,
    max_interval_millis=60 * 1000,
)
