r"""Per-request backoff progression."""

from __future__ import annotations

__all__ = ["BackoffState"]

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdkretry.backoff.base import BaseBackoffStrategy

logger: logging.Logger = logging.getLogger(__name__)


class BackoffState:
    """Walks a backoff strategy for one logical request.

    A new instance is created for every logical request and discarded
    when the request completes. It only advances when a backoff interval
    is actually handed out, so retries that wait for a server supplied
    ``Retry-After`` or that follow a credential refresh leave the sequence
    untouched.

    Args:
        strategy: The backoff strategy to walk.

    Example:
        ```pycon
        >>> from sdkretry.backoff import BackoffState, ExponentialBackoff
        >>> state = BackoffState(ExponentialBackoff())
        >>> state.next_interval(), state.next_interval(), state.next_interval()
        (500, 1000, 2000)
        >>> state.attempt
        3

        ```
    """

    def __init__(self, strategy: BaseBackoffStrategy) -> None:
        self._strategy = strategy
        self._attempt = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(attempt={self._attempt}, strategy={self._strategy!r})"

    @property
    def attempt(self) -> int:
        """The number of intervals handed out so far."""
        return self._attempt

    @property
    def strategy(self) -> BaseBackoffStrategy:
        return self._strategy

    def peek(self) -> int:
        """Return the next interval without advancing."""
        return self._strategy.calculate(self._attempt)

    def next_interval(self) -> int:
        """Return the next interval in milliseconds and advance."""
        interval = self._strategy.calculate(self._attempt)
        self._attempt += 1
        logger.debug(f"Backoff interval #{self._attempt}: {interval}ms")
        return interval

    def reset(self) -> None:
        """Start the sequence over from the initial interval."""
        self._attempt = 0
