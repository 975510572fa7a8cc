r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

from sdkretry.backoff.base import BaseBackoffStrategy


class ExponentialBackoff(BaseBackoffStrategy):
    """Exponential backoff strategy.

    Calculates delay as:
    ``min(initial_interval_millis * multiplier ** attempt, max_interval_millis)``.

    No randomization is applied, so the sequence of delays is fully
    deterministic.

    Args:
        initial_interval_millis: The delay of the first backoff in
            milliseconds (default: 500).
        multiplier: The factor applied to the delay after each backoff.
            Must be >= 1.0 (default: 2.0).
        max_interval_millis: The cap applied to every delay in
            milliseconds. Must be >= initial_interval_millis
            (default: 120000).

    Example:
        ```pycon
        >>> from sdkretry.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff()
        >>> [backoff.calculate(attempt) for attempt in range(4)]
        [500, 1000, 2000, 4000]
        >>> # Capped at max_interval_millis
        >>> backoff.calculate(9)
        120000
        >>> ExponentialBackoff(multiplier=1.5).calculate(1)
        750

        ```
    """

    def __init__(
        self,
        initial_interval_millis: int = 500,
        multiplier: float = 2.0,
        max_interval_millis: int = 120000,
    ) -> None:
        if initial_interval_millis <= 0:
            msg = f"initial_interval_millis must be > 0, got {initial_interval_millis}"
            raise ValueError(msg)
        if multiplier < 1.0:
            msg = f"multiplier must be >= 1.0, got {multiplier}"
            raise ValueError(msg)
        if max_interval_millis < initial_interval_millis:
            msg = (
                f"max_interval_millis must be >= initial_interval_millis "
                f"({initial_interval_millis}), got {max_interval_millis}"
            )
            raise ValueError(msg)

        self.initial_interval_millis = initial_interval_millis
        self.multiplier = multiplier
        self.max_interval_millis = max_interval_millis

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(initial_interval_millis={self.initial_interval_millis}, "
            f"multiplier={self.multiplier}, max_interval_millis={self.max_interval_millis})"
        )

    def calculate(self, attempt: int) -> int:
        """Calculate exponential backoff delay.

        Args:
            attempt: The number of backoff intervals already consumed
                (0-indexed).

        Returns:
            The delay in milliseconds, capped at max_interval_millis.
        """
        if attempt < 0:
            msg = f"attempt must be >= 0, got {attempt}"
            raise ValueError(msg)
        try:
            delay = self.initial_interval_millis * self.multiplier**attempt
        except OverflowError:
            return self.max_interval_millis
        return int(min(delay, self.max_interval_millis))
