r"""Abstract base class for backoff strategies."""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy"]

from abc import ABC, abstractmethod


class BaseBackoffStrategy(ABC):
    """Abstract base class for backoff strategies.

    A backoff strategy determines how long to wait before retrying a
    failed request based on the number of backoff intervals already used.
    Implementations must be pure: the same attempt always yields the same
    delay.
    """

    @abstractmethod
    def calculate(self, attempt: int) -> int:
        """Calculate the backoff delay for a given retry attempt.

        Args:
            attempt: The number of backoff intervals already consumed
                (0-indexed). For example, attempt=0 is the first backoff,
                attempt=1 is the second backoff, etc.

        Returns:
            The delay in milliseconds before the next retry attempt.
        """
