r"""Cumulative retry budget of one logical request."""

from __future__ import annotations

__all__ = ["RetryBudget"]


class RetryBudget:
    """Remaining number of retries allowed for one logical request.

    The same budget is shared by every failure cause (I/O errors, HTTP
    error responses, credential refreshes), so ``max_retries`` bounds the
    total number of retries of a request no matter which handler granted
    them. A budget belongs to exactly one in-flight request and is never
    shared across requests or threads.

    Args:
        max_retries: The initial number of retries. Must be >= 0.

    Example:
        ```pycon
        >>> from sdkretry.retry import RetryBudget
        >>> budget = RetryBudget(2)
        >>> budget.consume()
        >>> budget.remaining, budget.used, budget.exhausted
        (1, 1, False)
        >>> budget.consume()
        >>> budget.exhausted
        True

        ```
    """

    def __init__(self, max_retries: int) -> None:
        if max_retries < 0:
            msg = f"max_retries must be >= 0, got {max_retries}"
            raise ValueError(msg)
        self._max_retries = max_retries
        self._remaining = max_retries

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(remaining={self._remaining}, max_retries={self._max_retries})"

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def used(self) -> int:
        return self._max_retries - self._remaining

    @property
    def exhausted(self) -> bool:
        return self._remaining <= 0

    def consume(self) -> None:
        """Use one retry.

        Raises:
            RuntimeError: If the budget is already exhausted.
        """
        if self.exhausted:
            msg = f"Retry budget exhausted ({self._max_retries} retries used)"
            raise RuntimeError(msg)
        self._remaining -= 1
