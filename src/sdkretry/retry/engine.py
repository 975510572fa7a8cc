r"""Retry decision logic for failed attempts.

This module provides the RetryDecisionEngine class that decides whether
a failed attempt should be retried and how long to wait, based on the
retry configuration, the server's ``Retry-After`` hint, the backoff
progression and the remaining retry budget.
"""

from __future__ import annotations

__all__ = ["RetryDecisionEngine"]

import logging
from typing import TYPE_CHECKING

import httpx

from sdkretry.retry.decision import RetryDecision, RetryState
from sdkretry.utils.retry_after import parse_retry_after

if TYPE_CHECKING:
    from sdkretry.backoff import BackoffState
    from sdkretry.core.config import RetryConfig
    from sdkretry.retry.budget import RetryBudget

logger: logging.Logger = logging.getLogger(__name__)


class RetryDecisionEngine:
    """Decides whether a failed attempt is retried, and waits if so.

    The engine handles both failure causes:

    - I/O failures are retried iff ``retry_on_io_exceptions`` is enabled
      and the budget is not exhausted. The wait is the next backoff
      interval.
    - HTTP responses are retried iff the status is one of
      ``retry_status_codes`` and the budget is not exhausted. The wait is
      the parsed ``Retry-After`` header if present and valid, otherwise
      the next backoff interval. A ``Retry-After`` longer than
      ``max_retry_after_millis`` makes the failure non-retryable.

    On a retry the engine consumes exactly one budget unit and blocks the
    calling thread on the configured sleeper. If the sleep is
    interrupted, the engine moves to ``EXHAUSTED`` and re-raises the
    ``InterruptedError``.

    Args:
        config: The retry configuration.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry.core import RetryConfig
        >>> from sdkretry.retry import RetryBudget, RetryDecisionEngine
        >>> class NoSleep:
        ...     def sleep(self, millis):
        ...         pass
        ...
        >>> config = RetryConfig(max_retries=2, retry_status_codes={503}, sleeper=NoSleep())
        >>> engine = RetryDecisionEngine(config)
        >>> decision = engine.decide(httpx.Response(503), config.new_backoff(), RetryBudget(2))
        >>> decision.retry, decision.wait_millis
        (True, 500)
        >>> engine.decide(httpx.Response(404), config.new_backoff(), RetryBudget(2)).state
        <RetryState.NON_RETRYABLE: 'non_retryable'>

        ```
    """

    def __init__(self, config: RetryConfig) -> None:
        self.config = config
        self._state = RetryState.ATTEMPTING

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(state={self._state.value})"

    @property
    def state(self) -> RetryState:
        """The state reached after the last decision."""
        return self._state

    def decide(
        self,
        outcome: httpx.Response | BaseException,
        backoff: BackoffState,
        budget: RetryBudget,
    ) -> RetryDecision:
        """Decide whether to retry and, if so, wait before returning.

        Args:
            outcome: The unsuccessful response, or the I/O exception
                raised by the transport.
            backoff: The backoff progression of the logical request.
            budget: The retry budget of the logical request.

        Returns:
            The decision. When ``decision.retry`` is True the wait has
            already elapsed and one budget unit has been consumed.

        Raises:
            InterruptedError: If the wait was interrupted.
        """
        if isinstance(outcome, httpx.Response):
            decision = self.evaluate_response(outcome, backoff, budget)
        else:
            decision = self.evaluate_exception(outcome, backoff, budget)

        if not decision.retry:
            self._state = decision.state
            logger.debug(f"Not retrying ({decision.state.value}): {decision.reason}")
            return decision

        budget.consume()
        self._state = RetryState.RETRYING
        logger.debug(
            f"Retrying after {decision.wait_millis}ms ({decision.reason}), "
            f"{budget.remaining}/{budget.max_retries} retries left"
        )
        self._sleep(decision.wait_millis)
        return decision

    def evaluate_response(
        self,
        response: httpx.Response,
        backoff: BackoffState,
        budget: RetryBudget,
    ) -> RetryDecision:
        """Evaluate an unsuccessful HTTP response without waiting.

        The backoff progression is only advanced when a backoff interval
        is used for the returned decision.
        """
        status = response.status_code
        if status not in self.config.retry_status_codes:
            return RetryDecision.non_retryable(f"status {status} is not retryable")

        retry_after = parse_retry_after(
            response.headers.get("Retry-After"), self.config.clock.time_millis()
        )
        max_retry_after = self.config.effective_max_retry_after_millis
        if retry_after is not None and retry_after > max_retry_after:
            return RetryDecision.non_retryable(
                f"status {status} with Retry-After of {retry_after}ms "
                f"(longer than {max_retry_after}ms)"
            )

        if budget.exhausted:
            return RetryDecision.exhausted(f"status {status} after {budget.used} retries")

        if retry_after is not None:
            return RetryDecision.retrying(retry_after, f"status {status}, Retry-After")
        return RetryDecision.retrying(backoff.next_interval(), f"status {status}")

    def evaluate_exception(
        self,
        exception: BaseException,
        backoff: BackoffState,
        budget: RetryBudget,
    ) -> RetryDecision:
        """Evaluate an I/O failure without waiting."""
        error_type = type(exception).__name__
        if not self.config.retry_on_io_exceptions:
            return RetryDecision.non_retryable(f"{error_type} (I/O retries disabled)")
        if budget.exhausted:
            return RetryDecision.exhausted(f"{error_type} after {budget.used} retries")
        return RetryDecision.retrying(backoff.next_interval(), error_type)

    def _sleep(self, wait_millis: int) -> None:
        if wait_millis <= 0:
            return
        try:
            self.config.sleeper.sleep(wait_millis)
        except InterruptedError:
            self._state = RetryState.EXHAUSTED
            logger.debug(f"Backoff sleep of {wait_millis}ms interrupted, aborting retries")
            raise
