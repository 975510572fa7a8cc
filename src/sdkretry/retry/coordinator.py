r"""Per-request coordination of retry handlers.

This module provides the ``RetryCoordinator`` that composes immediate
retry handlers (such as credential refresh) with the delayed retry
policy of the ``RetryDecisionEngine``, under one shared retry budget.
"""

from __future__ import annotations

__all__ = ["ImmediateRetryHandler", "RetryCoordinator"]

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from sdkretry.retry.budget import RetryBudget
from sdkretry.retry.decision import RetryDecision
from sdkretry.retry.engine import RetryDecisionEngine

if TYPE_CHECKING:
    from sdkretry.backoff import BackoffState
    from sdkretry.core.config import RetryConfig
    from sdkretry.retry.credentials import CredentialRefreshGate

logger: logging.Logger = logging.getLogger(__name__)


class ImmediateRetryHandler(Protocol):
    """Handler that can grant a retry without waiting."""

    def on_unsuccessful_response(self, request: httpx.Request, response: httpx.Response) -> bool:
        """Return True if the request should be re-sent right away."""


class RetryCoordinator:
    r"""Decide the retry outcome of each failed attempt of one logical
    request.

    A coordinator owns the ``RetryBudget`` and the ``BackoffState`` of a
    single logical request and must not be reused across requests.

    Unsuccessful responses are offered to the immediate handlers first,
    in order. The first handler that accepts consumes one budget unit and
    yields a zero-wait retry, leaving the backoff progression untouched.
    If every handler declines, the decision engine applies the retry
    policy. I/O failures go straight to the engine.

    Args:
        config: The retry configuration.
        credential_gate: Optional credential refresh gate, tried before
            the regular policy.
        engine: Optional decision engine. Defaults to a new
            ``RetryDecisionEngine`` over ``config``.

    Example:
        ```pycon
        >>> import httpx
        >>> from sdkretry.core import RetryConfig
        >>> from sdkretry.retry import RetryCoordinator
        >>> coordinator = RetryCoordinator(RetryConfig(max_retries=0, retry_status_codes={503}))
        >>> request = httpx.Request("GET", "https://example.com")
        >>> coordinator.handle_response(request, httpx.Response(503)).state
        <RetryState.EXHAUSTED: 'exhausted'>

        ```
    """

    def __init__(
        self,
        config: RetryConfig,
        *,
        credential_gate: CredentialRefreshGate | None = None,
        engine: RetryDecisionEngine | None = None,
    ) -> None:
        self.config = config
        self.engine = engine or RetryDecisionEngine(config)
        self._budget = RetryBudget(config.max_retries)
        self._backoff = config.new_backoff()
        self._handlers: list[ImmediateRetryHandler] = []
        if credential_gate is not None:
            self._handlers.append(credential_gate)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(budget={self._budget!r}, "
            f"handlers={len(self._handlers)})"
        )

    @property
    def budget(self) -> RetryBudget:
        return self._budget

    @property
    def backoff(self) -> BackoffState:
        return self._backoff

    @property
    def attempts(self) -> int:
        """Number of retries granted so far."""
        return self._budget.used

    def decide(
        self, request: httpx.Request, outcome: httpx.Response | BaseException
    ) -> RetryDecision:
        """Dispatch a failed attempt to the matching handler.

        Args:
            request: The request of the failed attempt.
            outcome: The unsuccessful response, or the I/O exception.

        Returns:
            The retry decision. For delayed retries the wait has already
            elapsed.

        Raises:
            InterruptedError: If a backoff wait was interrupted.
        """
        if isinstance(outcome, httpx.Response):
            return self.handle_response(request, outcome)
        return self.handle_exception(outcome)

    def handle_response(self, request: httpx.Request, response: httpx.Response) -> RetryDecision:
        """Decide the outcome of an unsuccessful response."""
        for handler in self._handlers:
            if not handler.on_unsuccessful_response(request, response):
                continue
            if self._budget.exhausted:
                logger.debug(
                    f"{type(handler).__name__} asked for a retry but the budget is exhausted"
                )
                return RetryDecision.exhausted(
                    f"status {response.status_code} after {self._budget.used} retries"
                )
            self._budget.consume()
            logger.debug(
                f"{type(handler).__name__} granted an immediate retry for status "
                f"{response.status_code}"
            )
            return RetryDecision.retrying(0, f"{type(handler).__name__}")
        return self.engine.decide(response, self._backoff, self._budget)

    def handle_exception(self, exception: BaseException) -> RetryDecision:
        """Decide the outcome of an I/O failure."""
        return self.engine.decide(exception, self._backoff, self._budget)
