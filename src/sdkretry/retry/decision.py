r"""Value objects describing retry decisions."""

from __future__ import annotations

__all__ = ["RetryDecision", "RetryState"]

from dataclasses import dataclass
from enum import Enum


class RetryState(Enum):
    """States of one logical request.

    Attributes:
        ATTEMPTING: An attempt is in flight.
        SUCCESS: The last attempt succeeded.
        RETRYING: The last failure will be retried.
        EXHAUSTED: The failure is retryable but no retry is left, or the
            wait before the retry was interrupted.
        NON_RETRYABLE: The failure must not be retried.
    """

    ATTEMPTING = "attempting"
    SUCCESS = "success"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"
    NON_RETRYABLE = "non_retryable"


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of evaluating one failed attempt.

    Attributes:
        retry: Whether the request is attempted again.
        wait_millis: How long to wait before the next attempt. Always 0
            when ``retry`` is False.
        state: The state the request transitions to.
        reason: Short human readable explanation, used in logs and error
            messages.

    Example:
        ```pycon
        >>> from sdkretry.retry import RetryDecision
        >>> decision = RetryDecision.retrying(500, "status 503")
        >>> decision.retry, decision.wait_millis, decision.state.value
        (True, 500, 'retrying')
        >>> RetryDecision.exhausted("status 503").retry
        False

        ```
    """

    retry: bool
    wait_millis: int
    state: RetryState
    reason: str = ""

    @classmethod
    def retrying(cls, wait_millis: int, reason: str = "") -> RetryDecision:
        return cls(retry=True, wait_millis=wait_millis, state=RetryState.RETRYING, reason=reason)

    @classmethod
    def exhausted(cls, reason: str = "") -> RetryDecision:
        return cls(retry=False, wait_millis=0, state=RetryState.EXHAUSTED, reason=reason)

    @classmethod
    def non_retryable(cls, reason: str = "") -> RetryDecision:
        return cls(retry=False, wait_millis=0, state=RetryState.NON_RETRYABLE, reason=reason)
