r"""Retry package composing the per-request retry machinery.

Public API:
    - RetryBudget: Cumulative retry counter of one logical request
    - RetryDecision: Outcome of a retry decision
    - RetryState: States of the retry lifecycle
    - RetryDecisionEngine: Retry policy for I/O failures and HTTP responses
    - CredentialRefreshGate: Immediate retry after a credential refresh
    - RetryCoordinator: Composition of the above for one logical request
    - CallbackManager: Manager for callback invocations
"""

from __future__ import annotations

__all__ = [
    "CallbackManager",
    "CredentialRefreshGate",
    "CredentialSource",
    "CredentialState",
    "RetryBudget",
    "RetryCoordinator",
    "RetryDecision",
    "RetryDecisionEngine",
    "RetryState",
    "StaticCredentialSource",
]

from sdkretry.retry.budget import RetryBudget
from sdkretry.retry.coordinator import RetryCoordinator
from sdkretry.retry.credentials import (
    CredentialRefreshGate,
    CredentialSource,
    CredentialState,
    StaticCredentialSource,
)
from sdkretry.retry.decision import RetryDecision, RetryState
from sdkretry.retry.engine import RetryDecisionEngine
from sdkretry.retry.manager import CallbackManager
