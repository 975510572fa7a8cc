r"""sdkretry - Retry and backoff layer for SDK HTTP clients.

This package decides whether a failed call to a remote service should be
retried, how long to wait before the next attempt, and how credential
refresh interacts with the retry policy. Built on top of the httpx
library, it sits beneath the SDK's request client and above the HTTP
transport.

Key Features:
    - Retries on configurable HTTP status codes and on I/O failures
    - Deterministic exponential backoff with a configurable cap
    - Retry-After header support (both integer seconds and HTTP-date formats)
    - Immediate, sleep-free retries after a credential refresh
    - One cumulative retry budget per logical request, whatever the cause
    - Interruptible waits and injectable clock and sleeper for testing
    - Error classification of terminal failures
    - Callback system for observability (logging, metrics, alerting)

Example:
    ```pycon
    >>> from sdkretry import RequestClient, RetryConfig
    >>> config = (
    ...     RetryConfig.builder()
    ...     .set_max_retries(4)
    ...     .set_retry_status_codes([500, 503])
    ...     .set_retry_on_io_exceptions(True)
    ...     .build()
    ... )
    >>> with RequestClient(config=config) as client:  # doctest: +SKIP
    ...     response = client.get("https://api.example.com/data")
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_RETRY_CONFIG",
    "ClientError",
    "CredentialRefreshGate",
    "CredentialSource",
    "ErrorKind",
    "HttpErrorClassifier",
    "HttpxTransport",
    "NonRetryable",
    "ParseFailure",
    "PlatformErrorClassifier",
    "RequestClient",
    "RetryConfig",
    "RetryCoordinator",
    "RetryDecision",
    "RetryDecisionEngine",
    "RetryExhausted",
    "RetryState",
    "StaticCredentialSource",
    "TransportFailure",
    "UnsuccessfulResponse",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from sdkretry.classifier import HttpErrorClassifier, PlatformErrorClassifier
from sdkretry.client import RequestClient
from sdkretry.core.config import DEFAULT_RETRY_CONFIG, RetryConfig
from sdkretry.exceptions import (
    ClientError,
    ErrorKind,
    NonRetryable,
    ParseFailure,
    RetryExhausted,
    TransportFailure,
    UnsuccessfulResponse,
)
from sdkretry.retry import (
    CredentialRefreshGate,
    CredentialSource,
    RetryCoordinator,
    RetryDecision,
    RetryDecisionEngine,
    RetryState,
    StaticCredentialSource,
)
from sdkretry.transport import HttpxTransport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
