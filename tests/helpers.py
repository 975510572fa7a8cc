r"""Shared test doubles for the retry layer.

This module contains deterministic replacements for the clock, the
sleeper, the credential source and the transport, so that retry
behaviour can be observed without waiting or touching the network.
"""

from __future__ import annotations

__all__ = [
    "TEST_URL",
    "FixedClock",
    "RecordingSleeper",
    "RotatingCredentialSource",
    "ScriptedTransport",
    "make_client",
]

from typing import TYPE_CHECKING, Any

import httpx

from sdkretry.client import RequestClient
from sdkretry.transport import ALL_METHODS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sdkretry.core.config import RetryConfig

TEST_URL = "https://api.example.com/v1/items"


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, now_millis: int = 0) -> None:
        self.now_millis = now_millis

    def time_millis(self) -> int:
        return self.now_millis


class RecordingSleeper:
    """Sleeper recording requested waits without blocking.

    Args:
        interrupt_on: Optional 1-indexed sleep call that raises
            ``InterruptedError`` instead of returning.
    """

    def __init__(self, interrupt_on: int | None = None) -> None:
        self.sleeps: list[int] = []
        self.interrupt_on = interrupt_on

    def sleep(self, millis: int) -> None:
        self.sleeps.append(millis)
        if self.interrupt_on is not None and len(self.sleeps) >= self.interrupt_on:
            msg = "sleep interrupted"
            raise InterruptedError(msg)


class RotatingCredentialSource:
    """Credential source handing out a new material on each refresh,
    until the list of materials runs out."""

    def __init__(self, initial: str | None, *refreshed: str) -> None:
        self.material = initial
        self._refreshed = list(refreshed)
        self.refresh_count = 0

    def current_material(self) -> str | None:
        return self.material

    def refresh(self) -> None:
        self.refresh_count += 1
        if self._refreshed:
            self.material = self._refreshed.pop(0)


class ScriptedTransport:
    """Transport replaying a script of responses and exceptions.

    The last entry of the script is repeated once the script runs out.
    Every request sent is recorded together with a snapshot of its
    headers.
    """

    def __init__(
        self,
        *outcomes: httpx.Response | Exception,
        supported_methods: Iterable[str] = ALL_METHODS,
    ) -> None:
        self._outcomes = list(outcomes)
        self.supported_methods = frozenset(supported_methods)
        self.requests: list[httpx.Request] = []
        self.sent_headers: list[httpx.Headers] = []
        self.closed = False

    @property
    def attempts(self) -> int:
        return len(self.requests)

    def send(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.sent_headers.append(httpx.Headers(request.headers))
        index = min(len(self.requests), len(self._outcomes)) - 1
        outcome = self._outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


def make_client(transport: ScriptedTransport, config: RetryConfig, **kwargs: Any) -> RequestClient:
    """Create a ``RequestClient`` over a scripted transport."""
    return RequestClient(transport, config=config, **kwargs)
