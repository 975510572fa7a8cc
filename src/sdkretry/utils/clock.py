r"""Time source and blocking-wait primitives.

This module provides the injectable clock and sleeper used by the retry
engine. Tests substitute deterministic implementations so that backoff
delays can be observed without actually waiting.

Cancellation is scoped to a logical request: ``RequestClient`` runs each
request inside a ``cancellation_scope`` and ``SystemSleeper`` waits on
the event of the active scope. Setting that event interrupts the backoff
of that request only, while other requests sharing the same
``RetryConfig`` keep running.
"""

from __future__ import annotations

__all__ = [
    "Clock",
    "Sleeper",
    "SystemClock",
    "SystemSleeper",
    "cancellation_scope",
    "get_cancel_event",
]

import contextvars
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Generator

_cancel_event: contextvars.ContextVar[threading.Event | None] = contextvars.ContextVar(
    "sdkretry_cancel_event", default=None
)


def get_cancel_event() -> threading.Event | None:
    """Get the cancel event of the current context.

    Returns:
        The event of the active cancellation scope, or ``None`` outside
            any scope.
    """
    return _cancel_event.get()


@contextmanager
def cancellation_scope(
    event: threading.Event | None = None,
) -> Generator[threading.Event, None, None]:
    """Run a block under a cancel event.

    If no event is given and a scope is already active, its event is
    reused so that a request issued inside a caller's scope can be
    cancelled through it. Otherwise a fresh event is created, so a
    cancelled request never leaks its state into later requests. The
    previous event is restored on exit.

    Args:
        event: Optional event that cancels the block when set.

    Yields:
        The cancel event in effect inside the block.

    Example:
        ```pycon
        >>> import threading
        >>> from sdkretry.utils.clock import cancellation_scope, get_cancel_event
        >>> outer_event = threading.Event()
        >>> with cancellation_scope(outer_event):
        ...     with cancellation_scope() as inner_event:
        ...         print(inner_event is outer_event)
        ...
        True
        >>> get_cancel_event() is None
        True

        ```
    """
    if event is None:
        event = _cancel_event.get()
    if event is None:
        event = threading.Event()
    token = _cancel_event.set(event)
    try:
        yield event
    finally:
        _cancel_event.reset(token)


@runtime_checkable
class Clock(Protocol):
    """Source of the current wall-clock time."""

    def time_millis(self) -> int:
        """Return the current time in milliseconds since the epoch."""


@runtime_checkable
class Sleeper(Protocol):
    """Blocking-wait primitive.

    Implementations block the calling thread for the requested duration.
    A sleep that is cut short must raise ``InterruptedError``.
    """

    def sleep(self, millis: int) -> None:
        """Block for ``millis`` milliseconds."""


class SystemClock:
    """Clock backed by ``time.time``.

    Example:
        ```pycon
        >>> from sdkretry.utils.clock import SystemClock
        >>> SystemClock().time_millis() > 0
        True

        ```
    """

    def time_millis(self) -> int:
        return int(time.time() * 1000)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}()"


class SystemSleeper:
    r"""Sleeper that blocks the calling thread.

    The wait is cancellable per logical request: it blocks on the event
    of the enclosing ``cancellation_scope``, so setting that event from
    another thread interrupts the sleep of that request only. Outside a
    cancellation scope the sleep cannot be interrupted.

    Example:
        ```pycon
        >>> import threading
        >>> from sdkretry.utils.clock import SystemSleeper, cancellation_scope
        >>> sleeper = SystemSleeper()
        >>> sleeper.sleep(0)
        >>> with cancellation_scope() as event:
        ...     event.set()
        ...     sleeper.sleep(10)
        ...
        Traceback (most recent call last):
            ...
        InterruptedError: sleep interrupted

        ```
    """

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}()"

    def sleep(self, millis: int) -> None:
        """Block for ``millis`` milliseconds.

        Args:
            millis: The duration to wait. Non-positive values return
                immediately unless the current request is cancelled.

        Raises:
            InterruptedError: If the cancel event of the current
                cancellation scope is set before or during the wait.
        """
        event = _cancel_event.get()
        if event is None:
            if millis > 0:
                time.sleep(millis / 1000.0)
            return
        if event.wait(max(millis, 0) / 1000.0):
            msg = "sleep interrupted"
            raise InterruptedError(msg)
