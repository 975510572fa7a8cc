r"""Structured logging utilities for machine-readable log output.

Every logical request executed by ``RequestClient`` runs inside a
correlation scope, so all the per-attempt log records emitted for one
request share the same correlation ID. The JSON formatter below surfaces
that ID together with any structured fields passed through ``extra``.

The structured output is opt-in and is enabled by configuring Python's
logging system to use the provided formatter.

Example:
    Enable structured logging for sdkretry:

    ```python
    import logging
    from sdkretry.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("sdkretry")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    ```

    Group several logical requests under a caller-supplied ID:

    ```python
    from sdkretry.utils.structured_logging import correlation_scope

    with correlation_scope("batch-42"):
        client.get("https://api.example.com/a")
        client.get("https://api.example.com/b")
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "correlation_scope",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "sdkretry_correlation_id", default=None
)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current context.

    Returns:
        The current correlation ID, or None if not set.

    Example:
        ```pycon
        >>> from sdkretry.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'
        >>> clear_correlation_id()

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID to set (e.g., request ID, trace ID).
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Generator[str, None, None]:
    """Run a block under a correlation ID.

    If no ID is given and one is already active, the active ID is reused
    so that nested scopes (for example a logical request issued from
    inside a caller's own scope) keep the outer ID. Otherwise a new random
    ID is generated. The previous value is restored on exit.

    Args:
        correlation_id: Optional explicit correlation ID.

    Yields:
        The correlation ID in effect inside the block.

    Example:
        ```pycon
        >>> from sdkretry.utils.structured_logging import (
        ...     correlation_scope,
        ...     get_correlation_id,
        ... )
        >>> with correlation_scope("outer") as cid:
        ...     with correlation_scope() as inner:
        ...         print(cid, inner)
        ...
        outer outer
        >>> get_correlation_id() is None
        True

        ```
    """
    if correlation_id is None:
        correlation_id = _correlation_id.get() or uuid.uuid4().hex
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard fields in the JSON output:
        - timestamp: ISO 8601 timestamp (UTC, millisecond precision)
        - level: Log level name
        - logger: Logger name
        - message: Log message
        - correlation_id: Correlation ID of the logical request, if any
        - module, function, line: Origin of the record
        - thread, process: Execution context

    Any additional fields added via the ``extra`` parameter in logging
    calls are included as top-level keys. Values that are not JSON
    serializable are rendered with ``repr``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from sdkretry.utils.structured_logging import StructuredFormatter
        >>> record = logging.LogRecord("demo", logging.INFO, "", 1, "hello", (), None)
        >>> record.status_code = 503
        >>> data = json.loads(StructuredFormatter().format(record))
        >>> data["message"], data["status_code"]
        ('hello', 503)

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=repr)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002
        """Format the record timestamp as ISO 8601 (``datefmt`` is
        ignored)."""
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log a message with structured data.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.INFO).
        message: Log message.
        **extra: Additional structured fields to include in the log.
    """
    logger.log(level, message, extra=extra)
