r"""Retry-After header parsing utilities.

This module provides functions for parsing the Retry-After header value
from HTTP responses according to RFC 7231.
"""

from __future__ import annotations

__all__ = ["parse_retry_after"]

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

logger: logging.Logger = logging.getLogger(__name__)


def parse_retry_after(retry_after_header: str | None, now_millis: int) -> int | None:
    """Parse the Retry-After header value from an HTTP response.

    The Retry-After header can be specified in two formats according to RFC 7231:
    1. A non-negative integer representing the number of seconds to wait (e.g., "120")
    2. An HTTP-date in RFC 1123 format (e.g., "Wed, 21 Oct 2015 07:28:00 GMT")

    This function attempts to parse both formats and returns the number of
    milliseconds to wait. If parsing fails or the header is absent, it returns
    None to allow the caller to use the exponential backoff policy instead.

    Args:
        retry_after_header: The value of the Retry-After header as a string,
            or None if the header is not present in the response.
        now_millis: The current time in milliseconds since the epoch. HTTP-date
            values are measured relative to this instant.

    Returns:
        The number of milliseconds to wait before retrying, or None if:
        - The header is not present (retry_after_header is None or blank)
        - The header value cannot be parsed as either a non-negative integer
          or an HTTP-date
        For HTTP-date format, dates in the past are clamped to 0.

    Example:
        ```pycon
        >>> from sdkretry.utils import parse_retry_after
        >>> # Parse integer seconds
        >>> parse_retry_after("120", now_millis=0)
        120000
        >>> parse_retry_after("0", now_millis=0)
        0
        >>> # HTTP-date 30 seconds after the given instant
        >>> parse_retry_after("Thu, 01 Jan 1970 00:00:31 GMT", now_millis=1000)
        30000
        >>> # No header present
        >>> parse_retry_after(None, now_millis=0) is None
        True
        >>> # Invalid format returns None
        >>> parse_retry_after("invalid", now_millis=0) is None
        True

        ```
    """
    if retry_after_header is None:
        return None
    value = retry_after_header.strip()
    if not value:
        return None

    # Integer seconds. str.isdigit rejects signs, decimals and exponents.
    if value.isascii() and value.isdigit():
        return int(value) * 1000

    # HTTP-date (RFC 1123, with the RFC 850 and asctime forms tolerated)
    try:
        retry_date: datetime = parsedate_to_datetime(value)
    except (ValueError, TypeError, IndexError, OverflowError):
        logger.debug(f"Failed to parse Retry-After header: {retry_after_header!r}")
        return None
    if retry_date.tzinfo is None:
        retry_date = retry_date.replace(tzinfo=timezone.utc)
    delta_millis = int(retry_date.timestamp() * 1000) - now_millis
    return max(0, delta_millis)
