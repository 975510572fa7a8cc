r"""Backoff policy for retry delays.

This package provides the deterministic exponential backoff policy used
between retries, and the per-request state that walks it.
"""

from __future__ import annotations

__all__ = ["BackoffState", "BaseBackoffStrategy", "ExponentialBackoff"]

from sdkretry.backoff.base import BaseBackoffStrategy
from sdkretry.backoff.exponential import ExponentialBackoff
from sdkretry.backoff.state import BackoffState
