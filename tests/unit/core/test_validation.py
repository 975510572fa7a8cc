r"""Unit tests for parameter validation."""

from __future__ import annotations

import httpx
import pytest

from sdkretry.core.validation import validate_retry_params, validate_timeout

######################################
#     Tests for validate_timeout     #
######################################


@pytest.mark.parametrize("timeout", [0.1, 10.0, 30])
def test_validate_timeout_valid(timeout: float) -> None:
    """Test valid timeout values pass."""
    validate_timeout(timeout)


def test_validate_timeout_httpx_timeout() -> None:
    """Test httpx.Timeout objects are not checked."""
    validate_timeout(httpx.Timeout(5.0))


@pytest.mark.parametrize("timeout", [0, -1.0])
def test_validate_timeout_invalid(timeout: float) -> None:
    """Test non-positive timeout values raise ValueError."""
    with pytest.raises(ValueError, match=r"timeout must be > 0"):
        validate_timeout(timeout)


###########################################
#     Tests for validate_retry_params     #
###########################################


def test_validate_retry_params_defaults() -> None:
    """Test the default parameters are valid."""
    validate_retry_params(max_retries=0)


def test_validate_retry_params_full() -> None:
    """Test a complete valid set of parameters."""
    validate_retry_params(
        max_retries=4,
        initial_interval_millis=500,
        max_interval_millis=60000,
        backoff_multiplier=1.5,
        max_retry_after_millis=0,
        retry_status_codes=(500, 503),
    )


def test_validate_retry_params_negative_max_retries() -> None:
    """Test a negative max_retries raises ValueError."""
    with pytest.raises(ValueError, match=r"max_retries must be >= 0, got -1"):
        validate_retry_params(max_retries=-1)


def test_validate_retry_params_initial_interval() -> None:
    """Test a non-positive initial interval raises ValueError."""
    with pytest.raises(ValueError, match=r"initial_interval_millis must be > 0"):
        validate_retry_params(max_retries=1, initial_interval_millis=0)


def test_validate_retry_params_max_interval_too_small() -> None:
    """Test a cap below 500ms raises ValueError."""
    with pytest.raises(ValueError, match=r"max_interval_millis must be >= 500, got 499"):
        validate_retry_params(max_retries=1, max_interval_millis=499)


def test_validate_retry_params_max_interval_below_initial() -> None:
    """Test a cap below the initial interval raises ValueError."""
    with pytest.raises(ValueError, match=r"max_interval_millis must be >= initial_interval_millis"):
        validate_retry_params(max_retries=1, initial_interval_millis=2000, max_interval_millis=1000)


def test_validate_retry_params_multiplier() -> None:
    """Test a multiplier below 1.0 raises ValueError."""
    with pytest.raises(ValueError, match=r"backoff_multiplier must be >= 1.0"):
        validate_retry_params(max_retries=1, backoff_multiplier=0.9)


def test_validate_retry_params_max_retry_after() -> None:
    """Test a negative Retry-After cap raises ValueError."""
    with pytest.raises(ValueError, match=r"max_retry_after_millis must be >= 0"):
        validate_retry_params(max_retries=1, max_retry_after_millis=-1)


@pytest.mark.parametrize("code", [99, 600, "503", True, 503.0])
def test_validate_retry_params_invalid_status_code(code: object) -> None:
    """Test values that are not HTTP status codes raise ValueError."""
    with pytest.raises(ValueError, match=r"retry_status_codes must contain HTTP status codes"):
        validate_retry_params(max_retries=1, retry_status_codes=[code])
