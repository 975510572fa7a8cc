from __future__ import annotations

from unittest.mock import Mock

import pytest

from tests.helpers import RecordingSleeper


@pytest.fixture
def sleeper() -> RecordingSleeper:
    """Create a sleeper recording waits instead of blocking."""
    return RecordingSleeper()


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock callback function for testing callbacks.

    Returns:
        A Mock object that can be used as a callback function.
    """
    return Mock()
