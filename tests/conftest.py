"""Pytest fixtures for lifehooks tests."""

import pytest

from lifehooks import Hooks
from lifehooks.config import config
from lifehooks.types import CleanupFailureMode


@pytest.fixture(autouse=True)
def default_cleanup_failure_mode(monkeypatch):
    """Run every test with the default cleanup failure policy."""
    monkeypatch.setattr(config, "CLEANUP_FAILURE_MODE", CleanupFailureMode.ABORT)
    yield


@pytest.fixture
def hooks() -> Hooks:
    """Create an empty hooks registry."""
    return Hooks()


@pytest.fixture
def stack() -> list:
    """Collect the order in which handlers and cleanups are called."""
    return []
