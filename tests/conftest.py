"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from review_engine.config import SRSSettings  # noqa: E402
from review_engine.core.records import SchedulingRecord  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed reference time so due-ness is deterministic."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def settings():
    """Default settings built without reading the environment."""
    return SRSSettings.model_construct()


@pytest.fixture
def make_record(now):
    """
    Build a SchedulingRecord due ``overdue_days`` before ``now``.

    Negative values put the due date in the future.
    """

    def _make(
        overdue_days: float = 0.0,
        interval_days: float = 1,
        repetitions: int = 1,
        ease_factor: float = 2.5,
        quality_history: tuple[int, ...] = (4,),
    ) -> SchedulingRecord:
        due_at = now - timedelta(days=overdue_days)
        return SchedulingRecord(
            interval_days=interval_days,
            ease_factor=ease_factor,
            repetitions=repetitions,
            quality_history=quality_history,
            last_reviewed_at=due_at - timedelta(days=interval_days),
        )

    return _make
