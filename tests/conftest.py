"""Shared fixtures for the journal-analytics test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from journal_analytics.core.clock import FixedClock
from journal_analytics.core.config import AnalyticsSettings
from journal_analytics.core.models import HabitCatalog


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock pinned to 2024-03-15 12:00 UTC."""
    return FixedClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Settings and reference data
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> AnalyticsSettings:
    return AnalyticsSettings()


@pytest.fixture
def habit_catalog() -> HabitCatalog:
    return HabitCatalog.default()
