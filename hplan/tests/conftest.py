"""
Shared fixtures for the hplan test suite.
"""

import pytest

from hplan.config import get_settings


@pytest.fixture
def assumptions():
    return {
        "timing": {"start_year": 2026, "start_month": 1},
        "horizon_years": 5,
        "inflation": {"general": 0.0},
        "market": {"initial": 0.05},
    }


@pytest.fixture
def simulation_ceiling(monkeypatch):
    """Set HPLAN_MAX_SIMULATION_MONTHS for one test."""

    def _set(months):
        monkeypatch.setenv("HPLAN_MAX_SIMULATION_MONTHS", str(months))
        get_settings.cache_clear()

    yield _set
    get_settings.cache_clear()
