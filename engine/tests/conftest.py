"""
Pytest configuration and shared fixtures.
"""

import os
from collections.abc import Generator
from datetime import UTC, datetime

import pytest

from tests.strategies.synthetic_data import bars_from_closes

# Set test environment variables before importing app modules
os.environ.setdefault("TRADESIM_ENV", "test")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure no local TRADESIM_ overrides leak into tests."""
    for var in list(os.environ):
        if var.startswith("TRADESIM_") and var != "TRADESIM_ENV":
            monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("TRADESIM_ENV", "test")


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the cached Settings singleton between tests."""
    from tradesim_engine.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def start_time() -> datetime:
    return datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def rising_bars(start_time: datetime):
    """Ten daily bars closing 100, 101, ... 109."""
    return bars_from_closes([100.0 + i for i in range(10)], start=start_time)
