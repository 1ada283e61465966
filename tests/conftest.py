"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime, timedelta, timezone

from lifebus.persistence.sqlite_store import SQLiteSignalStore
from lifebus.signals.registry import SignalBusRegistry


class FakeClock:
    """Controllable clock; every component under test shares one instance."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed UTC instant."""
    return FakeClock(datetime(2026, 3, 2, 8, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(tmp_path, clock) -> SQLiteSignalStore:
    """Fresh SQLite signal store in a temporary directory."""
    return SQLiteSignalStore(str(tmp_path / "signals.db"), clock=clock)


@pytest.fixture
def registry(store, clock) -> SignalBusRegistry:
    """Registry of agent buses sharing the temporary store and clock."""
    return SignalBusRegistry(store, clock=clock)
