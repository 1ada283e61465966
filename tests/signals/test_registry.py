"""Tests for the per-agent bus registry."""

import pytest

from lifebus.config import ConfigLoader
from lifebus.errors import InvalidSignalError
from lifebus.models.signal import AgentName, SignalType
from lifebus.persistence.sqlite_store import SQLiteSignalStore
from lifebus.signals import AgentSignalBus, SignalBusRegistry


def test_get_returns_cached_handle(registry):
    """Repeated lookups return the same bus."""
    first = registry.get("finance")
    second = registry.get(AgentName.FINANCE)

    assert first is second
    assert isinstance(first, AgentSignalBus)
    assert len(registry) == 1


def test_handles_are_bound_to_their_agent(registry, store):
    """Each handle emits under its own name over the shared store."""
    finance = registry.get("finance")
    health = registry.get("health")

    assert finance is not health
    assert finance.store is store
    assert health.store is store

    signal_id = health.emit(SignalType.LOW_SLEEP, "Slept 5h")
    assert store.get(signal_id).source_agent == "health"


def test_unknown_agent_rejected(registry):
    with pytest.raises(InvalidSignalError):
        registry.get("accounting")

    assert len(registry) == 0


def test_contains(registry):
    registry.get("learning")

    assert "learning" in registry
    assert AgentName.LEARNING in registry
    assert "trading" not in registry
    assert "accounting" not in registry


def test_from_config_builds_sqlite_store(tmp_path, clock):
    """Registry built from configuration uses the configured store."""
    db_path = tmp_path / "configured.db"
    loader = ConfigLoader.create(config_dir=tmp_path, environ={})
    config = loader.load({
        "store": {"backend": "sqlite", "sqlite_path": str(db_path)},
        "bus": {"consume_limit": 2},
    })

    registry = SignalBusRegistry.from_config(config, clock=clock)

    assert isinstance(registry.store, SQLiteSignalStore)
    assert registry.params.consume_limit == 2

    trading = registry.get("trading")
    for i in range(3):
        trading.emit(SignalType.SIGNAL_ACTIVE, f"setup {i}")

    assert len(registry.get("finance").consume()) == 2
    assert db_path.exists()
