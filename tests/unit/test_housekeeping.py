"""Tests for signal table housekeeping."""

import pytest
from datetime import timedelta
from unittest.mock import Mock

from lifebus.errors import PersistenceError
from lifebus.housekeeping import SignalJanitor
from lifebus.models.signal import SignalStatus, SignalType
from lifebus.persistence.base import SignalStore


class TestSignalJanitor:
    """Test purge and stats."""

    def test_retention_must_be_positive(self, store):
        with pytest.raises(ValueError):
            SignalJanitor(store, retention_days=0)

    def test_purge_removes_only_old_expired_signals(self, registry, store, clock):
        """Signals expired within the retention window survive."""
        finance = registry.get("finance")
        old = finance.emit(SignalType.BUDGET_ALERT, "Old alert", ttl_hours=1)
        clock.advance(days=20)
        recent = finance.emit(SignalType.BUDGET_ALERT, "Recent alert", ttl_hours=1)
        clock.advance(days=15)

        janitor = SignalJanitor(store, retention_days=30, clock=clock)
        deleted = janitor.purge()

        assert deleted == 1
        assert store.get(old) is None
        assert store.get(recent) is not None

    def test_purge_terminal_only(self, registry, store, clock):
        """Restricting statuses keeps old active rows."""
        health = registry.get("health")
        active = health.emit(SignalType.LOW_SLEEP, "never read", ttl_hours=1)
        dismissed = health.emit(SignalType.LOW_SLEEP, "dismissed", ttl_hours=1)
        health.dismiss(dismissed)
        clock.advance(days=31)

        janitor = SignalJanitor(store, retention_days=30, clock=clock)
        deleted = janitor.purge(statuses=[SignalStatus.CONSUMED, SignalStatus.DISMISSED])

        assert deleted == 1
        assert store.get(active) is not None
        assert store.get(dismissed) is None

    def test_stats(self, registry, store, clock):
        learning = registry.get("learning")
        learning.emit(SignalType.STUDY_STREAK, "3 days")
        learning.emit(SignalType.STUDY_STREAK, "4 days")
        registry.get("evening-review").consume(mark_consumed=True, limit=1)

        stats = SignalJanitor(store, clock=clock).stats()

        assert stats == {"total": 2, "by_status": {"active": 1, "consumed": 1}}

    def test_store_failures_are_contained(self):
        """Housekeeping logs store errors and reports neutral results."""
        failing = Mock(spec=SignalStore)
        failing.delete_before.side_effect = PersistenceError("locked", operation="delete_before")
        failing.count_by_status.side_effect = PersistenceError("locked", operation="count_by_status")

        janitor = SignalJanitor(failing)

        assert janitor.purge() == 0
        assert janitor.stats() == {}

    def test_purge_cutoff(self, clock):
        """Cutoff is retention_days before now."""
        recording = Mock(spec=SignalStore)
        recording.delete_before.return_value = 0

        SignalJanitor(recording, retention_days=7, clock=clock).purge()

        cutoff = recording.delete_before.call_args.args[0]
        assert cutoff == clock.now - timedelta(days=7)
