"""
Housekeeping for the signal table.

The bus never deletes rows; consumed, dismissed and expired signals stay
for inspection. This job is the separate, explicitly scheduled place where
old rows are removed.
"""

from typing import Any, Iterable, Optional

from .logging.config import get_logger
from .models.signal import SignalStatus
from .persistence.base import SignalStore
from .utils.time import Clock, hours_before, utc_now

logger = get_logger(__name__)


class SignalJanitor:
    """Purges signals whose expiry is older than the retention window."""

    def __init__(
        self,
        store: SignalStore,
        retention_days: int = 30,
        clock: Clock = utc_now
    ) -> None:
        if retention_days <= 0:
            raise ValueError("retention_days must be positive")

        self.store = store
        self.retention_days = retention_days
        self.clock = clock
        self.logger = logger

    def purge(self, statuses: Optional[Iterable[SignalStatus]] = None) -> int:
        """
        Delete signals that expired more than ``retention_days`` ago.

        Args:
            statuses: Restrict deletion to these statuses (default: all)

        Returns:
            Number of deleted rows, 0 on store failure
        """
        cutoff = hours_before(self.clock(), self.retention_days * 24)

        try:
            deleted = self.store.delete_before(cutoff, statuses=statuses)
        except Exception as e:
            self.logger.error("Signal purge failed", cutoff=cutoff.isoformat(), error=str(e))
            return 0

        self.logger.info(
            "Signal purge complete",
            cutoff=cutoff.isoformat(),
            deleted=deleted,
            retention_days=self.retention_days
        )
        return deleted

    def stats(self) -> dict[str, Any]:
        """Row counts for the signal table; empty dict on store failure."""
        try:
            by_status = self.store.count_by_status()
        except Exception as e:
            self.logger.error("Signal stats failed", error=str(e))
            return {}

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
        }
