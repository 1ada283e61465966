"""Base classes for signal store backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

import orjson

from ..errors import InvalidSignalError, PersistenceError
from ..models.signal import NewSignal, Signal, SignalStatus
from ..utils.time import parse_timestamp


class SortOrder(str, Enum):
    """Result orderings supported by every store."""
    PRIORITY = "priority"   # priority ASC, created_at DESC
    RECENT = "recent"       # created_at DESC


@dataclass(frozen=True)
class SignalQuery:
    """
    Filter, sort and limit for a signal select.

    ``audience`` matches signals targeted at that agent plus broadcasts
    (``target_agent IS NULL``). ``max_priority`` keeps signals at least as
    urgent as the given value (``priority <= max_priority``).
    """
    status: Optional[SignalStatus] = SignalStatus.ACTIVE
    audience: Optional[str] = None
    signal_types: tuple[str, ...] = ()
    max_priority: Optional[int] = None
    source_agent: Optional[str] = None
    created_since: Optional[datetime] = None
    order: SortOrder = SortOrder.PRIORITY
    limit: Optional[int] = None


class SignalStore(ABC):
    """
    Persistent table of signal records.

    Implementations raise ``PersistenceError`` for every failure; callers
    decide whether to propagate or degrade.
    """

    table: str

    @abstractmethod
    def insert(self, new_signal: NewSignal) -> Signal:
        """Insert an ``active`` signal and return the stored record."""
        pass

    @abstractmethod
    def select(self, query: SignalQuery) -> list[Signal]:
        """Return signals matching ``query`` in the requested order."""
        pass

    @abstractmethod
    def update_status(
        self,
        signal_ids: Iterable[str],
        status: SignalStatus,
        consumed_by: Optional[str] = None,
        consumed_at: Optional[datetime] = None
    ) -> list[str]:
        """
        Move still-active signals to a terminal status.

        Rows that are missing or already terminal are left untouched.

        Returns:
            Ids of the signals actually transitioned

        Raises:
            InvalidSignalError: If ``status`` is not terminal
        """
        pass

    @abstractmethod
    def get(self, signal_id: str) -> Optional[Signal]:
        """Fetch one signal by id regardless of status."""
        pass

    @abstractmethod
    def delete_before(
        self,
        cutoff: datetime,
        statuses: Optional[Iterable[SignalStatus]] = None
    ) -> int:
        """
        Physically delete signals that expired before ``cutoff``.

        Only housekeeping calls this; the bus never deletes.
        """
        pass

    @abstractmethod
    def count_by_status(self) -> dict[str, int]:
        """Row counts grouped by status."""
        pass


def check_terminal(status: SignalStatus) -> SignalStatus:
    """Reject status updates that would not end the signal's lifecycle."""
    try:
        status = SignalStatus(status)
    except ValueError:
        raise InvalidSignalError(
            f"Unknown signal status: {status!r}", field="status", value=status
        ) from None

    if not status.is_terminal:
        raise InvalidSignalError(
            f"Cannot transition a signal to {status.value!r}", field="status", value=status.value
        )
    return status


def decode_payload(raw: Any) -> dict[str, Any]:
    """Decode a payload column that may be JSON text or an already-parsed map."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, (str, bytes)):
        raw = orjson.loads(raw)
    if not isinstance(raw, dict):
        raise PersistenceError(
            f"Payload must be a JSON object, got {type(raw).__name__}",
            operation="decode"
        )
    return raw


def row_to_signal(row: Mapping[str, Any]) -> Signal:
    """Convert a store row into a Signal."""
    try:
        return Signal(
            id=str(row["id"]),
            source_agent=row["source_agent"],
            target_agent=row["target_agent"],
            signal_type=row["signal_type"],
            priority=int(row["priority"]),
            payload=decode_payload(row["payload"]),
            message=row["message"],
            status=row["status"],
            created_at=parse_timestamp(row["created_at"]),
            expires_at=parse_timestamp(row["expires_at"]),
            consumed_by=row["consumed_by"],
            consumed_at=parse_timestamp(row["consumed_at"]),
        )
    except PersistenceError:
        raise
    except (KeyError, TypeError, ValueError, orjson.JSONDecodeError) as e:
        raise PersistenceError(
            f"Malformed signal row: {e}",
            operation="decode",
            context={"row_id": row.get("id") if hasattr(row, "get") else None}
        ) from e
