"""
Inter-agent signal bus.

Agents publish typed signals and read the ones addressed to them (or
broadcast to everyone). Delivery is best-effort: store failures are logged
and turned into neutral results so that signalling never breaks the
calling agent's main job. There is no retry and no dead-letter queue; a
failed emit is lost and a failed consume simply returns nothing.

``consume(mark_consumed=True)`` reads and then marks in two round trips, so
concurrent consumers with overlapping filters may both see the same signal
(at-least-once).
"""

from collections import Counter
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from ..config.defaults import BusParams
from ..errors import InvalidSignalError
from ..logging.config import get_bus_logger, log_signal_transition
from ..models.signal import (
    ActiveSummary,
    AgentName,
    NewSignal,
    Signal,
    SignalStatus,
    SignalType,
)
from ..persistence.base import SignalQuery, SignalStore, SortOrder
from ..utils.time import Clock, expiry_for, hours_before, utc_now

AgentLike = Union[AgentName, str]
SignalTypeLike = Union[SignalType, str]


def agent_value(agent: AgentLike, field: str) -> str:
    """Normalize an agent name, raising InvalidSignalError for unknown agents."""
    try:
        return AgentName(agent).value
    except ValueError:
        raise InvalidSignalError(
            f"Unknown agent name: {agent!r}", field=field, value=agent
        ) from None


def type_value(signal_type: SignalTypeLike, field: str = "signal_type") -> str:
    """Normalize a signal type, raising InvalidSignalError for unknown types."""
    try:
        return SignalType(signal_type).value
    except ValueError:
        raise InvalidSignalError(
            f"Unknown signal type: {signal_type!r}", field=field, value=signal_type
        ) from None


def _type_values(types: Optional[Iterable[SignalTypeLike]]) -> tuple[str, ...]:
    if not types:
        return ()
    return tuple(type_value(t, field="types") for t in types)


def _shift(now: datetime, hours: float, field: str, forward: bool) -> datetime:
    # Windows past the datetime range are caller errors, not store failures
    try:
        return expiry_for(now, hours) if forward else hours_before(now, hours)
    except OverflowError:
        raise InvalidSignalError(
            f"{field} out of range: {hours!r}", field=field, value=hours
        ) from None


class AgentSignalBus:
    """Signal bus handle bound to one agent."""

    def __init__(
        self,
        agent_name: AgentLike,
        store: SignalStore,
        params: Optional[BusParams] = None,
        clock: Clock = utc_now
    ) -> None:
        self.agent_name = agent_value(agent_name, "agent_name")
        self.store = store
        self.params = params or BusParams()
        self.clock = clock
        self.logger = get_bus_logger(__name__, self.agent_name)

    def emit(
        self,
        signal_type: SignalTypeLike,
        message: str,
        payload: Optional[dict[str, Any]] = None,
        *,
        target: Optional[AgentLike] = None,
        priority: Optional[int] = None,
        ttl_hours: Optional[float] = None
    ) -> Optional[str]:
        """
        Publish a signal.

        Args:
            signal_type: Event tag from the SignalType vocabulary
            message: Human-readable summary
            payload: Event-specific structured data
            target: Recipient agent, or None to broadcast
            priority: Urgency, 1 most critical (default 3)
            ttl_hours: Hours until the signal is stale (default 24)

        Returns:
            The new signal id, or None if the store rejected the write

        Raises:
            InvalidSignalError: On unknown type or agent, non-integer priority,
                or a TTL that is not positive or out of range
        """
        signal_type_value = type_value(signal_type)
        target_value = agent_value(target, "target") if target is not None else None

        if priority is None:
            priority = self.params.default_priority
        if not isinstance(priority, int) or isinstance(priority, bool):
            raise InvalidSignalError(
                "priority must be an integer", field="priority", value=priority
            )
        if ttl_hours is None:
            ttl_hours = self.params.default_ttl_hours
        if ttl_hours <= 0:
            raise InvalidSignalError(
                "ttl_hours must be positive", field="ttl_hours", value=ttl_hours
            )

        new_signal = NewSignal(
            source_agent=self.agent_name,
            target_agent=target_value,
            signal_type=signal_type_value,
            priority=priority,
            payload=dict(payload or {}),
            message=message,
            expires_at=_shift(self.clock(), ttl_hours, "ttl_hours", forward=True),
        )

        try:
            stored = self.store.insert(new_signal)
        except Exception as e:
            self.logger.error(
                "Signal emit failed",
                signal_type=signal_type_value,
                target=target_value,
                error=str(e)
            )
            return None

        self.logger.info(
            "Signal emitted",
            signal_id=stored.id,
            signal_type=signal_type_value,
            target="broadcast" if stored.is_broadcast else stored.target_agent,
            priority=priority,
            signal_message=message
        )
        return stored.id

    def consume(
        self,
        *,
        types: Optional[Iterable[SignalTypeLike]] = None,
        min_priority: Optional[int] = None,
        limit: Optional[int] = None,
        mark_consumed: bool = False
    ) -> list[Signal]:
        """
        Read active signals targeted at this agent or broadcast.

        Results are ordered most urgent first, newest first within a priority.

        Args:
            types: Only these signal types
            min_priority: Only signals at least this urgent (priority <= value)
            limit: Maximum number of signals (default 20)
            mark_consumed: Mark returned signals consumed by this agent

        Returns:
            Signals as read, before any marking; empty on store failure
        """
        query = SignalQuery(
            status=SignalStatus.ACTIVE,
            audience=self.agent_name,
            signal_types=_type_values(types),
            max_priority=min_priority,
            order=SortOrder.PRIORITY,
            limit=limit if limit is not None else self.params.consume_limit,
        )

        try:
            signals = self.store.select(query)
        except Exception as e:
            self.logger.error("Signal consume failed", error=str(e))
            return []

        if mark_consumed and signals:
            self._mark_consumed([s.id for s in signals])

        self.logger.info(
            "Signals consumed",
            count=len(signals),
            marked=mark_consumed
        )
        return signals

    def _mark_consumed(self, signal_ids: list[str]) -> None:
        try:
            marked = self.store.update_status(
                signal_ids,
                SignalStatus.CONSUMED,
                consumed_by=self.agent_name,
                consumed_at=self.clock(),
            )
        except Exception as e:
            self.logger.error(
                "Marking signals consumed failed",
                signal_ids=signal_ids,
                error=str(e)
            )
            return

        if marked:
            log_signal_transition(
                self.logger,
                signal_ids=marked,
                from_status=SignalStatus.ACTIVE.value,
                to_status=SignalStatus.CONSUMED.value,
                actor=self.agent_name
            )

    def peek(
        self,
        *,
        types: Optional[Iterable[SignalTypeLike]] = None,
        source: Optional[AgentLike] = None,
        hours_back: Optional[float] = None,
        min_priority: Optional[int] = None,
        limit: Optional[int] = None
    ) -> list[Signal]:
        """
        Read recent active signals from any agent without consuming them.

        Args:
            types: Only these signal types
            source: Only signals emitted by this agent
            hours_back: Look-back window on creation time (default 24)
            min_priority: Only signals at least this urgent (priority <= value)
            limit: Maximum number of signals (default 10)
        """
        if hours_back is None:
            hours_back = self.params.peek_hours_back

        query = SignalQuery(
            status=SignalStatus.ACTIVE,
            signal_types=_type_values(types),
            source_agent=agent_value(source, "source") if source is not None else None,
            max_priority=min_priority,
            created_since=_shift(self.clock(), hours_back, "hours_back", forward=False),
            order=SortOrder.PRIORITY,
            limit=limit if limit is not None else self.params.peek_limit,
        )

        try:
            return self.store.select(query)
        except Exception as e:
            self.logger.error("Signal peek failed", error=str(e))
            return []

    def dismiss(self, signal_id: str) -> None:
        """Dismiss one active signal; silently ignores unknown or finished ones."""
        try:
            dismissed = self.store.update_status(
                [signal_id],
                SignalStatus.DISMISSED,
                consumed_by=self.agent_name,
            )
        except Exception as e:
            self.logger.error("Signal dismiss failed", signal_id=signal_id, error=str(e))
            return

        if dismissed:
            log_signal_transition(
                self.logger,
                signal_ids=dismissed,
                from_status=SignalStatus.ACTIVE.value,
                to_status=SignalStatus.DISMISSED.value,
                actor=self.agent_name
            )

    def has_recent(self, signal_type: SignalTypeLike, hours_back: float = 24) -> bool:
        """True if an active signal of this type was created in the window."""
        query = SignalQuery(
            status=SignalStatus.ACTIVE,
            signal_types=(type_value(signal_type),),
            created_since=_shift(self.clock(), hours_back, "hours_back", forward=False),
            order=SortOrder.RECENT,
            limit=1,
        )

        try:
            return len(self.store.select(query)) > 0
        except Exception as e:
            self.logger.error("Signal lookup failed", signal_type=str(signal_type), error=str(e))
            return False

    def get_latest(self, signal_type: SignalTypeLike) -> Optional[Signal]:
        """Most recent active signal of a type, or None."""
        query = SignalQuery(
            status=SignalStatus.ACTIVE,
            signal_types=(type_value(signal_type),),
            order=SortOrder.RECENT,
            limit=1,
        )

        try:
            signals = self.store.select(query)
        except Exception as e:
            self.logger.error("Signal lookup failed", signal_type=str(signal_type), error=str(e))
            return None

        return signals[0] if signals else None

    def get_active_summary(self) -> ActiveSummary:
        """Counts and critical signals over the last day, for briefings."""
        signals = self.peek(
            hours_back=self.params.peek_hours_back,
            limit=self.params.summary_limit
        )

        return ActiveSummary(
            total=len(signals),
            critical=[s for s in signals if s.priority <= self.params.critical_priority],
            by_source=dict(Counter(s.source_agent for s in signals)),
            by_type=dict(Counter(s.signal_type for s in signals)),
        )
