"""
Signal bus module.

Typed publish/subscribe between agents on top of a signal store, plus the
per-agent handle registry.
"""
from ..models.signal import ActiveSummary, AgentName, Signal, SignalStatus, SignalType
from .bus import AgentSignalBus
from .registry import SignalBusRegistry

__all__ = [
    "ActiveSummary",
    "AgentName",
    "AgentSignalBus",
    "Signal",
    "SignalBusRegistry",
    "SignalStatus",
    "SignalType",
]
