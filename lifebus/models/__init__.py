"""
Data models and contracts module.

Immutable data structures for signals and the vocabularies agents share.
"""
from .signal import ActiveSummary, AgentName, NewSignal, Signal, SignalStatus, SignalType

__all__ = ["ActiveSummary", "AgentName", "NewSignal", "Signal", "SignalStatus", "SignalType"]
