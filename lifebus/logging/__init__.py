"""
Logging configuration and utilities for the signal bus.
"""
from .config import (
    configure_from_params,
    configure_logging,
    get_bus_logger,
    get_logger,
    log_signal_transition,
)

__all__ = [
    "configure_from_params",
    "configure_logging",
    "get_bus_logger",
    "get_logger",
    "log_signal_transition",
]
