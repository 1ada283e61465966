"""
Error classification for the signal bus.

Store failures are caught inside the bus and turned into neutral results;
validation errors propagate to the calling agent.
"""

from .system_failures import (
    SystemFailureError,
    PersistenceError,
    StoreConfigurationError,
)
from .validation import (
    SignalValidationError,
    InvalidSignalError,
)

__all__ = [
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "StoreConfigurationError",
    # Validation
    "SignalValidationError",
    "InvalidSignalError",
]
