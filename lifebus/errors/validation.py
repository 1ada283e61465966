"""
Signal validation error classifications.

Raised when a caller hands the bus a value outside the known vocabulary.
These are programming errors in the calling agent, not runtime conditions.
"""

from typing import Optional, Dict, Any


class SignalValidationError(ValueError):
    """Base class for invalid signal input."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class InvalidSignalError(SignalValidationError):
    """Signal field holds a value the bus does not accept."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
