"""
System failure error classifications.

These exceptions represent failures of the infrastructure underneath the
signal bus: the store backend and its configuration.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for infrastructure failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class PersistenceError(SystemFailureError):
    """Store operation failed (driver, network, auth or query error)."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class StoreConfigurationError(SystemFailureError):
    """Store settings are missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
