"""
Configuration management for the signal bus.
"""
from .defaults import (
    BusParams,
    HousekeepingParams,
    LifebusConfig,
    LoggingParams,
    StoreParams,
    get_default_config,
)
from .loader import ConfigLoader
from .validation import ConfigValidator, ValidationError

__all__ = [
    "BusParams",
    "ConfigLoader",
    "ConfigValidator",
    "HousekeepingParams",
    "LifebusConfig",
    "LoggingParams",
    "StoreParams",
    "ValidationError",
    "get_default_config",
]
