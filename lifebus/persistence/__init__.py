"""
Signal store backends.
"""
from ..config.defaults import StoreParams
from ..errors import StoreConfigurationError
from ..utils.time import Clock, utc_now
from .base import SignalQuery, SignalStore, SortOrder
from .rest_store import RestSignalStore
from .sqlite_store import SQLiteSignalStore


def create_store(params: StoreParams, clock: Clock = utc_now) -> SignalStore:
    """Build the store backend selected by configuration."""
    if params.backend == "sqlite":
        return SQLiteSignalStore(params.sqlite_path, table=params.table, clock=clock)

    if params.backend == "rest":
        return RestSignalStore(
            base_url=params.rest_url or "",
            api_key=params.rest_key or "",
            table=params.table,
            timeout_seconds=params.timeout_seconds,
        )

    raise StoreConfigurationError(f"Unknown store backend: {params.backend}", field="backend")


__all__ = [
    "RestSignalStore",
    "SQLiteSignalStore",
    "SignalQuery",
    "SignalStore",
    "SortOrder",
    "create_store",
]
