"""Default configuration parameters for the signal bus."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BusParams:
    """Signal bus defaults applied when a caller omits an option."""
    default_priority: int = 3          # Lower is more urgent
    default_ttl_hours: float = 24.0    # expires_at = now + ttl
    consume_limit: int = 20            # Max signals per consume()
    peek_limit: int = 10               # Max signals per peek()
    peek_hours_back: float = 24.0      # peek() look-back window
    summary_limit: int = 50            # Signals scanned by get_active_summary()
    critical_priority: int = 2         # priority <= this counts as critical


@dataclass(frozen=True)
class StoreParams:
    """Signal store backend parameters."""
    backend: str = "sqlite"                   # sqlite | rest
    table: str = "agent_signals"
    sqlite_path: str = "agent_signals.db"
    rest_url: Optional[str] = None            # e.g. https://<project>.supabase.co
    rest_key: Optional[str] = None            # service role key
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False
    include_timestamp: bool = True


@dataclass(frozen=True)
class HousekeepingParams:
    """Retention for the purge job."""
    retention_days: int = 30


@dataclass(frozen=True)
class LifebusConfig:
    """Complete configuration."""
    bus: BusParams
    store: StoreParams
    logging: LoggingParams
    housekeeping: HousekeepingParams


def get_default_config() -> LifebusConfig:
    """Get the default configuration instance."""
    return LifebusConfig(
        bus=BusParams(),
        store=StoreParams(),
        logging=LoggingParams(),
        housekeeping=HousekeepingParams(),
    )
