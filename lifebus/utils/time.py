"""
Time handling for signal timestamps.

Signals carry creation and expiry timestamps that are compared both in
Python and inside the store, so every timestamp goes through the helpers
here to stay UTC and fixed-width.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def hours_before(now: datetime, hours: float) -> datetime:
    """Start of a look-back window of ``hours`` ending at ``now``."""
    return ensure_utc(now) - timedelta(hours=hours)


def expiry_for(now: datetime, ttl_hours: float) -> datetime:
    """Expiry timestamp for a signal created at ``now`` with the given TTL."""
    return ensure_utc(now) + timedelta(hours=ttl_hours)


def format_timestamp(ts: datetime) -> str:
    """
    Format a timestamp for persistence.

    Args:
        ts: Timestamp to format

    Returns:
        Fixed-width ISO8601 string in UTC with microseconds
    """
    return ensure_utc(ts).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a persisted timestamp back into an aware UTC datetime.

    Accepts the fixed-width format written by ``format_timestamp`` as well as
    the ISO8601 variants PostgREST returns (``Z`` suffix, short fractions).
    """
    if value is None or value == "":
        return None

    text = value.strip().replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    # Pad fractional seconds to six digits for older fromisoformat versions
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"

    return ensure_utc(datetime.fromisoformat(text))

