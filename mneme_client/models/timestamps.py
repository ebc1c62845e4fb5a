"""
Mneme Sync Client - Timestamp Helpers

The coordinator reports modification times as ISO-8601 UTC strings.
Local files carry nanosecond mtimes. Both are compared at microsecond
resolution so a timestamp copied onto a local file compares equal to
its source.
"""

from datetime import datetime, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing 'Z'. Naive values are assumed to be UTC.

    Returns:
        datetime or None if value is empty or malformed
    """
    if not value:
        return None
    try:
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format an aware datetime as ISO-8601 UTC with a 'Z' suffix."""
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def timestamp_to_micros(dt: datetime) -> int:
    """Exact integer microseconds since the epoch (no float rounding)."""
    delta = dt - EPOCH
    return (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds


def micros_to_ns(micros: int) -> int:
    return micros * 1000
