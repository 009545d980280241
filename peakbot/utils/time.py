"""
Clock helpers.

All timestamps recorded by the engine are timezone-aware UTC datetimes.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current wall-clock time as a UTC datetime."""
    return datetime.now(timezone.utc)


def elapsed_seconds(start_time: datetime, end_time: Optional[datetime] = None) -> float:
    """
    Calculate elapsed time in seconds between two timestamps.

    Args:
        start_time: Start timestamp
        end_time: End timestamp, defaults to now

    Returns:
        Elapsed time in seconds
    """
    if end_time is None:
        end_time = utc_now()

    return (end_time - start_time).total_seconds()


def format_time(ts: Optional[datetime]) -> Optional[str]:
    """ISO8601 representation used in snapshots, None passes through."""
    return ts.isoformat() if ts is not None else None
