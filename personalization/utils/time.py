"""
Time helpers: timestamp parsing and age in hours/days used by every scorer.

A missing or unparsable timestamp is treated as "now" (age 0).
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a datetime, ISO string, or epoch seconds into an aware UTC datetime.

    Returns None when the value cannot be interpreted.
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            if not math.isfinite(value):
                return None
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        elif isinstance(value, str):
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        else:
            return None
    except (ValueError, OverflowError, OSError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def hours_since(timestamp: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Hours elapsed since timestamp, never negative."""
    if timestamp is None:
        return 0.0
    now = now or utc_now()
    return max(0.0, (now - timestamp).total_seconds() / 3600.0)


def days_since(timestamp: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Fractional days elapsed since timestamp, never negative."""
    return hours_since(timestamp, now) / 24.0
