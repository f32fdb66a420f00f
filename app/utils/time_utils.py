"""
Time helpers. All timestamps are stored as naive UTC datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time in UTC, without tzinfo (matches the DateTime columns)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_isoformat(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string with a trailing Z"""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def time_ago(value: Optional[datetime], now: Optional[datetime] = None) -> Optional[str]:
    """
    Human readable relative time, e.g. "5 minutes ago" or "1 day from now".
    """
    if value is None:
        return None
    now = now or utc_now()
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)

    delta = int((now - value).total_seconds())
    suffix = "ago" if delta >= 0 else "from now"
    delta = abs(delta)

    if delta < 1:
        return "just now"

    for name, seconds in _UNITS:
        count = delta // seconds
        if count >= 1:
            plural = "" if count == 1 else "s"
            return f"{count} {name}{plural} {suffix}"
    return "just now"
