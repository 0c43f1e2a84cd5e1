"""Local-day boundaries for locations in different timezones."""
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def resolve_timezone(name: Optional[str]):
    """ZoneInfo for a name, falling back to UTC when unset or unknown."""
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def local_day_range(tz_name: Optional[str], now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Start (inclusive) and end (exclusive) of "today" in a timezone, as naive UTC.

    Order dates are stored as naive UTC timestamps, so the boundaries are
    converted back to naive UTC for direct comparison.
    """
    tz = resolve_timezone(tz_name)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local_today = now.astimezone(tz).date()
    start_local = datetime.combine(local_today, time.min, tzinfo=tz)
    end_local = datetime.combine(local_today + timedelta(days=1), time.min, tzinfo=tz)

    start_utc = start_local.astimezone(timezone.utc).replace(tzinfo=None)
    end_utc = end_local.astimezone(timezone.utc).replace(tzinfo=None)
    return start_utc, end_utc
