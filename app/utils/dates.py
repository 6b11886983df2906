from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.config import settings

SECONDS_PER_DAY = 24 * 60 * 60


def as_aware(dt: datetime) -> datetime:
    """Naive timestamps coming out of the store are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt

def local_now(tz_name: str | None = None) -> datetime:
    return datetime.now(ZoneInfo(tz_name or settings.TIMEZONE))

def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Floor of elapsed days, never negative."""
    delta = (as_aware(later) - as_aware(earlier)).total_seconds()
    return max(0, int(delta // SECONDS_PER_DAY))

def hours_between(earlier: datetime, later: datetime) -> float:
    return (as_aware(later) - as_aware(earlier)).total_seconds() / 3600

def end_of_day(moment: datetime) -> datetime:
    """23:59:59.999 of the calendar day `moment` falls on, in its own zone."""
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)
