from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local(tz_name: str | None = None) -> datetime:
    """Current time, aware in the given zone when one is passed.

    Note: Wrapped so tests can patch/mock easier.
    """
    if tz_name:
        return datetime.now(ZoneInfo(tz_name))
    return datetime.now()


def to_zone(value: datetime, tz_name: str) -> datetime:
    """Convert to the facility zone; naive values are taken as facility local time."""
    zone = ZoneInfo(tz_name)
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def minute_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def at_clock(day: date, clock: time, tz_name: str) -> datetime:
    return datetime.combine(day, clock, tzinfo=ZoneInfo(tz_name))


def iter_dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
