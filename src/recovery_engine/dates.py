"""Calendar-day helpers. Day grouping always takes an explicit timezone."""

from datetime import date, datetime, timedelta, tzinfo
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone name."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: {name}", setting="timezone") from e


def local_day(timestamp: datetime, tz: tzinfo) -> date:
    """
    Calendar day of a timestamp in the given timezone.

    Naive timestamps are taken to be local time in ``tz`` already.
    """
    if timestamp.tzinfo is None:
        return timestamp.date()
    return timestamp.astimezone(tz).date()


def ensure_aware(timestamp: datetime, tz: tzinfo) -> datetime:
    """Attach ``tz`` to a naive timestamp; aware timestamps pass through."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=tz)
    return timestamp


def day_range(end_day: date, day_count: int) -> List[date]:
    """The ``day_count`` days ending at ``end_day`` inclusive, oldest first."""
    return [end_day - timedelta(days=offset) for offset in range(day_count - 1, -1, -1)]


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD string."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ConfigurationError(f"Invalid date: {value}", setting="date") from e
