"""Conversions between provider wall-clock time and UTC instants.

Interval arithmetic and comparisons are always done on timezone-aware UTC
datetimes. Wall-clock schedule times are attached to a calendar date in the
provider's timezone first, then normalized.
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_instant(day: date, wall_time: time, zone: ZoneInfo) -> datetime:
    """UTC instant of a wall-clock time on a given date in ``zone``."""
    return datetime.combine(day, wall_time, tzinfo=zone).astimezone(UTC)


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants of local midnight at the start and end of ``day``."""
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(UTC), end.astimezone(UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)
