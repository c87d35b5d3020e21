"""Availability calculation: turns a provider's schedule into bookable slots.

Everything in this module is pure. Given the same configuration, bookings and
date, ``compute_slots`` returns the same slots, so callers may run it
concurrently or cache its output.
"""

from collections.abc import Sequence
from datetime import date, datetime, timedelta

from clinicbook.core.timeutils import ensure_utc, local_instant
from clinicbook.schemas.bookings import Booking, BookingStatus
from clinicbook.schemas.scheduling import (
    DayOfWeek,
    ScheduleConfig,
    ScheduleSettings,
    TimeSlot,
)
from clinicbook.services.conflict_guard import intervals_overlap

BOOKED_REASON = "BOOKED"

_Interval = tuple[datetime, datetime]


def resolve_settings_or_default(
    settings: ScheduleSettings | None,
    default: ScheduleSettings | None = None,
) -> ScheduleSettings:
    """
    Settings to generate slots with.

    Providers that never saved settings get ``default``, or the built-in
    30 minute slots, no buffer, UTC.
    """
    if settings is not None:
        return settings
    return default if default is not None else ScheduleSettings()


def is_day_off(config: ScheduleConfig, day: date) -> bool:
    """Whether any exception period suppresses the whole day."""
    return any(period.suppresses(day) for period in config.exception_periods)


def _blocking_reason(
    slot: _Interval,
    breaks: Sequence[tuple[str, datetime, datetime]],
    booked: Sequence[_Interval],
) -> str | None:
    # Breaks take precedence over bookings; first match wins
    for name, break_start, break_end in breaks:
        if intervals_overlap(slot[0], slot[1], break_start, break_end):
            return name
    for booking_start, booking_end in booked:
        if intervals_overlap(slot[0], slot[1], booking_start, booking_end):
            return BOOKED_REASON
    return None


def compute_slots(
    config: ScheduleConfig,
    existing_bookings: Sequence[Booking],
    day: date,
) -> list[TimeSlot]:
    """
    Compute the ordered slots of one calendar day.

    Args:
        config: Provider schedule configuration
        existing_bookings: Non-cancelled bookings intersecting the day
        day: Target calendar date, interpreted in the provider's timezone

    Returns:
        Slots in ascending start order, expressed in the provider's timezone.
        Empty if the day is off or has no available weekly window.
    """
    if is_day_off(config, day):
        return []

    weekday = DayOfWeek.of(day)
    window = config.window_for(weekday)
    if window is None or not window.is_available:
        return []
    if window.start_time is None or window.end_time is None:
        return []

    settings = resolve_settings_or_default(config.settings)
    zone = settings.zone
    duration = timedelta(minutes=settings.slot_duration_minutes)
    buffer = timedelta(minutes=settings.buffer_minutes)

    window_start = local_instant(day, window.start_time, zone)
    window_end = local_instant(day, window.end_time, zone)

    breaks = [
        (
            item.name.upper(),
            local_instant(day, item.start_time, zone),
            local_instant(day, item.end_time, zone),
        )
        for item in config.breaks
        if item.applies_to(weekday)
    ]
    booked = [
        (ensure_utc(booking.start_time), ensure_utc(booking.end_time))
        for booking in existing_bookings
        if booking.status != BookingStatus.CANCELLED
    ]

    slots: list[TimeSlot] = []
    cursor = window_start
    while True:
        slot_end = cursor + duration
        # Trailing partial slots are dropped, never clipped
        if slot_end > window_end:
            break
        reason = _blocking_reason((cursor, slot_end), breaks, booked)
        slots.append(
            TimeSlot(
                start_time=cursor.astimezone(zone),
                end_time=slot_end.astimezone(zone),
                available=reason is None,
                reason=reason,
            )
        )
        cursor = slot_end + buffer

    return slots
