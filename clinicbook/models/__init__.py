"""Database models."""

from clinicbook.models.base import metadata
from clinicbook.models.bookings import bookings
from clinicbook.models.parties import patients, providers
from clinicbook.models.schedules import (
    break_windows,
    exception_periods,
    schedule_settings,
    weekly_windows,
)

__all__ = [
    "bookings",
    "break_windows",
    "exception_periods",
    "metadata",
    "patients",
    "providers",
    "schedule_settings",
    "weekly_windows",
]
