"""Schedule configuration schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

SLOT_DURATIONS = (15, 30, 45, 60)
BUFFER_MIN = 0
BUFFER_MAX = 30

DEFAULT_SLOT_DURATION = 30
DEFAULT_BUFFER = 0
DEFAULT_TIMEZONE = "UTC"

ALL_DAYS = "ALL"


class DayOfWeek(str, Enum):
    """ISO weekday names, Monday first."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def of(cls, day: date) -> "DayOfWeek":
        """Weekday of a calendar date."""
        return list(cls)[day.weekday()]


class ExceptionType(str, Enum):
    """Exception period (day off) type enumeration."""

    HOLIDAY = "HOLIDAY"
    VACATION = "VACATION"
    PERSONAL = "PERSONAL"
    SICK = "SICK"


class ScheduleSettings(BaseModel):
    """Per-provider slot generation settings."""

    slot_duration_minutes: int = DEFAULT_SLOT_DURATION
    buffer_minutes: int = Field(DEFAULT_BUFFER, ge=BUFFER_MIN, le=BUFFER_MAX)
    timezone: str = DEFAULT_TIMEZONE

    model_config = {"from_attributes": True}

    @field_validator("slot_duration_minutes")
    @classmethod
    def validate_slot_duration(cls, v: int) -> int:
        """Slot duration must be one of the supported lengths."""
        if v not in SLOT_DURATIONS:
            raise ValueError("Slot duration must be 15, 30, 45, or 60 minutes")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Timezone must be a known IANA identifier."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class WeeklyWindow(BaseModel):
    """Recurring working hours for one weekday."""

    day_of_week: DayOfWeek
    is_available: bool = True
    start_time: time | None = None
    end_time: time | None = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def validate_hours(self) -> "WeeklyWindow":
        """Available days need ordered start and end times."""
        if self.is_available:
            if self.start_time is None or self.end_time is None:
                raise ValueError("Start time and end time are required when day is available")
            if self.start_time >= self.end_time:
                raise ValueError("Start time must be before end time")
        return self


class BreakWindowBase(BaseModel):
    """Common break fields."""

    name: str = Field(..., min_length=1, max_length=100)
    day_of_week: str = ALL_DAYS
    start_time: time
    end_time: time

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, v: str) -> str:
        """Day must be ALL or a weekday name."""
        v = v.upper()
        if v != ALL_DAYS and v not in DayOfWeek.__members__:
            raise ValueError(
                "Invalid day of week. Must be ALL, MONDAY, TUESDAY, WEDNESDAY, "
                "THURSDAY, FRIDAY, SATURDAY, or SUNDAY"
            )
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "BreakWindowBase":
        """Break start must precede its end."""
        if self.start_time >= self.end_time:
            raise ValueError("Break start time must be before end time")
        return self


class BreakWindowCreate(BreakWindowBase):
    """Schema for adding or replacing a break."""


class BreakWindow(BreakWindowBase):
    """Break window as stored."""

    id: UUID | None = None

    model_config = {"from_attributes": True}

    def applies_to(self, day: DayOfWeek) -> bool:
        return self.day_of_week in (ALL_DAYS, day.value)


class ExceptionPeriodBase(BaseModel):
    """Common exception period fields."""

    start_date: date
    end_date: date
    reason: str | None = Field(None, max_length=500)
    type: ExceptionType = ExceptionType.PERSONAL
    is_recurring: bool = False
    recurring_day_of_week: DayOfWeek | None = None

    @model_validator(mode="after")
    def validate_period(self) -> "ExceptionPeriodBase":
        """Dates must be ordered; the recurring day only applies to recurring periods."""
        if self.start_date > self.end_date:
            raise ValueError("Start date must be before or equal to end date")
        if not self.is_recurring:
            self.recurring_day_of_week = None
        return self


class ExceptionPeriodCreate(ExceptionPeriodBase):
    """Schema for adding or replacing an exception period."""


class ExceptionPeriod(ExceptionPeriodBase):
    """Exception period as stored."""

    id: UUID | None = None

    model_config = {"from_attributes": True}

    def suppresses(self, day: date) -> bool:
        """Whether this period takes the whole day off."""
        if self.is_recurring:
            return self.recurring_day_of_week == DayOfWeek.of(day)
        return self.start_date <= day <= self.end_date


class ScheduleConfig(BaseModel):
    """Everything the availability calculator needs about one provider."""

    provider_id: UUID
    settings: ScheduleSettings | None = None
    weekly_windows: list[WeeklyWindow] = Field(default_factory=list)
    breaks: list[BreakWindow] = Field(default_factory=list)
    exception_periods: list[ExceptionPeriod] = Field(default_factory=list)

    def window_for(self, day: DayOfWeek) -> WeeklyWindow | None:
        return next((w for w in self.weekly_windows if w.day_of_week == day), None)


class DaySchedule(BaseModel):
    """Working hours for one day in a weekly schedule update."""

    available: bool
    start_time: time | None = None
    end_time: time | None = None

    @model_validator(mode="after")
    def validate_hours(self) -> "DaySchedule":
        """Available days need ordered start and end times."""
        if self.available:
            if self.start_time is None or self.end_time is None:
                raise ValueError("Start time and end time are required when day is available")
            if self.start_time >= self.end_time:
                raise ValueError("Start time must be before end time")
        return self


class WeeklyScheduleUpdate(BaseModel):
    """Schema for replacing working hours of one or more weekdays."""

    schedule: dict[DayOfWeek, DaySchedule] = Field(..., min_length=1)

    def windows(self) -> list[WeeklyWindow]:
        """Validated weekly windows in weekday order."""
        return [
            WeeklyWindow(
                day_of_week=day,
                is_available=entry.available,
                start_time=entry.start_time,
                end_time=entry.end_time,
            )
            for day, entry in sorted(
                self.schedule.items(), key=lambda item: list(DayOfWeek).index(item[0])
            )
        ]


class TimeSlot(BaseModel):
    """Candidate bookable interval produced by the availability calculator."""

    start_time: datetime
    end_time: datetime
    available: bool
    reason: str | None = None


class ScheduleConfigResponse(BaseModel):
    """Full schedule of a provider."""

    provider_id: UUID
    settings: ScheduleSettings
    weekly_windows: list[WeeklyWindow]
    breaks: list[BreakWindow]
    exception_periods: list[ExceptionPeriod]
