"""Provider schedule configuration tables using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
    func,
    text,
)

from clinicbook.models.base import metadata

_WEEKDAYS = "'MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY'"

schedule_settings = Table(
    "schedule_settings",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("slot_duration_minutes", Integer, nullable=False, server_default=text("30")),
    Column("buffer_minutes", Integer, nullable=False, server_default=text("0")),
    Column("timezone", String(64), nullable=False, server_default="UTC"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "slot_duration_minutes IN (15, 30, 45, 60)",
        name="schedule_settings_slot_duration_check",
    ),
    CheckConstraint(
        "buffer_minutes BETWEEN 0 AND 30",
        name="schedule_settings_buffer_check",
    ),
)

weekly_windows = Table(
    "weekly_windows",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("day_of_week", String(9), nullable=False),
    Column("is_available", Boolean, nullable=False, server_default=text("true")),
    Column("start_time", Time, nullable=True),
    Column("end_time", Time, nullable=True),
    UniqueConstraint("provider_id", "day_of_week", name="weekly_windows_provider_day_key"),
    CheckConstraint(f"day_of_week IN ({_WEEKDAYS})", name="weekly_windows_day_check"),
)

break_windows = Table(
    "break_windows",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Weekday name or ALL
    Column("day_of_week", String(9), nullable=False),
    Column("name", Text, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    # Configured order breaks are matched in
    Column("position", Integer, nullable=False, server_default=text("0")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(f"day_of_week IN ('ALL', {_WEEKDAYS})", name="break_windows_day_check"),
    CheckConstraint("start_time < end_time", name="break_windows_order_check"),
)

exception_periods = Table(
    "exception_periods",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=False),
    Column("reason", Text, nullable=True),
    Column("type", String(16), nullable=False, server_default="PERSONAL"),
    Column("is_recurring", Boolean, nullable=False, server_default=text("false")),
    Column("recurring_day_of_week", String(9), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "type IN ('HOLIDAY', 'VACATION', 'PERSONAL', 'SICK')",
        name="exception_periods_type_check",
    ),
    CheckConstraint("start_date <= end_date", name="exception_periods_order_check"),
)
