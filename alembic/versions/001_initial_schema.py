"""Initial schema - providers, patients, schedules and bookings.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

WEEKDAYS = "'MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY'"


def _id_column() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("NOW()"),
        nullable=False,
    )


def _provider_fk_column() -> sa.Column:
    return sa.Column(
        "provider_id",
        postgresql.UUID(),
        sa.ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade database schema."""
    # Enable pgcrypto extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "providers",
        _id_column(),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.VARCHAR(length=255), nullable=False),
        sa.Column("specialization", sa.VARCHAR(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="providers_email_key"),
    )

    op.create_table(
        "patients",
        _id_column(),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.VARCHAR(length=255), nullable=False),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="patients_email_key"),
    )

    op.create_table(
        "schedule_settings",
        _id_column(),
        _provider_fk_column(),
        sa.Column("slot_duration_minutes", sa.Integer(), server_default="30", nullable=False),
        sa.Column("buffer_minutes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("timezone", sa.VARCHAR(length=64), server_default="UTC", nullable=False),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.CheckConstraint(
            "slot_duration_minutes IN (15, 30, 45, 60)",
            name="schedule_settings_slot_duration_check",
        ),
        sa.CheckConstraint("buffer_minutes BETWEEN 0 AND 30", name="schedule_settings_buffer_check"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_id", name="schedule_settings_provider_id_key"),
    )

    op.create_table(
        "weekly_windows",
        _id_column(),
        _provider_fk_column(),
        sa.Column("day_of_week", sa.VARCHAR(length=9), nullable=False),
        sa.Column("is_available", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.CheckConstraint(f"day_of_week IN ({WEEKDAYS})", name="weekly_windows_day_check"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_id", "day_of_week", name="weekly_windows_provider_day_key"),
    )
    op.create_index("ix_weekly_windows_provider_id", "weekly_windows", ["provider_id"])

    op.create_table(
        "break_windows",
        _id_column(),
        _provider_fk_column(),
        sa.Column("day_of_week", sa.VARCHAR(length=9), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        _timestamp_column("created_at"),
        sa.CheckConstraint(
            f"day_of_week IN ('ALL', {WEEKDAYS})", name="break_windows_day_check"
        ),
        sa.CheckConstraint("start_time < end_time", name="break_windows_order_check"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_break_windows_provider_id", "break_windows", ["provider_id"])

    op.create_table(
        "exception_periods",
        _id_column(),
        _provider_fk_column(),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("type", sa.VARCHAR(length=16), server_default="PERSONAL", nullable=False),
        sa.Column("is_recurring", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("recurring_day_of_week", sa.VARCHAR(length=9), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.CheckConstraint(
            "type IN ('HOLIDAY', 'VACATION', 'PERSONAL', 'SICK')",
            name="exception_periods_type_check",
        ),
        sa.CheckConstraint("start_date <= end_date", name="exception_periods_order_check"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exception_periods_provider_id", "exception_periods", ["provider_id"])

    op.create_table(
        "bookings",
        _id_column(),
        sa.Column(
            "patient_id",
            postgresql.UUID(),
            sa.ForeignKey("patients.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "provider_id",
            postgresql.UUID(),
            sa.ForeignKey("providers.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("start_time", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.Text(), server_default="PENDING", nullable=False),
        sa.Column("patient_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.CheckConstraint("start_time < end_time", name="bookings_interval_check"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'COMPLETED', 'CANCELLED')",
            name="bookings_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bookings_patient_id", "bookings", ["patient_id"])
    op.create_index(
        "idx_bookings_provider_interval", "bookings", ["provider_id", "start_time", "end_time"]
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_bookings_provider_interval", table_name="bookings")
    op.drop_index("ix_bookings_patient_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_exception_periods_provider_id", table_name="exception_periods")
    op.drop_table("exception_periods")

    op.drop_index("ix_break_windows_provider_id", table_name="break_windows")
    op.drop_table("break_windows")

    op.drop_index("ix_weekly_windows_provider_id", table_name="weekly_windows")
    op.drop_table("weekly_windows")

    op.drop_table("schedule_settings")
    op.drop_table("patients")
    op.drop_table("providers")
