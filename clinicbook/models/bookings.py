"""Bookings table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Table,
    Text,
    Uuid,
    func,
)

from clinicbook.models.base import metadata

bookings = Table(
    "bookings",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    # Stored as UTC instants
    Column("start_time", DateTime(timezone=True), nullable=False),
    Column("end_time", DateTime(timezone=True), nullable=False),
    # Status management
    Column("status", Text, nullable=False, server_default="PENDING"),
    Column("patient_notes", Text, nullable=True),
    Column("rejection_reason", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint("start_time < end_time", name="bookings_interval_check"),
    CheckConstraint(
        "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'COMPLETED', 'CANCELLED')",
        name="bookings_status_check",
    ),
    Index("idx_bookings_provider_interval", "provider_id", "start_time", "end_time"),
)
