"""Provider and patient directory tables using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Table, Text, Uuid, func, text

from clinicbook.models.base import metadata

# Providers are the scheduled resource (doctors in the clinic deployment)
providers = Table(
    "providers",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("full_name", Text, nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("specialization", String(200), nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("full_name", Text, nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(20), nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
