"""Overlap detection between booking intervals."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.core.timeutils import ensure_utc
from clinicbook.models.bookings import bookings
from clinicbook.schemas.bookings import Booking, BookingStatus


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """
    Half-open interval overlap.

    Intervals that only touch (one ends exactly when the other starts) do not
    overlap.
    """
    return a_start < b_end and a_end > b_start


def booking_from_row(row: Mapping[str, Any]) -> Booking:
    """Build a Booking from a table row, normalizing instants to UTC."""
    data = dict(row)
    for field in ("start_time", "end_time", "created_at", "updated_at"):
        data[field] = ensure_utc(data[field])
    return Booking.model_validate(data)


class ConflictGuard:
    """Decides whether a candidate interval collides with a provider's bookings."""

    def __init__(self, db: AsyncSession):
        """Initialize guard with database session."""
        self.db = db

    def _overlap_condition(self, provider_id: UUID, start: datetime, end: datetime) -> Any:
        # Same predicate as intervals_overlap, evaluated by the database
        return and_(
            bookings.c.provider_id == provider_id,
            bookings.c.status != BookingStatus.CANCELLED.value,
            bookings.c.start_time < ensure_utc(end),
            bookings.c.end_time > ensure_utc(start),
        )

    async def has_overlap(self, provider_id: UUID, start: datetime, end: datetime) -> bool:
        """
        Check whether [start, end) overlaps any non-cancelled booking.

        Args:
            provider_id: Provider whose bookings are checked
            start: Candidate start instant
            end: Candidate end instant

        Returns:
            True if a conflicting booking exists
        """
        stmt = (
            select(bookings.c.id)
            .where(self._overlap_condition(provider_id, start, end))
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def find_overlapping(
        self,
        provider_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Booking]:
        """Non-cancelled bookings of a provider intersecting [start, end), earliest first."""
        stmt = (
            select(bookings)
            .where(self._overlap_condition(provider_id, start, end))
            .order_by(bookings.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [booking_from_row(row) for row in result.mappings().all()]
