"""Read-only booking queries."""

from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.core.results import Err, Ok, not_found, unauthorized
from clinicbook.models.bookings import bookings
from clinicbook.schemas.bookings import (
    ActorRole,
    Booking,
    BookingFilters,
    BookingListResponse,
    BookingStatus,
    Identity,
)
from clinicbook.services.conflict_guard import booking_from_row
from clinicbook.services.lifecycle import owns


class BookingQueryService:
    """Service for reading bookings on behalf of their patient or provider."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def load(self, booking_id: UUID) -> Booking | None:
        """Get a booking by ID without access checks."""
        result = await self.db.execute(select(bookings).where(bookings.c.id == booking_id))
        row = result.mappings().first()
        return booking_from_row(row) if row else None

    async def get_booking(self, booking_id: UUID, actor: Identity) -> Ok[Booking] | Err:
        """
        Get a booking visible to the caller.

        Returns NOT_FOUND for unknown ids and UNAUTHORIZED when the caller is
        neither the booking's patient nor its provider.
        """
        booking = await self.load(booking_id)
        if booking is None:
            return not_found("Booking not found")
        if not owns(booking, actor):
            return unauthorized("Access denied to this booking")
        return Ok(booking)

    async def list_bookings(
        self,
        actor: Identity,
        filters: BookingFilters,
    ) -> Ok[BookingListResponse]:
        """
        List the caller's bookings with filtering and pagination.

        Args:
            actor: Patient (own bookings) or provider (bookings made with them)
            filters: Filter and pagination parameters

        Returns:
            Paginated list, latest start time first
        """
        owner_column = (
            bookings.c.patient_id if actor.role == ActorRole.PATIENT else bookings.c.provider_id
        )
        conditions = [owner_column == actor.actor_id]
        if filters.status:
            conditions.append(bookings.c.status == filters.status.value)

        count_stmt = select(func.count()).select_from(bookings).where(and_(*conditions))
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(bookings)
            .where(and_(*conditions))
            .order_by(bookings.c.start_time.desc())
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await self.db.execute(stmt)

        return Ok(
            BookingListResponse(
                total=total,
                page=filters.page,
                page_size=filters.page_size,
                items=[booking_from_row(row) for row in result.mappings().all()],
            )
        )

    async def list_pending(self, actor: Identity) -> Ok[list[Booking]] | Err:
        """Pending bookings awaiting the provider's decision, soonest first."""
        if actor.role != ActorRole.PROVIDER:
            return unauthorized("Only providers have pending booking requests")

        stmt = (
            select(bookings)
            .where(
                and_(
                    bookings.c.provider_id == actor.actor_id,
                    bookings.c.status == BookingStatus.PENDING.value,
                )
            )
            .order_by(bookings.c.start_time)
        )
        result = await self.db.execute(stmt)
        return Ok([booking_from_row(row) for row in result.mappings().all()])
