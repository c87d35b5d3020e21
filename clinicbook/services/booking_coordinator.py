"""Booking creation and lifecycle transitions."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.core.locks import ProviderLockManager, acquire_transaction_lock
from clinicbook.core.results import (
    Err,
    Ok,
    invalid_state,
    not_found,
    overlap,
    validation_error,
)
from clinicbook.core.timeutils import ensure_utc, utcnow
from clinicbook.models.bookings import bookings
from clinicbook.schemas.bookings import (
    NOTES_MAX_LENGTH,
    Booking,
    BookingAction,
    BookingEvent,
    Identity,
)
from clinicbook.services.booking_queries import BookingQueryService
from clinicbook.services.conflict_guard import ConflictGuard, booking_from_row
from clinicbook.services.directory_service import DirectoryService
from clinicbook.services.lifecycle import AppointmentLifecycle
from clinicbook.services.notification_service import NotificationDispatcher

logger = structlog.get_logger(__name__)


class BookingCoordinator:
    """Creates and mutates bookings so that no two active bookings overlap."""

    def __init__(
        self,
        db: AsyncSession,
        locks: ProviderLockManager,
        dispatcher: NotificationDispatcher,
    ):
        """
        Initialize coordinator.

        Args:
            db: Database session
            locks: Registry of per-provider critical sections
            dispatcher: Fire-and-forget notification dispatcher
        """
        self.db = db
        self.locks = locks
        self.dispatcher = dispatcher

    async def _load(self, booking_id: UUID) -> Booking | None:
        return await BookingQueryService(self.db).load(booking_id)

    async def create(
        self,
        actor: Identity,
        provider_id: UUID,
        start: datetime,
        end: datetime,
        notes: str | None = None,
    ) -> Ok[Booking] | Err:
        """
        Request a booking on behalf of a patient.

        The overlap check and the insert run inside the provider's critical
        section; the CREATED notification is sent after leaving it.

        Args:
            actor: Requesting patient
            provider_id: Provider being booked
            start: Start instant (naive values are taken as UTC)
            end: End instant
            notes: Optional patient notes

        Returns:
            Ok with the PENDING booking, or Err (UNAUTHORIZED, VALIDATION,
            NOT_FOUND or OVERLAP)
        """
        allowed = AppointmentLifecycle.check_create(actor)
        if isinstance(allowed, Err):
            return allowed

        start, end = ensure_utc(start), ensure_utc(end)
        if start >= end:
            return validation_error("Booking start time must be before its end time")
        if notes is not None and len(notes) > NOTES_MAX_LENGTH:
            return validation_error(f"Patient notes must be at most {NOTES_MAX_LENGTH} characters")

        if await DirectoryService.get_provider(self.db, provider_id) is None:
            return not_found("Provider not found")
        if await DirectoryService.get_patient(self.db, actor.actor_id) is None:
            return not_found("Patient not found")

        async with self.locks.hold(provider_id):
            await acquire_transaction_lock(self.db, provider_id)

            if await ConflictGuard(self.db).has_overlap(provider_id, start, end):
                await self.db.rollback()
                logger.info(
                    "booking_overlap_rejected",
                    provider_id=str(provider_id),
                    patient_id=str(actor.actor_id),
                    start_time=start.isoformat(),
                    end_time=end.isoformat(),
                )
                return overlap("The requested time overlaps an existing booking")

            now = utcnow()
            stmt = (
                insert(bookings)
                .values(
                    id=uuid4(),
                    patient_id=actor.actor_id,
                    provider_id=provider_id,
                    start_time=start,
                    end_time=end,
                    status=allowed.value.value,
                    patient_notes=notes,
                    created_at=now,
                    updated_at=now,
                )
                .returning(bookings)
            )
            result = await self.db.execute(stmt)
            booking = booking_from_row(result.mappings().one())
            await self.db.commit()

        logger.info(
            "booking_created",
            booking_id=str(booking.id),
            provider_id=str(provider_id),
            patient_id=str(actor.actor_id),
            start_time=booking.start_time.isoformat(),
        )
        self.dispatcher.dispatch(booking, BookingEvent.CREATED)
        return Ok(booking)

    async def transition(
        self,
        booking_id: UUID,
        action: BookingAction,
        actor: Identity,
        reason: str | None = None,
    ) -> Ok[Booking] | Err:
        """
        Apply one lifecycle action to a booking.

        The status is written with a conditional update on the status that was
        read, so a concurrent transition of the same booking yields
        INVALID_STATE instead of being overwritten.

        Args:
            booking_id: Booking ID
            action: Lifecycle action
            actor: Caller identity
            reason: Rejection reason (REJECT only)

        Returns:
            Ok with the updated booking, or Err (NOT_FOUND, UNAUTHORIZED,
            INVALID_STATE or VALIDATION)
        """
        booking = await self._load(booking_id)
        if booking is None:
            return not_found("Booking not found")

        checked = AppointmentLifecycle.check(booking, action, actor, reason)
        if isinstance(checked, Err):
            return checked
        change = checked.value

        values: dict[str, Any] = {"status": change.target.value, "updated_at": utcnow()}
        if change.rejection_reason is not None:
            values["rejection_reason"] = change.rejection_reason

        stmt = (
            update(bookings)
            .where(
                and_(
                    bookings.c.id == change.booking_id,
                    bookings.c.status == change.source.value,
                )
            )
            .values(**values)
            .returning(bookings)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if row is None:
            await self.db.rollback()
            logger.info(
                "booking_transition_lost_race",
                booking_id=str(booking_id),
                action=action.value,
                expected_status=change.source.value,
            )
            return invalid_state("Booking status changed concurrently, reload and retry")
        updated = booking_from_row(row)
        await self.db.commit()

        logger.info(
            "booking_transitioned",
            booking_id=str(booking_id),
            action=action.value,
            from_status=change.source.value,
            to_status=change.target.value,
            actor_id=str(actor.actor_id),
            actor_role=actor.role.value,
        )
        self.dispatcher.dispatch(updated, change.event)
        return Ok(updated)

    async def confirm(self, booking_id: UUID, actor: Identity) -> Ok[Booking] | Err:
        """Provider accepts a pending booking."""
        return await self.transition(booking_id, BookingAction.CONFIRM, actor)

    async def reject(self, booking_id: UUID, actor: Identity, reason: str) -> Ok[Booking] | Err:
        """Provider declines a pending booking with a reason."""
        return await self.transition(booking_id, BookingAction.REJECT, actor, reason)

    async def complete(self, booking_id: UUID, actor: Identity) -> Ok[Booking] | Err:
        """Provider marks a confirmed booking as completed."""
        return await self.transition(booking_id, BookingAction.COMPLETE, actor)

    async def cancel(self, booking_id: UUID, actor: Identity) -> Ok[Booking] | Err:
        """Patient or provider cancels a booking that is not yet finished."""
        return await self.transition(booking_id, BookingAction.CANCEL, actor)
