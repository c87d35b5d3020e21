"""Booking endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from clinicbook.core.exceptions import unwrap
from clinicbook.dependencies import (
    CurrentIdentity,
    CurrentPatient,
    CurrentProvider,
    DatabaseSession,
    Dispatcher,
    LockManager,
)
from clinicbook.schemas.bookings import (
    Booking,
    BookingCreate,
    BookingFilters,
    BookingListResponse,
    BookingStatus,
    RejectPayload,
    TransitionRequest,
)
from clinicbook.services.booking_coordinator import BookingCoordinator
from clinicbook.services.booking_queries import BookingQueryService

router = APIRouter()


@router.post(
    "/",
    response_model=Booking,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
)
async def create_booking(
    data: BookingCreate,
    patient: CurrentPatient,
    db: DatabaseSession,
    locks: LockManager,
    dispatcher: Dispatcher,
) -> Booking:
    """
    Request a booking with a provider for the authenticated patient.

    The booking starts PENDING until the provider confirms or rejects it.

    Args:
        data: Provider and requested interval
        patient: Authenticated patient
        db: Database session
        locks: Provider lock manager
        dispatcher: Notification dispatcher

    Returns:
        Created booking

    Raises:
        ConflictException: If the interval overlaps an existing booking
    """
    coordinator = BookingCoordinator(db, locks, dispatcher)
    result = await coordinator.create(
        patient,
        data.provider_id,
        data.start_time,
        data.end_time,
        data.patient_notes,
    )
    return unwrap(result)


@router.get(
    "/",
    response_model=BookingListResponse,
    status_code=status.HTTP_200_OK,
    summary="List bookings",
)
async def list_bookings(
    identity: CurrentIdentity,
    db: DatabaseSession,
    status_filter: BookingStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> BookingListResponse:
    """
    List the caller's bookings, latest first.

    Patients see their own bookings; providers see bookings made with them.
    """
    filters = BookingFilters(status=status_filter, page=page, page_size=page_size)
    service = BookingQueryService(db)
    return unwrap(await service.list_bookings(identity, filters))


@router.get(
    "/pending",
    response_model=list[Booking],
    status_code=status.HTTP_200_OK,
    summary="List pending booking requests",
)
async def list_pending(
    provider: CurrentProvider,
    db: DatabaseSession,
) -> list[Booking]:
    """List the provider's bookings awaiting confirmation, soonest first."""
    service = BookingQueryService(db)
    return unwrap(await service.list_pending(provider))


@router.get(
    "/{booking_id}",
    response_model=Booking,
    status_code=status.HTTP_200_OK,
    summary="Get booking by ID",
)
async def get_booking(
    booking_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> Booking:
    service = BookingQueryService(db)
    return unwrap(await service.get_booking(booking_id, identity))


@router.post(
    "/{booking_id}/transitions",
    response_model=Booking,
    status_code=status.HTTP_200_OK,
    summary="Apply a lifecycle action",
)
async def transition_booking(
    booking_id: UUID,
    data: TransitionRequest,
    identity: CurrentIdentity,
    db: DatabaseSession,
    locks: LockManager,
    dispatcher: Dispatcher,
) -> Booking:
    """
    Apply ``confirm``, ``reject``, ``complete`` or ``cancel`` to a booking.

    Args:
        booking_id: Booking ID
        data: Action and, for ``reject``, the reason
        identity: Authenticated patient or provider
        db: Database session
        locks: Provider lock manager
        dispatcher: Notification dispatcher

    Returns:
        Updated booking

    Raises:
        ForbiddenException: If the caller may not apply the action
        InvalidStateException: If the booking's status does not allow it
    """
    coordinator = BookingCoordinator(db, locks, dispatcher)
    return unwrap(await coordinator.transition(booking_id, data.action, identity, data.reason))


@router.put(
    "/{booking_id}/confirm",
    response_model=Booking,
    status_code=status.HTTP_200_OK,
    summary="Confirm a pending booking",
)
async def confirm_booking(
    booking_id: UUID,
    provider: CurrentProvider,
    db: DatabaseSession,
    locks: LockManager,
    dispatcher: Dispatcher,
) -> Booking:
    coordinator = BookingCoordinator(db, locks, dispatcher)
    return unwrap(await coordinator.confirm(booking_id, provider))


@router.put(
    "/{booking_id}/reject",
    response_model=Booking,
    status_code=status.HTTP_200_OK,
    summary="Reject a pending booking",
)
async def reject_booking(
    booking_id: UUID,
    data: RejectPayload,
    provider: CurrentProvider,
    db: DatabaseSession,
    locks: LockManager,
    dispatcher: Dispatcher,
) -> Booking:
    """Reject a pending booking; the reason must be 10 to 500 characters."""
    coordinator = BookingCoordinator(db, locks, dispatcher)
    return unwrap(await coordinator.reject(booking_id, provider, data.rejection_reason))


@router.put(
    "/{booking_id}/complete",
    response_model=Booking,
    status_code=status.HTTP_200_OK,
    summary="Mark a confirmed booking as completed",
)
async def complete_booking(
    booking_id: UUID,
    provider: CurrentProvider,
    db: DatabaseSession,
    locks: LockManager,
    dispatcher: Dispatcher,
) -> Booking:
    coordinator = BookingCoordinator(db, locks, dispatcher)
    return unwrap(await coordinator.complete(booking_id, provider))


@router.put(
    "/{booking_id}/cancel",
    response_model=Booking,
    status_code=status.HTTP_200_OK,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: UUID,
    identity: CurrentIdentity,
    db: DatabaseSession,
    locks: LockManager,
    dispatcher: Dispatcher,
) -> Booking:
    """Cancel a booking as its patient or its provider."""
    coordinator = BookingCoordinator(db, locks, dispatcher)
    return unwrap(await coordinator.cancel(booking_id, identity))
