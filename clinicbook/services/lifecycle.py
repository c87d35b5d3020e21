"""Booking lifecycle state machine."""

from dataclasses import dataclass
from uuid import UUID

from clinicbook.core.results import (
    Err,
    Ok,
    invalid_state,
    unauthorized,
    validation_error,
)
from clinicbook.schemas.bookings import (
    REJECTION_REASON_MAX_LENGTH,
    REJECTION_REASON_MIN_LENGTH,
    ActorRole,
    Booking,
    BookingAction,
    BookingEvent,
    BookingStatus,
    Identity,
)


@dataclass(frozen=True)
class TransitionRule:
    """Allowed source statuses, target status and acting roles of one action."""

    sources: frozenset[BookingStatus]
    target: BookingStatus
    roles: frozenset[ActorRole]
    source_error: str


TRANSITIONS: dict[BookingAction, TransitionRule] = {
    BookingAction.CONFIRM: TransitionRule(
        sources=frozenset({BookingStatus.PENDING}),
        target=BookingStatus.CONFIRMED,
        roles=frozenset({ActorRole.PROVIDER}),
        source_error="Only pending bookings can be confirmed",
    ),
    BookingAction.REJECT: TransitionRule(
        sources=frozenset({BookingStatus.PENDING}),
        target=BookingStatus.REJECTED,
        roles=frozenset({ActorRole.PROVIDER}),
        source_error="Only pending bookings can be rejected",
    ),
    BookingAction.COMPLETE: TransitionRule(
        sources=frozenset({BookingStatus.CONFIRMED}),
        target=BookingStatus.COMPLETED,
        roles=frozenset({ActorRole.PROVIDER}),
        source_error="Only confirmed bookings can be marked as completed",
    ),
    BookingAction.CANCEL: TransitionRule(
        sources=frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.REJECTED}),
        target=BookingStatus.CANCELLED,
        roles=frozenset({ActorRole.PATIENT, ActorRole.PROVIDER}),
        source_error="Completed or cancelled bookings cannot be cancelled",
    ),
}


@dataclass(frozen=True)
class Transition:
    """A validated, not yet persisted, status change."""

    booking_id: UUID
    source: BookingStatus
    target: BookingStatus
    event: BookingEvent
    rejection_reason: str | None = None


def owns(booking: Booking, actor: Identity) -> bool:
    """Whether the actor is the booking's patient or provider."""
    if actor.role == ActorRole.PATIENT:
        return booking.patient_id == actor.actor_id
    return booking.provider_id == actor.actor_id


class AppointmentLifecycle:
    """Validates one lifecycle transition at a time."""

    @staticmethod
    def check_create(actor: Identity) -> Ok[BookingStatus] | Err:
        """Bookings are requested by patients and always start PENDING."""
        if actor.role != ActorRole.PATIENT:
            return unauthorized("Only patients can request bookings")
        return Ok(BookingStatus.PENDING)

    @staticmethod
    def check(
        booking: Booking,
        action: BookingAction,
        actor: Identity,
        reason: str | None = None,
    ) -> Ok[Transition] | Err:
        """
        Validate applying ``action`` to ``booking`` on behalf of ``actor``.

        Ownership is checked first, then the source status, then the payload.

        Args:
            booking: Current booking record
            action: Requested lifecycle action
            actor: Caller identity
            reason: Rejection reason, required for REJECT

        Returns:
            Ok with the transition to persist, or Err (UNAUTHORIZED,
            INVALID_STATE or VALIDATION)
        """
        rule = TRANSITIONS[action]

        if actor.role not in rule.roles or not owns(booking, actor):
            return unauthorized(f"You are not authorized to {action.value} this booking")

        if booking.status not in rule.sources:
            return invalid_state(f"{rule.source_error} (current status: {booking.status.value})")

        rejection_reason = None
        if action == BookingAction.REJECT:
            rejection_reason = (reason or "").strip()
            if not (
                REJECTION_REASON_MIN_LENGTH <= len(rejection_reason) <= REJECTION_REASON_MAX_LENGTH
            ):
                return validation_error(
                    f"Rejection reason must be between {REJECTION_REASON_MIN_LENGTH} "
                    f"and {REJECTION_REASON_MAX_LENGTH} characters"
                )

        return Ok(
            Transition(
                booking_id=booking.id,
                source=booking.status,
                target=rule.target,
                event=BookingEvent(rule.target.value),
                rejection_reason=rejection_reason,
            )
        )
