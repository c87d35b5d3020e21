"""Booking event notifications via Firebase Cloud Messaging."""

import asyncio
import json
import os
from functools import lru_cache
from typing import Protocol

import firebase_admin
import structlog
from firebase_admin import credentials, messaging

from clinicbook.config import settings
from clinicbook.schemas.bookings import Booking, BookingEvent

logger = structlog.get_logger(__name__)

EVENT_MESSAGES: dict[BookingEvent, tuple[str, str]] = {
    BookingEvent.CREATED: (
        "Booking Requested",
        "Booking request for {when} is pending confirmation",
    ),
    BookingEvent.CONFIRMED: ("Booking Confirmed", "Your booking on {when} has been confirmed"),
    BookingEvent.REJECTED: ("Booking Rejected", "Your booking request for {when} was rejected"),
    BookingEvent.COMPLETED: ("Booking Completed", "Your booking on {when} is completed"),
    BookingEvent.CANCELLED: ("Booking Cancelled", "The booking on {when} has been cancelled"),
}


class Notifier(Protocol):
    """Receives one call per booking lifecycle event."""

    async def notify(self, booking: Booking, event: BookingEvent) -> None: ...


class LoggingNotifier:
    """Notifier used when push delivery is disabled."""

    async def notify(self, booking: Booking, event: BookingEvent) -> None:
        logger.info(
            "booking_notification_skipped",
            booking_id=str(booking.id),
            notification_event=event.value,
            reason="notifications disabled",
        )


class FirebaseNotifier:
    """Pushes booking events to the patient and provider FCM topics."""

    def __init__(self, app: firebase_admin.App | None = None):
        """Initialize notifier with an optional Firebase app."""
        self.app = app

    @staticmethod
    def topics(booking: Booking) -> list[str]:
        """FCM topics the booking's patient and provider subscribe to."""
        return [f"patient-{booking.patient_id}", f"provider-{booking.provider_id}"]

    @staticmethod
    def build_messages(booking: Booking, event: BookingEvent) -> list[messaging.Message]:
        """
        Build one FCM message per recipient topic.

        Args:
            booking: Booking snapshot after the transition
            event: Lifecycle event being announced

        Returns:
            Messages ready for ``messaging.send_each``
        """
        title, template = EVENT_MESSAGES[event]
        body = template.format(when=booking.start_time.strftime("%A, %B %d, %Y %H:%M %Z"))
        data = {
            "type": f"booking_{event.value.lower()}",
            "booking_id": str(booking.id),
            "status": booking.status.value,
            "start_time": booking.start_time.isoformat(),
            "end_time": booking.end_time.isoformat(),
        }
        if booking.rejection_reason:
            data["rejection_reason"] = booking.rejection_reason

        return [
            messaging.Message(
                notification=messaging.Notification(title=title, body=body),
                data=data,
                topic=topic,
                apns=messaging.APNSConfig(
                    payload=messaging.APNSPayload(aps=messaging.Aps(sound="default")),
                ),
                android=messaging.AndroidConfig(priority="high"),
            )
            for topic in FirebaseNotifier.topics(booking)
        ]

    async def notify(self, booking: Booking, event: BookingEvent) -> None:
        messages = self.build_messages(booking, event)
        # firebase_admin is blocking
        response = await asyncio.to_thread(messaging.send_each, messages, app=self.app)
        logger.info(
            "push_notification_sent",
            booking_id=str(booking.id),
            notification_event=event.value,
            success_count=response.success_count,
            failure_count=response.failure_count,
        )


class NotificationDispatcher:
    """Fire-and-forget delivery of booking events.

    Each event gets exactly one delivery attempt in a detached task. Failures
    are logged and discarded; they never reach the caller of ``dispatch``.
    """

    def __init__(self, notifier: Notifier):
        """Initialize dispatcher with the notifier that performs delivery."""
        self.notifier = notifier
        self._pending: set[asyncio.Task[None]] = set()

    def dispatch(self, booking: Booking, event: BookingEvent) -> None:
        """Schedule delivery of one event without waiting for it."""
        task = asyncio.create_task(self._deliver(booking, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, booking: Booking, event: BookingEvent) -> None:
        try:
            await self.notifier.notify(booking, event)
        except Exception as e:
            logger.warning(
                "booking_notification_failed",
                booking_id=str(booking.id),
                notification_event=event.value,
                error=str(e),
            )

    async def drain(self) -> None:
        """Wait for in-flight deliveries (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))


def initialize_firebase(
    firebase_credentials_path: str | None = None,
    firebase_config_json: str | None = None,
) -> firebase_admin.App:
    """
    Initialize the Firebase Admin SDK app used for push delivery.

    Credentials are taken from, in order: the raw service account JSON, the
    service account file path, then application default credentials.
    """
    if firebase_config_json:
        logger.info("firebase_init", source="json")
        cred = credentials.Certificate(json.loads(firebase_config_json))
        return firebase_admin.initialize_app(cred)

    if firebase_credentials_path and os.path.exists(firebase_credentials_path):
        logger.info("firebase_init", source="file", path=firebase_credentials_path)
        return firebase_admin.initialize_app(credentials.Certificate(firebase_credentials_path))

    logger.info("firebase_init", source="application_default")
    return firebase_admin.initialize_app()


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    """Get the process-wide dispatcher configured from settings."""
    if not settings.notifications_enabled:
        return NotificationDispatcher(LoggingNotifier())

    app = initialize_firebase(settings.firebase_credentials_path, settings.firebase_config_json)
    return NotificationDispatcher(FirebaseNotifier(app))
