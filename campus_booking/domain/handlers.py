"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from campus_booking.domain.bus import EventBus
from campus_booking.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCreated,
    BookingRejected,
)
from campus_booking.domain.models import (
    AuditLogEntry,
    Booking,
    Notification,
    NotificationType,
)
from campus_booking.repos.base import BookingStore
from campus_booking.repos.memory import AuditLogRepository, NotificationRepository
from campus_booking.services.local_time import format_local_date_time, to_local_iso_string

logger = logging.getLogger(__name__)


def _describe(booking: Booking) -> str:
    name = booking.resource_name or booking.resource_id
    return f"{name} on {format_local_date_time(booking.start_time)}"


class HandlerRegistry:
    """Wires booking-event handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        store: BookingStore,
        notification_repo: NotificationRepository,
        audit_repo: AuditLogRepository,
    ) -> None:
        self.bus = bus
        self.store = store
        self.notification_repo = notification_repo
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingApproved, self.on_booking_approved)
        self.bus.subscribe(BookingRejected, self.on_booking_rejected)
        self.bus.subscribe(BookingCancelled, self.on_booking_cancelled)

    def _load(self, booking_id: str) -> Booking | None:
        booking = self.store.get(booking_id)
        if booking is None:
            logger.warning("Event for unknown booking %s ignored", booking_id)
        return booking

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        booking = self._load(event.booking_id)
        if booking is None:
            return

        self.audit_repo.add(
            AuditLogEntry(
                booking_id=booking.id,
                user_id=booking.user_id,
                action="created",
                details=(
                    f"Requested {booking.resource_id} from "
                    f"{to_local_iso_string(booking.start_time)} to "
                    f"{to_local_iso_string(booking.end_time)}"
                ),
            )
        )
        self.notification_repo.add(
            Notification(
                user_id=booking.user_id,
                type=NotificationType.BOOKING_CONFIRMATION,
                title="Booking request received",
                message=f"Your booking for {_describe(booking)} is pending approval.",
                booking_id=booking.id,
            )
        )
        # System-wide: surfaced to every admin.
        self.notification_repo.add(
            Notification(
                user_id=None,
                type=NotificationType.APPROVAL_REQUEST,
                title="Booking awaiting approval",
                message=f"{booking.user_name or booking.user_id} requested {_describe(booking)}.",
                booking_id=booking.id,
            )
        )

    def on_booking_approved(self, event: BookingApproved) -> None:
        booking = self._load(event.booking_id)
        if booking is None:
            return

        self.audit_repo.add(
            AuditLogEntry(
                booking_id=booking.id, user_id=event.approved_by, action="approved"
            )
        )
        self.notification_repo.add(
            Notification(
                user_id=booking.user_id,
                type=NotificationType.BOOKING_APPROVED,
                title="Booking approved",
                message=f"Your booking for {_describe(booking)} was approved.",
                booking_id=booking.id,
            )
        )

    def on_booking_rejected(self, event: BookingRejected) -> None:
        booking = self._load(event.booking_id)
        if booking is None:
            return

        message = f"Your booking for {_describe(booking)} was rejected."
        if event.reason:
            message += f" Reason: {event.reason}"

        self.audit_repo.add(
            AuditLogEntry(
                booking_id=booking.id,
                user_id=event.rejected_by,
                action="rejected",
                details=event.reason or "",
            )
        )
        self.notification_repo.add(
            Notification(
                user_id=booking.user_id,
                type=NotificationType.BOOKING_REJECTED,
                title="Booking rejected",
                message=message,
                booking_id=booking.id,
            )
        )

    def on_booking_cancelled(self, event: BookingCancelled) -> None:
        booking = self._load(event.booking_id)
        if booking is None:
            return

        self.audit_repo.add(
            AuditLogEntry(
                booking_id=booking.id, user_id=event.cancelled_by, action="cancelled"
            )
        )
        by_owner = event.cancelled_by == booking.user_id
        self.notification_repo.add(
            Notification(
                user_id=booking.user_id,
                type=NotificationType.BOOKING_CANCELLATION,
                title="Booking cancelled",
                message=(
                    f"Your booking for {_describe(booking)} was cancelled"
                    + ("." if by_owner else " by an administrator.")
                ),
                booking_id=booking.id,
            )
        )
