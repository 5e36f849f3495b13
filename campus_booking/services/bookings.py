"""Booking workflow: create, approve, reject and cancel."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from campus_booking.domain.bus import EventBus
from campus_booking.domain.errors import (
    BookingConflict,
    BookingNotFound,
    CancellationNotAllowed,
    InvalidInput,
    InvalidInterval,
    InvalidTransition,
    PermissionDenied,
    ResourceNotFound,
    ResourceUnavailable,
)
from campus_booking.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCreated,
    BookingRejected,
)
from campus_booking.domain.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    User,
)
from campus_booking.repos.base import BookingStore
from campus_booking.repos.memory import ResourceRepository
from campus_booking.services.cancellation import can_cancel
from campus_booking.services.conflicts import ConflictChecker
from campus_booking.services.local_time import create_local_instant

logger = logging.getLogger(__name__)


class ResourceLocks:
    """One lock per resource id, so check-then-write runs one writer at a time."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def hold(self, resource_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks[resource_id]
        with lock:
            yield


class BookingService:
    def __init__(
        self,
        store: BookingStore,
        resources: ResourceRepository,
        bus: EventBus,
        locks: ResourceLocks | None = None,
    ) -> None:
        self.store = store
        self.resources = resources
        self.bus = bus
        self.locks = locks or ResourceLocks()
        self.checker = ConflictChecker(store)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.store.get(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return booking

    def get_visible_booking(self, booking_id: str, user: User) -> Booking:
        """Like ``get_booking`` but only the owner or an admin may see it."""
        booking = self.get_booking(booking_id)
        if not user.is_admin and booking.user_id != user.id:
            raise PermissionDenied("Not allowed to view this booking")
        return booking

    def list_bookings(self, user: User) -> list[Booking]:
        """Admins see every booking, everyone else their own; newest first."""
        if user.is_admin:
            bookings = self.store.list_all()
        else:
            bookings = self.store.list_for_user(user.id)
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    def check_conflicts(
        self,
        resource_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: str | None = None,
    ) -> list[Booking]:
        return self.checker.check(resource_id, start_time, end_time, exclude_booking_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_booking(
        self, request: BookingRequest, user: User, now: datetime | None = None
    ) -> Booking:
        """Create a pending booking, refusing if the slot is already taken.

        Raises ``BookingConflict`` when the interval overlaps a blocking
        booking, and lets ``StoreUnavailable`` propagate without writing.
        """
        now = now or datetime.now(timezone.utc)

        resource = self.resources.get(request.resource_id)
        if resource is None:
            raise ResourceNotFound(f"Resource {request.resource_id} not found")
        if resource.is_under_maintenance:
            raise ResourceUnavailable(
                f"{resource.name} is under maintenance"
                + (f": {resource.maintenance_note}" if resource.maintenance_note else "")
            )
        if not request.purpose.strip():
            raise InvalidInput("Purpose is required")

        start = create_local_instant(request.start_date, request.start_time, request.timezone)
        end = create_local_instant(request.start_date, request.end_time, request.timezone)
        if end <= start:
            raise InvalidInterval("End time must be after start time")
        if start < now:
            raise InvalidInterval("Cannot book in the past")

        with self.locks.hold(resource.id):
            conflicts = self.checker.check(resource.id, start, end)
            if conflicts:
                raise BookingConflict(conflicts)

            booking = self.store.add(
                Booking(
                    resource_id=resource.id,
                    resource_name=resource.name,
                    user_id=user.id,
                    user_name=user.name,
                    user_role=user.role,
                    start_time=start,
                    end_time=end,
                    purpose=request.purpose.strip(),
                    attendees=request.attendees,
                    status=BookingStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                )
            )

        logger.info(
            "Booking %s created for %s by %s", booking.id, resource.id, user.id
        )
        self.bus.publish(BookingCreated(booking_id=booking.id))
        return booking

    def _require_pending_for_admin(self, booking_id: str, user: User) -> Booking:
        if not user.is_admin:
            raise PermissionDenied("Only administrators can review bookings")
        booking = self.get_booking(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransition(f"Booking is already {booking.status}")
        return booking

    def approve_booking(
        self, booking_id: str, user: User, now: datetime | None = None
    ) -> Booking:
        booking = self._require_pending_for_admin(booking_id, user)
        booking.status = BookingStatus.APPROVED
        booking.approved_by = user.id
        booking.approved_at = now or datetime.now(timezone.utc)
        self.store.update(booking, ("status", "approved_by", "approved_at"))

        logger.info("Booking %s approved by %s", booking.id, user.id)
        self.bus.publish(BookingApproved(booking_id=booking.id, approved_by=user.id))
        return booking

    def reject_booking(
        self, booking_id: str, user: User, reason: str | None = None
    ) -> Booking:
        booking = self._require_pending_for_admin(booking_id, user)
        booking.status = BookingStatus.REJECTED
        booking.rejection_reason = reason
        self.store.update(booking, ("status", "rejection_reason"))

        logger.info("Booking %s rejected by %s", booking.id, user.id)
        self.bus.publish(
            BookingRejected(booking_id=booking.id, rejected_by=user.id, reason=reason)
        )
        return booking

    def cancel_booking(
        self, booking_id: str, user: User, now: datetime | None = None
    ) -> Booking:
        now = now or datetime.now(timezone.utc)
        booking = self.get_booking(booking_id)
        if not can_cancel(booking, user, now):
            raise CancellationNotAllowed(
                "Bookings can only be cancelled by their owner or an administrator, "
                "and only while the start is more than the cancellation window away"
            )
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_by = user.id
        self.store.update(booking, ("status", "cancelled_by"))

        logger.info("Booking %s cancelled by %s", booking.id, user.id)
        self.bus.publish(BookingCancelled(booking_id=booking.id, cancelled_by=user.id))
        return booking
