"""Who may cancel a booking, and until when."""

from __future__ import annotations

from datetime import datetime, timedelta

from campus_booking.core.config import settings
from campus_booking.domain.models import Booking, BookingStatus, User

_TERMINAL = frozenset({BookingStatus.CANCELLED, BookingStatus.REJECTED})


def can_cancel(
    booking: Booking,
    acting_user: User,
    now: datetime,
    window_hours: float | None = None,
) -> bool:
    """True iff *acting_user* may cancel *booking* at *now*.

    The booking must not already be cancelled or rejected, must start
    strictly more than ``window_hours`` (default from settings) after *now*,
    and the actor must own it or be an admin.
    """
    if booking.status in _TERMINAL:
        return False

    hours = settings.CANCELLATION_WINDOW_HOURS if window_hours is None else window_hours
    if booking.start_time - now <= timedelta(hours=hours):
        return False

    return acting_user.id == booking.user_id or acting_user.is_admin
