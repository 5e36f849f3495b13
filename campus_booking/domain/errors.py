"""Exception hierarchy for the booking domain."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from campus_booking.domain.models import Booking


class BookingError(Exception):
    """Base class for every error raised by the booking domain."""


class InvalidInput(BookingError, ValueError):
    """Malformed caller input, e.g. a date/time string that does not parse."""


class InvalidInterval(BookingError, ValueError):
    """A time interval whose end is not strictly after its start, or in the past."""


class StoreUnavailable(BookingError):
    """The booking store could not be reached or returned an error."""


class BookingNotFound(BookingError):
    pass


class ResourceNotFound(BookingError):
    pass


class ResourceUnavailable(BookingError):
    """The resource exists but cannot currently be booked (maintenance)."""


class PermissionDenied(BookingError):
    pass


class CancellationNotAllowed(BookingError):
    pass


class InvalidTransition(BookingError):
    """A status change that the booking lifecycle does not allow."""


class BookingConflict(BookingError):
    """Raised by the creation workflow when the candidate interval is taken."""

    def __init__(self, conflicts: list[Booking]) -> None:
        self.conflicts = conflicts
        super().__init__(
            f"Requested time overlaps {len(conflicts)} existing booking(s)"
        )
