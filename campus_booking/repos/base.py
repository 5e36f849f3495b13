"""Interface every booking store implements."""

from __future__ import annotations

from typing import Iterable, Protocol

from campus_booking.domain.models import Booking


class BookingStore(Protocol):
    """Persistence for bookings. Implementations raise ``StoreUnavailable``
    when the backend cannot be reached."""

    def fetch_bookings_for_resource(self, resource_id: str) -> list[Booking]:
        """All bookings (any status) for *resource_id*, in any order."""
        ...

    def add(self, booking: Booking) -> Booking:
        """Persist a new booking and return it with its store-assigned id."""
        ...

    def get(self, booking_id: str) -> Booking | None: ...

    def update(self, booking: Booking, fields: Iterable[str]) -> None:
        """Persist the named (snake_case) fields of an existing booking."""
        ...

    def list_all(self) -> list[Booking]: ...

    def list_for_user(self, user_id: str) -> list[Booking]: ...
