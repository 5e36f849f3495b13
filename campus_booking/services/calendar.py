"""Calendar views: bookings bucketed by the local day they start on."""

from __future__ import annotations

from collections import defaultdict
from datetime import tzinfo
from typing import Iterable

from campus_booking.domain.models import Booking
from campus_booking.repos.base import BookingStore
from campus_booking.services.local_time import (
    create_local_instant,
    resolve_timezone,
    to_local_day_key,
)


def group_by_local_day(
    bookings: Iterable[Booking], tz: tzinfo | str | None = None
) -> dict[str, list[Booking]]:
    """Map ``YYYY-MM-DD`` (local start day) to that day's bookings, sorted by start."""
    zone = resolve_timezone(tz)
    days: dict[str, list[Booking]] = defaultdict(list)
    for booking in bookings:
        days[to_local_day_key(booking.start_time, zone)].append(booking)
    return {
        day: sorted(items, key=lambda b: b.start_time)
        for day, items in sorted(days.items())
    }


def bookings_for_day(
    store: BookingStore,
    resource_id: str,
    day: str,
    tz: tzinfo | str | None = None,
) -> list[Booking]:
    """Blocking bookings of *resource_id* whose start falls on local *day*."""
    zone = resolve_timezone(tz)
    # Rejects malformed day keys with InvalidInput.
    create_local_instant(day, "00:00", zone)
    return [
        b
        for b in sorted(
            store.fetch_bookings_for_resource(resource_id), key=lambda b: b.start_time
        )
        if b.is_blocking
        and b.resource_id == resource_id
        and to_local_day_key(b.start_time, zone) == day
    ]
