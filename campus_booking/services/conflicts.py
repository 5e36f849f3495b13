"""Service for detecting booking conflicts on a resource."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from campus_booking.domain.errors import (
    BookingError,
    InvalidInput,
    InvalidInterval,
    StoreUnavailable,
)
from campus_booking.domain.models import Booking
from campus_booking.repos.base import BookingStore

logger = logging.getLogger(__name__)


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open interval overlap: ``[a_start, a_end)`` vs ``[b_start, b_end)``."""
    return a_start < b_end and b_start < a_end


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing_bookings: Iterable[Booking],
) -> list[Booking]:
    """Return blocking bookings that overlap the given time range, earliest first.

    Overlap rule: conflict if new_start < existing.end_time AND existing.start_time < new_end.
    Exact boundary touches (end == start) are NOT considered conflicts, and
    cancelled or rejected bookings never conflict.
    """
    conflicts = [
        booking
        for booking in existing_bookings
        if booking.is_blocking
        and overlaps(new_start, new_end, booking.start_time, booking.end_time)
    ]
    return sorted(conflicts, key=lambda b: b.start_time)


class ConflictChecker:
    """Answers "would this interval double-book the resource?" against a store.

    An empty result means the slot is free. Store failures raise
    ``StoreUnavailable`` and must never be read as "no conflict".
    """

    def __init__(self, store: BookingStore) -> None:
        self.store = store

    def check(
        self,
        resource_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: str | None = None,
    ) -> list[Booking]:
        if not resource_id:
            raise InvalidInput("resource_id must not be empty")
        if end_time <= start_time:
            raise InvalidInterval("end_time must be after start_time")

        try:
            bookings = self.store.fetch_bookings_for_resource(resource_id)
        except BookingError:
            raise
        except Exception as exc:
            logger.error("Booking fetch for resource %s failed: %s", resource_id, exc)
            raise StoreUnavailable(
                f"Could not load bookings for resource {resource_id}"
            ) from exc

        candidates = [
            b
            for b in bookings
            if b.resource_id == resource_id
            and (exclude_booking_id is None or b.id != exclude_booking_id)
        ]
        conflicts = find_conflicts(start_time, end_time, candidates)

        logger.debug(
            "Checked %s [%s, %s): %d booking(s), %d conflict(s)",
            resource_id,
            start_time.isoformat(),
            end_time.isoformat(),
            len(candidates),
            len(conflicts),
        )
        if conflicts:
            logger.warning(
                "Resource %s is taken for [%s, %s) by %s",
                resource_id,
                start_time.isoformat(),
                end_time.isoformat(),
                ", ".join(str(c.id) for c in conflicts),
            )
        return conflicts
