"""Domain events emitted during the booking lifecycle."""

from __future__ import annotations

from pydantic import BaseModel


class BookingCreated(BaseModel):
    """Fired after a new pending booking is written to the store."""

    booking_id: str


class BookingApproved(BaseModel):
    booking_id: str
    approved_by: str


class BookingRejected(BaseModel):
    booking_id: str
    rejected_by: str
    reason: str | None = None


class BookingCancelled(BaseModel):
    """Fired when the owner or an admin cancels a booking."""

    booking_id: str
    cancelled_by: str
