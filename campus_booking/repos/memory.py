"""In-memory repositories for bookings, resources, notifications and audit logs."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable

from campus_booking.domain.models import (
    AuditLogEntry,
    Booking,
    Notification,
    Resource,
    ResourceType,
)


class InMemoryBookingStore:
    """Dict-backed booking store, keyed by id.

    Used by default when no external store is configured, and as the fake
    store in tests.
    """

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    def fetch_bookings_for_resource(self, resource_id: str) -> list[Booking]:
        return [b for b in self._store.values() if b.resource_id == resource_id]

    def add(self, booking: Booking) -> Booking:
        if booking.id is None:
            booking.id = str(uuid.uuid4())
        self._store[booking.id] = booking
        return booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def update(self, booking: Booking, fields: Iterable[str]) -> None:
        # The stored object is the live instance, so every field is current.
        booking.updated_at = datetime.now(timezone.utc)
        self._store[booking.id] = booking

    def list_all(self) -> list[Booking]:
        return list(self._store.values())

    def list_for_user(self, user_id: str) -> list[Booking]:
        return [b for b in self._store.values() if b.user_id == user_id]


class ResourceRepository:
    """Dict-backed store for Resource instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Resource] = {}

    def add(self, resource: Resource) -> None:
        self._store[resource.id] = resource

    def get(self, resource_id: str) -> Resource | None:
        return self._store.get(resource_id)

    def list_all(self) -> list[Resource]:
        return sorted(self._store.values(), key=lambda r: r.name)


class NotificationRepository:
    """List-backed store for Notification instances."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def add(self, notification: Notification) -> None:
        self._items.append(notification)

    def list_for_user(self, user_id: str, include_system: bool = False) -> list[Notification]:
        """Notifications addressed to *user_id*, newest first.

        With *include_system*, system-wide notifications are included too.
        """
        items = [
            n
            for n in self._items
            if n.user_id == user_id or (include_system and n.user_id is None)
        ]
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def list_for_booking(self, booking_id: str) -> list[Notification]:
        return [n for n in self._items if n.booking_id == booking_id]


class AuditLogRepository:
    """Append-only store for AuditLogEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    def add(self, entry: AuditLogEntry) -> None:
        self._entries.append(entry)

    def list_for_booking(self, booking_id: str) -> list[AuditLogEntry]:
        return sorted(
            [e for e in self._entries if e.booking_id == booking_id],
            key=lambda e: e.timestamp,
        )


# ---------------------------------------------------------------------------
# Seed data – a handful of campus resources
# ---------------------------------------------------------------------------


def _seed_resources(repo: ResourceRepository) -> None:
    repo.add(
        Resource(
            id="computer-lab-a",
            name="Computer Lab A",
            type=ResourceType.LAB,
            category="Computer Lab",
            location="Building A, Room 101",
            capacity=25,
            features=["Projector", "Whiteboard", "25 Computers"],
        )
    )
    repo.add(
        Resource(
            id="conference-room-b",
            name="Conference Room B",
            type=ResourceType.ROOM,
            category="Meeting Room",
            location="Building B, Room 205",
            capacity=15,
            features=["Video Conferencing", "Smart Board"],
        )
    )
    repo.add(
        Resource(
            id="science-lab",
            name="Science Lab",
            type=ResourceType.LAB,
            category="Laboratory",
            location="Building C, Room 301",
            capacity=20,
            features=["Fume Hood", "Safety Shower"],
        )
    )
    repo.add(
        Resource(
            id="library-study-room-1",
            name="Library Study Room 1",
            type=ResourceType.ROOM,
            category="Study Room",
            location="Library, Floor 2, Room 201",
            capacity=8,
        )
    )
    repo.add(
        Resource(
            id="multimedia-studio",
            name="Multimedia Studio",
            type=ResourceType.ROOM,
            category="Studio",
            location="Building D, Room 105",
            capacity=12,
            is_under_maintenance=True,
            maintenance_note="Lighting rig being replaced",
        )
    )


def create_resource_repository(seed: bool = True) -> ResourceRepository:
    """Return a ResourceRepository, optionally pre-loaded with sample data."""
    repo = ResourceRepository()
    if seed:
        _seed_resources(repo)
    return repo
