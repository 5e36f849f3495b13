"""Booking store backed by a Cloud Firestore collection."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from campus_booking.core.config import Settings
from campus_booking.domain.errors import StoreUnavailable
from campus_booking.domain.models import Booking

logger = logging.getLogger(__name__)


def create_firestore_client(settings: Settings) -> firestore.Client:
    """Build a Firestore client from settings (uses application default credentials)."""
    return firestore.Client(project=settings.FIRESTORE_PROJECT_ID)


class FirestoreBookingStore:
    """Reads and writes Booking documents in a single collection.

    Documents keep the camelCase field layout and ISO-8601 instant strings of
    ``Booking.to_document``. Any backend error surfaces as ``StoreUnavailable``;
    a document that fails validation does too, since skipping it could hide a
    conflicting reservation.
    """

    def __init__(self, client: Any, collection: str = "bookings") -> None:
        self._client = client
        self._collection_name = collection

    @property
    def _collection(self):
        return self._client.collection(self._collection_name)

    def _to_bookings(self, snapshots: Iterable[Any]) -> list[Booking]:
        bookings = []
        for snap in snapshots:
            try:
                bookings.append(Booking.from_document(snap.id, snap.to_dict() or {}))
            except ValidationError as exc:
                logger.error("Malformed booking document %s: %s", snap.id, exc)
                raise StoreUnavailable(f"Malformed booking document {snap.id}") from exc
        return bookings

    def _query(self, field: str, value: str) -> list[Booking]:
        try:
            snapshots = list(
                self._collection.where(filter=FieldFilter(field, "==", value)).stream()
            )
        except GoogleAPIError as exc:
            logger.error("Firestore query %s == %s failed: %s", field, value, exc)
            raise StoreUnavailable("Booking store query failed") from exc
        return self._to_bookings(snapshots)

    def fetch_bookings_for_resource(self, resource_id: str) -> list[Booking]:
        return self._query("resourceId", resource_id)

    def list_for_user(self, user_id: str) -> list[Booking]:
        return self._query("userId", user_id)

    def list_all(self) -> list[Booking]:
        try:
            snapshots = list(self._collection.stream())
        except GoogleAPIError as exc:
            logger.error("Firestore listing failed: %s", exc)
            raise StoreUnavailable("Booking store query failed") from exc
        return self._to_bookings(snapshots)

    def get(self, booking_id: str) -> Booking | None:
        try:
            snap = self._collection.document(booking_id).get()
        except GoogleAPIError as exc:
            logger.error("Firestore get %s failed: %s", booking_id, exc)
            raise StoreUnavailable("Booking store read failed") from exc
        if not snap.exists:
            return None
        return self._to_bookings([snap])[0]

    def add(self, booking: Booking) -> Booking:
        try:
            _, doc_ref = self._collection.add(booking.to_document())
        except GoogleAPIError as exc:
            logger.error("Firestore add failed: %s", exc)
            raise StoreUnavailable("Booking store write failed") from exc
        booking.id = doc_ref.id
        logger.info("Stored booking %s for resource %s", booking.id, booking.resource_id)
        return booking

    def update(self, booking: Booking, fields: Iterable[str]) -> None:
        """Write only *fields* (snake_case names) plus ``updatedAt``.

        Fields the model does not know about stay untouched in the document.
        """
        booking.updated_at = datetime.now(timezone.utc)
        changes = booking.model_dump(
            mode="json", by_alias=True, include=set(fields) | {"updated_at"}
        )
        try:
            self._collection.document(booking.id).update(changes)
        except GoogleAPIError as exc:
            logger.error("Firestore update %s failed: %s", booking.id, exc)
            raise StoreUnavailable("Booking store write failed") from exc
