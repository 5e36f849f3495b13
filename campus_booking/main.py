"""FastAPI application: entry point for the campus booking service."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from campus_booking.core.config import configure_logging, settings
from campus_booking.domain.bus import EventBus
from campus_booking.domain.errors import (
    BookingConflict,
    BookingError,
    BookingNotFound,
    CancellationNotAllowed,
    InvalidInput,
    InvalidInterval,
    InvalidTransition,
    PermissionDenied,
    ResourceNotFound,
    ResourceUnavailable,
    StoreUnavailable,
)
from campus_booking.domain.handlers import HandlerRegistry
from campus_booking.domain.models import (
    Booking,
    BookingRequest,
    ConflictCheckRequest,
    ConflictCheckResponse,
    Notification,
    RejectBookingRequest,
    Resource,
    User,
)
from campus_booking.repos.base import BookingStore
from campus_booking.repos.memory import (
    AuditLogRepository,
    InMemoryBookingStore,
    NotificationRepository,
    create_resource_repository,
)
from campus_booking.services.bookings import BookingService
from campus_booking.services.calendar import bookings_for_day, group_by_local_day
from campus_booking.services.local_time import create_local_instant

configure_logging()
logger = logging.getLogger(__name__)


def _create_store() -> BookingStore:
    if settings.BOOKING_STORE == "firestore":
        from campus_booking.repos.firestore import (
            FirestoreBookingStore,
            create_firestore_client,
        )

        return FirestoreBookingStore(
            create_firestore_client(settings), settings.FIRESTORE_BOOKINGS_COLLECTION
        )
    return InMemoryBookingStore()


app = FastAPI(title=settings.PROJECT_NAME)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
booking_store = _create_store()
resource_repo = create_resource_repository(seed=settings.SEED_SAMPLE_DATA)
notification_repo = NotificationRepository()
audit_repo = AuditLogRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    store=booking_store,
    notification_repo=notification_repo,
    audit_repo=audit_repo,
)
booking_service = BookingService(
    store=booking_store, resources=resource_repo, bus=event_bus
)


# ── Error mapping ─────────────────────────────────────────────────────

_STATUS_CODES: dict[type[BookingError], int] = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    InvalidInterval: status.HTTP_400_BAD_REQUEST,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    CancellationNotAllowed: status.HTTP_403_FORBIDDEN,
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    ResourceNotFound: status.HTTP_404_NOT_FOUND,
    ResourceUnavailable: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
}


@app.exception_handler(BookingConflict)
def _booking_conflict_handler(request: Request, exc: BookingConflict) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "conflicts": [
                c.model_dump(mode="json", by_alias=True) for c in exc.conflicts
            ],
        },
    )


@app.exception_handler(StoreUnavailable)
def _store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    logger.error("Store unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Availability could not be verified. Please try again later."},
    )


@app.exception_handler(BookingError)
def _booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    code = _STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content={"detail": str(exc)})


# ── Dependencies ──────────────────────────────────────────────────────


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_name: str = Header(default=""),
    x_user_role: str = Header(default="student"),
) -> User:
    """Identity as asserted by the upstream identity provider's gateway."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity"
        )
    try:
        return User(id=x_user_id, name=x_user_name, role=x_user_role)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user identity"
        ) from exc


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/resources", response_model=list[Resource])
def list_resources() -> list[Resource]:
    """Return all bookable resources."""
    return resource_repo.list_all()


@app.get("/resources/{resource_id}/bookings", response_model=list[Booking])
def list_resource_bookings(
    resource_id: str, date: str, tz: str | None = None
) -> list[Booking]:
    """Return the active bookings of a resource starting on a local day."""
    if resource_repo.get(resource_id) is None:
        raise ResourceNotFound(f"Resource {resource_id} not found")
    return bookings_for_day(booking_store, resource_id, date, tz)


@app.post("/bookings/conflicts", response_model=ConflictCheckResponse)
def check_conflicts(
    body: ConflictCheckRequest, user: User = Depends(get_current_user)
) -> ConflictCheckResponse:
    """Return the active bookings that overlap a candidate interval."""
    if resource_repo.get(body.resource_id) is None:
        raise ResourceNotFound(f"Resource {body.resource_id} not found")
    start = create_local_instant(body.start_date, body.start_time, body.timezone)
    end = create_local_instant(body.start_date, body.end_time, body.timezone)
    conflicts = booking_service.check_conflicts(
        body.resource_id, start, end, body.exclude_booking_id
    )
    return ConflictCheckResponse(conflicts=conflicts)


@app.post("/bookings", response_model=Booking, status_code=201)
def create_booking(
    body: BookingRequest, user: User = Depends(get_current_user)
) -> Booking:
    """Create a pending booking; 409 with the conflicting bookings on a clash."""
    return booking_service.create_booking(body, user)


@app.get("/bookings", response_model=list[Booking])
def list_bookings(user: User = Depends(get_current_user)) -> list[Booking]:
    return booking_service.list_bookings(user)


@app.get("/bookings/calendar", response_model=dict[str, list[Booking]])
def booking_calendar(
    tz: str | None = None, user: User = Depends(get_current_user)
) -> dict[str, list[Booking]]:
    """Return the visible bookings grouped by the local day they start on."""
    return group_by_local_day(booking_service.list_bookings(user), tz)


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str, user: User = Depends(get_current_user)) -> Booking:
    return booking_service.get_visible_booking(booking_id, user)


@app.post("/bookings/{booking_id}/approve", response_model=Booking)
def approve_booking(booking_id: str, user: User = Depends(get_current_user)) -> Booking:
    return booking_service.approve_booking(booking_id, user)


@app.post("/bookings/{booking_id}/reject", response_model=Booking)
def reject_booking(
    booking_id: str,
    body: RejectBookingRequest | None = None,
    user: User = Depends(get_current_user),
) -> Booking:
    reason = body.reason if body else None
    return booking_service.reject_booking(booking_id, user, reason)


@app.post("/bookings/{booking_id}/cancel", response_model=Booking)
def cancel_booking(booking_id: str, user: User = Depends(get_current_user)) -> Booking:
    """Cancel a booking while it is still outside the cancellation window."""
    return booking_service.cancel_booking(booking_id, user)


@app.get("/notifications", response_model=list[Notification])
def list_notifications(user: User = Depends(get_current_user)) -> list[Notification]:
    """Return the caller's notifications; admins also see system-wide ones."""
    return notification_repo.list_for_user(user.id, include_system=user.is_admin)
