"""Domain models for the campus booking system."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class BookingStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Statuses that hold a real reservation and can therefore conflict.
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.APPROVED})


class UserRole(StrEnum):
    ADMIN = "admin"
    LECTURER = "lecturer"
    STUDENT = "student"


class ResourceType(StrEnum):
    ROOM = "room"
    LAB = "lab"
    EQUIPMENT = "equipment"
    VEHICLE = "vehicle"


class NotificationType(StrEnum):
    BOOKING_CONFIRMATION = "booking_confirmation"
    BOOKING_CANCELLATION = "booking_cancellation"
    APPROVAL_REQUEST = "approval_request"
    BOOKING_APPROVED = "booking_approved"
    BOOKING_REJECTED = "booking_rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _normalize_role(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class CamelModel(BaseModel):
    """Base for models whose wire/store field names are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class User(CamelModel):
    """The acting user, as asserted by the external identity provider."""

    id: str = Field(min_length=1)
    name: str = ""
    role: UserRole = UserRole.STUDENT

    @field_validator("role", mode="before")
    @classmethod
    def _role_case_insensitive(cls, value: Any) -> Any:
        return _normalize_role(value)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Booking(CamelModel):
    id: str | None = None
    resource_id: str = Field(min_length=1)
    resource_name: str | None = None
    user_id: str
    user_name: str = ""
    user_role: UserRole = UserRole.STUDENT
    start_time: AwareDatetime
    end_time: AwareDatetime
    purpose: str = ""
    attendees: int | None = Field(default=None, ge=0)
    status: BookingStatus = BookingStatus.PENDING
    approved_by: str | None = None
    approved_at: AwareDatetime | None = None
    rejection_reason: str | None = None
    cancelled_by: str | None = None
    created_at: AwareDatetime = Field(default_factory=_utcnow)
    updated_at: AwareDatetime = Field(default_factory=_utcnow)

    @field_validator("user_role", mode="before")
    @classmethod
    def _user_role_case_insensitive(cls, value: Any) -> Any:
        return _normalize_role(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> Booking:
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Booking:
        """Validate a raw store document into a Booking."""
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> dict[str, Any]:
        """Serialize to the store's field layout (camelCase, ISO-8601 instants)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})


class Resource(CamelModel):
    id: str = Field(default_factory=_new_id)
    name: str
    type: ResourceType
    category: str = ""
    location: str = ""
    capacity: int | None = Field(default=None, ge=0)
    description: str | None = None
    features: list[str] = Field(default_factory=list)
    is_under_maintenance: bool = False
    maintenance_note: str | None = None


class Notification(CamelModel):
    id: str = Field(default_factory=_new_id)
    # None means a system-wide notification (e.g. for all admins).
    user_id: str | None = None
    type: NotificationType
    title: str
    message: str
    is_read: bool = False
    booking_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class AuditLogEntry(CamelModel):
    id: str = Field(default_factory=_new_id)
    booking_id: str
    user_id: str
    action: str
    details: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class BookingRequest(CamelModel):
    """Booking form input: a local calendar date plus wall-clock start/end."""

    resource_id: str = Field(min_length=1)
    start_date: str
    start_time: str
    end_time: str
    timezone: str | None = None
    purpose: str
    attendees: int | None = Field(default=None, ge=0)


class ConflictCheckRequest(CamelModel):
    resource_id: str = Field(min_length=1)
    start_date: str
    start_time: str
    end_time: str
    timezone: str | None = None
    exclude_booking_id: str | None = None


class ConflictCheckResponse(CamelModel):
    conflicts: list[Booking] = Field(default_factory=list)


class RejectBookingRequest(CamelModel):
    reason: str | None = None
