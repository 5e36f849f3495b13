"""End-to-end tests for the HTTP surface."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from campus_booking.main import (
    app,
    audit_repo,
    booking_store,
    notification_repo,
)

STUDENT = {"X-User-Id": "stu-1", "X-User-Name": "Sam", "X-User-Role": "student"}
LECTURER = {"X-User-Id": "lec-1", "X-User-Name": "Lee", "X-User-Role": "Lecturer"}
ADMIN = {"X-User-Id": "adm-1", "X-User-Name": "Ada", "X-User-Role": "Admin"}

_DAY = (datetime.now(timezone.utc) + timedelta(days=10)).date().isoformat()


@pytest.fixture(autouse=True)
def _clear_repos():
    """Reset in-memory repos before each test."""
    booking_store._store.clear()
    notification_repo._items.clear()
    audit_repo._entries.clear()
    yield
    booking_store._store.clear()
    notification_repo._items.clear()
    audit_repo._entries.clear()


@pytest.fixture()
def client():
    return TestClient(app)


def _payload(**overrides) -> dict:
    payload = {
        "resourceId": "conference-room-b",
        "startDate": _DAY,
        "startTime": "10:00",
        "endTime": "11:00",
        "timezone": "UTC",
        "purpose": "Thesis committee",
        "attendees": 5,
    }
    payload.update(overrides)
    return payload


def _create(client: TestClient, headers: dict = STUDENT, **overrides) -> dict:
    resp = client.post("/bookings", json=_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Identity and resources
# ---------------------------------------------------------------------------


def test_identity_required(client):
    assert client.get("/bookings").status_code == 401


def test_unknown_role_rejected(client):
    resp = client.get("/bookings", headers={"X-User-Id": "x", "X-User-Role": "wizard"})
    assert resp.status_code == 401


def test_list_resources(client):
    resp = client.get("/resources")
    assert resp.status_code == 200
    names = [r["name"] for r in resp.json()]
    assert "Computer Lab A" in names
    studio = next(r for r in resp.json() if r["id"] == "multimedia-studio")
    assert studio["isUnderMaintenance"] is True


# ---------------------------------------------------------------------------
# Booking creation and conflicts
# ---------------------------------------------------------------------------


def test_create_booking(client):
    booking = _create(client)

    assert booking["status"] == "pending"
    assert booking["resourceId"] == "conference-room-b"
    assert booking["resourceName"] == "Conference Room B"
    assert booking["userId"] == "stu-1"
    assert datetime.fromisoformat(booking["startTime"]) == datetime.fromisoformat(
        f"{_DAY}T10:00:00+00:00"
    )


def test_overlapping_booking_returns_409_with_conflicts(client):
    first = _create(client)

    resp = client.post(
        "/bookings",
        json=_payload(startTime="10:30", endTime="11:30"),
        headers=LECTURER,
    )

    assert resp.status_code == 409
    body = resp.json()
    assert [c["id"] for c in body["conflicts"]] == [first["id"]]
    assert body["conflicts"][0]["status"] == "pending"
    assert len(booking_store.list_all()) == 1


def test_conflict_check_endpoint(client):
    first = _create(client)
    check = {k: v for k, v in _payload().items() if k not in ("purpose", "attendees")}

    resp = client.post("/bookings/conflicts", json=check, headers=LECTURER)
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()["conflicts"]] == [first["id"]]

    abutting = {**check, "startTime": "11:00", "endTime": "12:00"}
    resp = client.post("/bookings/conflicts", json=abutting, headers=LECTURER)
    assert resp.json() == {"conflicts": []}

    own = {**check, "excludeBookingId": first["id"]}
    resp = client.post("/bookings/conflicts", json=own, headers=STUDENT)
    assert resp.json() == {"conflicts": []}


def test_conflict_check_unknown_resource_returns_404(client):
    check = {k: v for k, v in _payload().items() if k not in ("purpose", "attendees")}
    check["resourceId"] = "nope"

    resp = client.post("/bookings/conflicts", json=check, headers=STUDENT)
    assert resp.status_code == 404


def test_conflict_check_reports_store_outage(client, monkeypatch):
    def _down(resource_id):
        raise ConnectionError("network unreachable")

    monkeypatch.setattr(booking_store, "fetch_bookings_for_resource", _down)
    check = {k: v for k, v in _payload().items() if k not in ("purpose", "attendees")}

    resp = client.post("/bookings/conflicts", json=check, headers=STUDENT)
    assert resp.status_code == 503
    assert "could not be verified" in resp.json()["detail"]

    resp = client.post("/bookings", json=_payload(), headers=STUDENT)
    assert resp.status_code == 503
    assert booking_store.list_all() == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"startTime": "25:00"},
        {"startDate": "2025-02-30"},
        {"startTime": "11:00", "endTime": "10:00"},
        {"timezone": "Nowhere/Special"},
        {"startDate": "2000-01-01"},
    ],
    ids=["bad-time", "bad-date", "reversed", "bad-zone", "past"],
)
def test_invalid_requests_are_400(client, overrides):
    resp = client.post("/bookings", json=_payload(**overrides), headers=STUDENT)
    assert resp.status_code == 400


def test_resource_errors(client):
    assert (
        client.post(
            "/bookings", json=_payload(resourceId="multimedia-studio"), headers=STUDENT
        ).status_code
        == 409
    )
    assert (
        client.post("/bookings", json=_payload(resourceId="nope"), headers=STUDENT).status_code
        == 404
    )


# ---------------------------------------------------------------------------
# Review, cancellation, visibility
# ---------------------------------------------------------------------------


def test_approval_flow(client):
    booking = _create(client)

    assert client.post(f"/bookings/{booking['id']}/approve", headers=STUDENT).status_code == 403

    resp = client.post(f"/bookings/{booking['id']}/approve", headers=ADMIN)
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert resp.json()["approvedBy"] == "adm-1"

    again = client.post(f"/bookings/{booking['id']}/reject", headers=ADMIN)
    assert again.status_code == 409


def test_reject_with_reason(client):
    booking = _create(client)
    resp = client.post(
        f"/bookings/{booking['id']}/reject", json={"reason": "Maintenance"}, headers=ADMIN
    )
    assert resp.status_code == 200
    assert resp.json()["rejectionReason"] == "Maintenance"


def test_cancel_flow(client):
    booking = _create(client)

    assert client.post(f"/bookings/{booking['id']}/cancel", headers=LECTURER).status_code == 403

    resp = client.post(f"/bookings/{booking['id']}/cancel", headers=STUDENT)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    # the freed slot can be booked again
    _create(client, headers=LECTURER)


def test_booking_visibility(client):
    booking = _create(client)
    _create(client, headers=LECTURER, startTime="14:00", endTime="15:00")

    assert client.get(f"/bookings/{booking['id']}", headers=STUDENT).status_code == 200
    assert client.get(f"/bookings/{booking['id']}", headers=LECTURER).status_code == 403
    assert client.get("/bookings/missing", headers=ADMIN).status_code == 404

    assert len(client.get("/bookings", headers=STUDENT).json()) == 1
    assert len(client.get("/bookings", headers=ADMIN).json()) == 2


# ---------------------------------------------------------------------------
# Calendar views and notifications
# ---------------------------------------------------------------------------


def test_calendar_groups_by_local_day(client):
    _create(client, startTime="23:00", endTime="23:30", timezone="America/Los_Angeles")

    utc_view = client.get("/bookings/calendar", params={"tz": "UTC"}, headers=STUDENT).json()
    la_view = client.get(
        "/bookings/calendar", params={"tz": "America/Los_Angeles"}, headers=STUDENT
    ).json()

    assert list(la_view) == [_DAY]
    assert list(utc_view) != [_DAY]


def test_resource_day_view(client):
    booking = _create(client)
    resp = client.get(
        "/resources/conference-room-b/bookings", params={"date": _DAY, "tz": "UTC"}
    )
    assert resp.status_code == 200
    assert [b["id"] for b in resp.json()] == [booking["id"]]

    assert client.get("/resources/nope/bookings", params={"date": _DAY}).status_code == 404


def test_notifications(client):
    _create(client)

    mine = client.get("/notifications", headers=STUDENT).json()
    assert [n["type"] for n in mine] == ["booking_confirmation"]

    admin = client.get("/notifications", headers=ADMIN).json()
    assert [n["type"] for n in admin] == ["approval_request"]
