"""Tests for local wall-clock <-> instant conversion."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import pytest
from dateutil import tz

from campus_booking.core.config import settings
from campus_booking.domain.errors import InvalidInput
from campus_booking.services.local_time import (
    create_local_instant,
    format_local_date_time,
    format_local_time,
    resolve_timezone,
    to_local_day_key,
    to_local_iso_string,
)

UTC = tz.tzoffset("UTC", 0)
IST = tz.tzoffset("IST", int(timedelta(hours=5, minutes=30).total_seconds()))
PST = tz.tzoffset("PST", int(timedelta(hours=-8).total_seconds()))


@pytest.fixture(autouse=True)
def _no_configured_zone(monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_TIMEZONE", None)


# ---------------------------------------------------------------------------
# create_local_instant / to_local_day_key
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("zone", [UTC, IST, PST], ids=["utc", "utc+5:30", "utc-8"])
def test_day_key_round_trip(zone):
    instant = create_local_instant("2025-03-10", "09:30", zone)
    assert to_local_day_key(instant, zone) == "2025-03-10"


@pytest.mark.parametrize("zone", [UTC, IST, PST], ids=["utc", "utc+5:30", "utc-8"])
@pytest.mark.parametrize("clock", ["00:00", "00:15", "23:45"])
def test_day_key_round_trip_near_midnight(zone, clock):
    """Times whose UTC instant falls on a neighbouring day keep the local day."""
    instant = create_local_instant("2025-03-10", clock, zone)
    assert to_local_day_key(instant, zone) == "2025-03-10"


def test_instant_is_absolute():
    ist = create_local_instant("2025-03-10", "09:30", IST)
    pst = create_local_instant("2025-03-09", "20:00", PST)
    assert ist.astimezone(timezone.utc) == datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)
    assert pst == datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)


def test_timezone_by_name():
    instant = create_local_instant("2025-07-01", "12:00", "Asia/Kolkata")
    assert instant.astimezone(timezone.utc) == datetime(2025, 7, 1, 6, 30, tzinfo=timezone.utc)


def test_configured_timezone_is_default(monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_TIMEZONE", "America/Los_Angeles")
    instant = create_local_instant("2025-01-15", "23:30")
    assert instant.astimezone(timezone.utc).date().isoformat() == "2025-01-16"
    assert to_local_day_key(instant) == "2025-01-15"


@pytest.fixture()
def process_tz(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def _set(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield _set
    monkeypatch.undo()
    time.tzset()


@pytest.mark.parametrize("posix_tz", ["UTC0", "IST-5:30", "PST8"])
def test_round_trip_uses_process_zone(process_tz, posix_tz):
    process_tz(posix_tz)
    instant = create_local_instant("2025-03-10", "09:30")
    assert to_local_day_key(instant) == "2025-03-10"


def test_dst_gap_moves_forward():
    """02:30 does not exist in New York on 2025-03-09; it becomes 03:30 EDT."""
    instant = create_local_instant("2025-03-09", "02:30", "America/New_York")
    assert (instant.hour, instant.minute) == (3, 30)
    assert instant.astimezone(timezone.utc) == datetime(2025, 3, 9, 7, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "date_str, time_str",
    [
        ("2025-02-30", "09:30"),
        ("2025-03-10", "25:00"),
        ("2025/03/10", "09:30"),
        ("2025-03-10", "9:30am"),
        ("", "09:30"),
        ("2025-03-10", ""),
        ("2025-3-1", "09:30"),
        ("2025-03-10", "9:5"),
        ("2025-03-10", "9:30"),
        (" 2025-03-10", "09:30"),
        ("2025-03-10", "09:30 "),
        (None, "09:30"),
    ],
)
def test_invalid_input(date_str, time_str):
    with pytest.raises(InvalidInput):
        create_local_instant(date_str, time_str, UTC)


def test_unknown_timezone():
    with pytest.raises(InvalidInput, match="Unknown timezone"):
        resolve_timezone("Mars/Olympus_Mons")


def test_naive_instant_rejected():
    with pytest.raises(InvalidInput):
        to_local_day_key(datetime(2025, 3, 10, 9, 30), UTC)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "hour, minute, expected",
    [(0, 0, "12:00 AM"), (9, 5, "9:05 AM"), (12, 0, "12:00 PM"), (21, 45, "9:45 PM")],
)
def test_format_local_time(hour, minute, expected):
    instant = datetime(2025, 3, 10, hour, minute, tzinfo=timezone.utc)
    assert format_local_time(instant, UTC) == expected


def test_format_local_date_time_in_zone():
    instant = datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)
    assert format_local_date_time(instant, IST) == "3/10/2025, 9:30 AM"
    assert format_local_date_time(instant, PST) == "3/9/2025, 8:00 PM"


def test_to_local_iso_string_keeps_offset():
    instant = datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)
    assert to_local_iso_string(instant, IST) == "2025-03-10T09:30:00.000+05:30"
    assert to_local_iso_string(instant, PST) == "2025-03-09T20:00:00.000-08:00"
