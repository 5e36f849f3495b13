"""Conversion between local wall-clock input and absolute instants.

Every place that turns a form's ``(date, time)`` pair into a datetime, or a
stored instant back into a calendar day or display string, goes through this
module. Comparing and bucketing then always happens on timezone-aware values,
so the day a user picked stays the day they see.

The timezone is resolved from, in order: the ``tz`` argument (a ``tzinfo`` or
an IANA name), ``settings.LOCAL_TIMEZONE``, and finally the process's local
zone.
"""

from __future__ import annotations

import re
from datetime import datetime, tzinfo

from dateutil import tz as dateutil_tz

from campus_booking.core.config import settings
from campus_booking.domain.errors import InvalidInput

_INPUT_FORMAT = "%Y-%m-%d %H:%M"
_DATE_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_TIME_SHAPE = re.compile(r"[0-9]{2}:[0-9]{2}")


def resolve_timezone(tz: tzinfo | str | None = None) -> tzinfo:
    """Return a concrete ``tzinfo`` for *tz*, falling back to configuration."""
    if isinstance(tz, tzinfo):
        return tz
    name = tz or settings.LOCAL_TIMEZONE
    if not name:
        return dateutil_tz.tzlocal()
    zone = dateutil_tz.gettz(name)
    if zone is None:
        raise InvalidInput(f"Unknown timezone: {name!r}")
    return zone


def create_local_instant(
    date_str: str, time_str: str, tz: tzinfo | str | None = None
) -> datetime:
    """Interpret ``YYYY-MM-DD`` + ``HH:MM`` as wall-clock time in *tz*.

    Returns a timezone-aware datetime. Raises ``InvalidInput`` when the pair
    is not a valid calendar date and time. A wall-clock time skipped by a DST
    transition is moved forward to the first instant that exists.
    """
    zone = resolve_timezone(tz)
    # strptime alone accepts "2025-3-1" and "9:5".
    if not (
        isinstance(date_str, str)
        and isinstance(time_str, str)
        and _DATE_SHAPE.fullmatch(date_str)
        and _TIME_SHAPE.fullmatch(time_str)
    ):
        raise InvalidInput(f"Invalid date or time: {date_str!r} {time_str!r}")
    try:
        naive = datetime.strptime(f"{date_str} {time_str}", _INPUT_FORMAT)
    except ValueError as exc:
        raise InvalidInput(
            f"Invalid date or time: {date_str!r} {time_str!r}"
        ) from exc

    local = naive.replace(tzinfo=zone)
    if not dateutil_tz.datetime_exists(local):
        local = dateutil_tz.resolve_imaginary(local)
    return local


def to_local(instant: datetime, tz: tzinfo | str | None = None) -> datetime:
    """Express an aware *instant* in the resolved local zone."""
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidInput("Expected a timezone-aware instant")
    return instant.astimezone(resolve_timezone(tz))


def to_local_day_key(instant: datetime, tz: tzinfo | str | None = None) -> str:
    """Return the local calendar day of *instant* as ``YYYY-MM-DD``."""
    return to_local(instant, tz).strftime("%Y-%m-%d")


def _clock(local: datetime) -> str:
    hour12 = local.hour % 12 or 12
    suffix = "PM" if local.hour >= 12 else "AM"
    return f"{hour12}:{local.minute:02d} {suffix}"


def format_local_time(instant: datetime, tz: tzinfo | str | None = None) -> str:
    """Format as ``h:mm AM`` in local time, e.g. ``9:05 PM``."""
    return _clock(to_local(instant, tz))


def format_local_date_time(
    instant: datetime, tz: tzinfo | str | None = None
) -> str:
    """Format as ``M/D/YYYY, h:mm AM`` in local time, e.g. ``3/10/2025, 9:30 AM``."""
    local = to_local(instant, tz)
    return f"{local.month}/{local.day}/{local.year}, {_clock(local)}"


def to_local_iso_string(instant: datetime, tz: tzinfo | str | None = None) -> str:
    """ISO-8601 string that keeps the local wall-clock time and its UTC offset."""
    return to_local(instant, tz).isoformat(timespec="milliseconds")
