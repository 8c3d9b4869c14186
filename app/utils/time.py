"""Utility functions for time handling.

Timestamps crossing the persistence and HTTP boundaries are UTC and
timezone-aware, serialized as ISO-8601 strings with an offset. Calendar
arithmetic for feeding schedules happens in the feeder's own timezone.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if TYPE_CHECKING:
    from app.domain.feeding.schedule_entity import NextFeeding

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "{month} {day}, {year} {hour}:{minute:02d} {meridiem}"


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 string (a trailing ``Z`` is accepted) or pass a datetime
    through unchanged. Naive values stay naive.

    Returns:
        The parsed datetime, or None when the value is empty or malformed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    parsed = parse_datetime(value)
    if parsed is None:
        return None

    if parsed.tzinfo is not None:
        return parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=timezone.utc)


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Return a ZoneInfo for ``name``; unknown names are logged and ignored."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Invalid timezone '%s' for schedule evaluation", name)
        return None


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _format_display(value: datetime, with_zone: bool) -> str:
    hour = value.hour % 12 or 12
    text = DISPLAY_FORMAT.format(
        month=value.strftime("%b"),
        day=value.day,
        year=value.year,
        hour=hour,
        minute=value.minute,
        meridiem="AM" if value.hour < 12 else "PM",
    )
    if with_zone:
        text = f"{text} {value.tzname()}"
    return text


def format_next_feeding(next_feeding: "NextFeeding", timezone_name: str) -> str:
    """
    Format a next feeding for display in the feeder's timezone.

    Naive dates are taken as UTC instants. When the timezone cannot be
    resolved, the date is formatted as-is without a zone abbreviation.

    Example:
        "Dec 25, 2024 8:00 AM AEDT"
    """
    value = next_feeding.date
    zone = resolve_timezone(timezone_name)
    if zone is None:
        logger.warning("Failed to format time in timezone %s, using local time", timezone_name)
        return _format_display(value, with_zone=False)

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return _format_display(value.astimezone(zone), with_zone=True)
