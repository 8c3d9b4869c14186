"""
Recurring Feeding Schedule Engine
=================================

Pure computations over a FeedingSchedule and an explicit "now":

- is_active: the schedule is currently firing ([start_date, end_date))
- next_occurrence: soonest session instant strictly after now
- total_daily_amount: nominal feed quantity on a firing day
- validate_schedule: structural checks run before any of the above

next_occurrence scans forward one calendar day at a time and gives up after
SCAN_WINDOW_DAYS days. Schedules whose next firing lies further out report no
next occurrence; that bound is part of the contract relied on by listings
("no upcoming feedings") and sorting.
"""

from __future__ import annotations

import datetime
import logging
import re
from decimal import Decimal
from typing import Iterable

from app.domain.exceptions import InvalidScheduleError
from app.domain.feeding.schedule_entity import FeedingSchedule, NextFeeding
from app.enums.feeding import ScheduleInterval
from app.utils.time import resolve_timezone

logger = logging.getLogger(__name__)

SCAN_WINDOW_DAYS = 365
MIN_FEED_AMOUNT = Decimal("0.1")

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Week divisor per interval; daily schedules ignore the day-of-week mask.
_WEEK_PERIOD = {
    ScheduleInterval.WEEKLY: 1,
    ScheduleInterval.BIWEEKLY: 2,
    ScheduleInterval.FOUR_WEEKLY: 4,
}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def parse_session_time(value: str) -> datetime.time:
    """Parse a zero-padded 24-hour HH:MM string."""
    match = _TIME_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"time '{value}' must be in HH:MM 24-hour format")
    return datetime.time(hour=int(match.group(1)), minute=int(match.group(2)))


def schedule_errors(schedule: FeedingSchedule) -> list[str]:
    """
    Collect every structural problem of a schedule.

    The empty-sessions check comes first so callers can surface it before
    anything else. An end date at or before the start date is not an error;
    such a schedule is simply never active.
    """
    errors: list[str] = []

    if not schedule.sessions:
        errors.append("at least one feeding session is required")

    for index, session in enumerate(schedule.sessions):
        try:
            parse_session_time(session.time)
        except ValueError as exc:
            errors.append(f"session {index + 1}: {exc}")

        amount = session.feed_amount
        if not isinstance(amount, Decimal) or not amount.is_finite():
            errors.append(f"session {index + 1}: feed amount must be a number")
        elif amount < MIN_FEED_AMOUNT:
            errors.append(f"session {index + 1}: feed amount must be at least {MIN_FEED_AMOUNT}")

    if schedule.start_date is None:
        errors.append("start date is required")

    if not isinstance(schedule.interval, ScheduleInterval):
        errors.append(f"unknown interval '{schedule.interval}'")
    elif schedule.interval != ScheduleInterval.DAILY and not schedule.days_of_week:
        errors.append(f"days of week are required for {schedule.interval} schedules")

    for day in schedule.days_of_week:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            errors.append(f"day of week {day!r} must be 0-6 (Sunday-Saturday)")

    return errors


def validate_schedule(schedule: FeedingSchedule) -> None:
    """Raise InvalidScheduleError when the schedule breaks a structural rule."""
    errors = schedule_errors(schedule)
    if errors:
        raise InvalidScheduleError("; ".join(errors), detail={"errors": errors})


# ---------------------------------------------------------------------------
# Time alignment
# ---------------------------------------------------------------------------


def _evaluation_zone(schedule: FeedingSchedule, now: datetime.datetime) -> datetime.tzinfo | None:
    zone = resolve_timezone(schedule.timezone)
    if zone is not None:
        return zone
    if now.tzinfo is not None:
        return now.tzinfo
    return schedule.start_date.tzinfo if schedule.start_date else None


def _localize(value: datetime.datetime | None, zone: datetime.tzinfo | None) -> datetime.datetime | None:
    if value is None or zone is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def _midnight(value: datetime.datetime) -> datetime.datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def sunday_based_weekday(day: datetime.date) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return (day.weekday() + 1) % 7


def _day_matches(schedule: FeedingSchedule, day: datetime.date, start_day: datetime.date) -> bool:
    if day < start_day:
        return False
    if schedule.interval == ScheduleInterval.DAILY:
        return True
    if sunday_based_weekday(day) not in schedule.days_of_week:
        return False
    weeks_since_start = (day - start_day).days // 7
    return weeks_since_start % _WEEK_PERIOD[schedule.interval] == 0


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def is_active(schedule: FeedingSchedule, now: datetime.datetime) -> bool:
    """
    Check whether the schedule is currently firing.

    A schedule that starts in the future is not active yet. The end date is
    exclusive: at end_date == now the schedule is already inactive.
    """
    validate_schedule(schedule)
    zone = _evaluation_zone(schedule, now)
    now = _localize(now, zone)
    start = _localize(schedule.start_date, zone)
    end = _localize(schedule.end_date, zone)

    if now < start:
        return False
    return end is None or now < end


def total_daily_amount(schedule: FeedingSchedule) -> Decimal:
    """Sum of feed amounts across sessions, assuming the schedule fires that day."""
    validate_schedule(schedule)
    return sum((session.feed_amount for session in schedule.sessions), Decimal("0"))


def next_occurrence(
    schedule: FeedingSchedule,
    now: datetime.datetime,
    *,
    window_days: int = SCAN_WINDOW_DAYS,
) -> NextFeeding | None:
    """
    Find the soonest session instant strictly after ``now``.

    The scan starts at local midnight of the start date (when the schedule
    has not started yet) or of ``now``, and examines at most ``window_days``
    calendar days. Among the sessions of the first matching day that still
    lie ahead, the earliest wins; ties keep session order.

    Args:
        schedule: Schedule to evaluate
        now: Reference instant
        window_days: Number of calendar days examined from the scan start

    Returns:
        NextFeeding, or None when the schedule has elapsed or nothing fires
        inside the window.
    """
    validate_schedule(schedule)
    zone = _evaluation_zone(schedule, now)
    now = _localize(now, zone)
    start = _localize(schedule.start_date, zone)
    end = _localize(schedule.end_date, zone)

    if end is not None and end <= now:
        return None

    cursor = _midnight(start if now < start else now)
    start_day = start.date()
    session_times = [(session, parse_session_time(session.time)) for session in schedule.sessions]

    for _ in range(window_days):
        if _day_matches(schedule, cursor.date(), start_day):
            upcoming = [
                NextFeeding(date=cursor.replace(hour=at.hour, minute=at.minute), session=session)
                for session, at in session_times
            ]
            upcoming = [candidate for candidate in upcoming if candidate.date > now]
            if upcoming:
                return min(upcoming, key=lambda candidate: candidate.date)
        cursor += datetime.timedelta(days=1)

    return None


def next_occurrence_for_schedules(
    schedules: Iterable[FeedingSchedule],
    now: datetime.datetime,
) -> NextFeeding | None:
    """Earliest next occurrence across several schedules (invalid ones are skipped)."""
    found: list[NextFeeding] = []
    for schedule in schedules:
        try:
            occurrence = next_occurrence(schedule, now)
        except InvalidScheduleError as exc:
            logger.warning("Skipping invalid schedule %s: %s", schedule.schedule_id, exc)
            continue
        if occurrence is not None:
            found.append(occurrence)

    if not found:
        return None
    return min(found, key=lambda occurrence: occurrence.date)
