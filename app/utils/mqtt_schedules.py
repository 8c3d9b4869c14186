"""
Conversion of feeding schedules into the payload feeders expect on
``<device_id>/writeDataRequest``.

Each session becomes one entry ``[start_ts, end_ts | None, interval_seconds, feed_amount]``.
Non-daily schedules emit one entry per (day of week, session) pair with the
start moved forward to the first matching weekday; the device repeats the
entry every ``interval_seconds`` until ``end_ts``.
"""
from __future__ import annotations

import datetime
from typing import Any, Iterable

from app.domain.feeding.engine import parse_session_time, sunday_based_weekday
from app.domain.feeding.schedule_entity import FeedingSchedule, FeedingSession
from app.enums.feeding import ScheduleInterval
from app.utils.time import resolve_timezone

INTERVAL_SECONDS: dict[ScheduleInterval, int] = {
    ScheduleInterval.DAILY: 86400,
    ScheduleInterval.WEEKLY: 604800,
    ScheduleInterval.BIWEEKLY: 1209600,
    ScheduleInterval.FOUR_WEEKLY: 2419200,
}


def _in_zone(value: datetime.datetime, zone: datetime.tzinfo) -> datetime.datetime:
    """Naive values are wall-clock times in the feeder zone, as in the engine."""
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def _at_session_time(day: datetime.datetime, session: FeedingSession) -> datetime.datetime:
    at = parse_session_time(session.time)
    return day.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)


def _first_weekday_on_or_after(
    start: datetime.datetime,
    weekday: int,
    session: FeedingSession,
) -> datetime.datetime:
    """First ``weekday`` (Sunday=0) at session time; same weekday but earlier time skips a week."""
    result = _at_session_time(start, session)
    days_to_add = (weekday - sunday_based_weekday(result.date()) + 7) % 7
    if days_to_add == 0 and result < start:
        days_to_add = 7
    return result + datetime.timedelta(days=days_to_add)


def _entry(
    start: datetime.datetime,
    end: datetime.datetime | None,
    interval_seconds: int,
    session: FeedingSession,
) -> list[Any]:
    return [
        int(start.timestamp()),
        int(end.timestamp()) if end is not None else None,
        interval_seconds,
        float(session.feed_amount),
    ]


def convert_schedules_to_mqtt(
    schedules: Iterable[FeedingSchedule],
    timezone: str = "UTC",
) -> dict[str, list[list[Any]]]:
    """
    Build the device payload for all schedules of one feeder.

    Args:
        schedules: Validated schedules
        timezone: Feeder timezone the session times are expressed in

    Returns:
        {"schedule": [[start_ts, end_ts, interval_seconds, feed_amount], ...]}
    """
    zone = resolve_timezone(timezone) or datetime.timezone.utc
    entries: list[list[Any]] = []

    for schedule in schedules:
        interval_seconds = INTERVAL_SECONDS[ScheduleInterval(schedule.interval)]
        start = _in_zone(schedule.start_date, zone)
        end = _in_zone(schedule.end_date, zone) if schedule.end_date else None

        if schedule.interval == ScheduleInterval.DAILY:
            for session in schedule.sessions:
                entries.append(
                    _entry(
                        _at_session_time(start, session),
                        _at_session_time(end, session) if end else None,
                        interval_seconds,
                        session,
                    )
                )
            continue

        for weekday in schedule.days_of_week:
            for session in schedule.sessions:
                entries.append(
                    _entry(
                        _first_weekday_on_or_after(start, weekday, session),
                        _at_session_time(end, session) if end else None,
                        interval_seconds,
                        session,
                    )
                )

    return {"schedule": entries}
