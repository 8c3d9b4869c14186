"""
Feeding Schedule Domain Entity
==============================

Recurring feeding schedule owned by a feeder:
- One or more daily feeding sessions (time of day + quantity)
- Recurrence interval (daily, weekly, biweekly, four-weekly)
- Day-of-week mask for non-daily intervals (0=Sunday, 6=Saturday)
- Optional end date and feeder timezone

Entities are plain values. Construction never validates, so drafts coming
from forms can be held and inspected; the schedule engine validates before
computing anything.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from app.enums.feeding import ScheduleInterval
from app.utils.time import isoformat_or_none, parse_datetime


def to_decimal(value: Any) -> Decimal | None:
    """Convert a feed amount to Decimal; None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class FeedingSession:
    """
    A single feeding event within a day.

    Attributes:
        time: Time of day in HH:MM (24-hour, zero-padded), feeder timezone
        feed_amount: Quantity in kilograms (>= 0.1)
        session_id: Persisted identifier (None for new sessions)
    """

    time: str = ""
    feed_amount: Decimal | None = None
    session_id: str | None = None

    def __post_init__(self):
        converted = to_decimal(self.feed_amount)
        if converted is not None:
            self.feed_amount = converted

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "time": self.time,
            "feed_amount": float(self.feed_amount) if isinstance(self.feed_amount, Decimal) else self.feed_amount,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "FeedingSession":
        session_id = _pick(data, "id", "session_id")
        return FeedingSession(
            time=_pick(data, "time", default=""),
            feed_amount=_pick(data, "feed_amount", "feedAmount"),
            session_id=str(session_id) if session_id is not None else None,
        )


@dataclass
class FeedingSchedule:
    """
    Recurring feeding schedule for one feeder.

    Attributes:
        schedule_id: Persisted identifier (None for drafts)
        feeder_id: Owning feeder
        start_date: First moment the schedule is eligible to fire
        end_date: Schedule is ineligible at/after this moment (optional)
        interval: Recurrence interval
        days_of_week: Active weekdays, 0=Sunday ... 6=Saturday
        sessions: Feeding sessions, display order preserved
        timezone: IANA timezone of the feeder used for calendar arithmetic
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    schedule_id: str | None = None
    feeder_id: str = ""
    start_date: datetime.datetime | None = None
    end_date: datetime.datetime | None = None
    interval: ScheduleInterval | str = ScheduleInterval.DAILY
    days_of_week: list[int] = field(default_factory=list)
    sessions: list[FeedingSession] = field(default_factory=list)
    timezone: str | None = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def __post_init__(self):
        """Normalize the interval to the enum when the value is known."""
        if isinstance(self.interval, str) and not isinstance(self.interval, ScheduleInterval):
            try:
                self.interval = ScheduleInterval(self.interval.lower())
            except ValueError:
                # Left as-is; validation reports it.
                pass
        self.days_of_week = list(self.days_of_week or [])
        self.sessions = list(self.sessions or [])

    @property
    def is_daily(self) -> bool:
        return self.interval == ScheduleInterval.DAILY

    def to_dict(self) -> dict[str, Any]:
        """Convert schedule to dictionary for serialization."""
        return {
            "id": self.schedule_id,
            "feeder_id": self.feeder_id,
            "start_date": isoformat_or_none(self.start_date),
            "end_date": isoformat_or_none(self.end_date),
            "interval": str(self.interval),
            "days_of_week": list(self.days_of_week),
            "sessions": [session.to_dict() for session in self.sessions],
            "timezone": self.timezone,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "FeedingSchedule":
        """Create FeedingSchedule from a dictionary (snake_case or camelCase keys)."""
        schedule_id = _pick(data, "id", "schedule_id")
        feeder_id = _pick(data, "feeder_id", "feederId", default="")
        return FeedingSchedule(
            schedule_id=str(schedule_id) if schedule_id is not None else None,
            feeder_id=str(feeder_id),
            start_date=parse_datetime(_pick(data, "start_date", "startDate")),
            end_date=parse_datetime(_pick(data, "end_date", "endDate")),
            interval=_pick(data, "interval", default=ScheduleInterval.DAILY.value),
            days_of_week=list(_pick(data, "days_of_week", "daysOfWeek", default=[])),
            sessions=[
                session if isinstance(session, FeedingSession) else FeedingSession.from_dict(session)
                for session in _pick(data, "sessions", default=[])
            ],
            timezone=_pick(data, "timezone"),
            created_at=parse_datetime(_pick(data, "created_at", "createdAt")),
            updated_at=parse_datetime(_pick(data, "updated_at", "updatedAt")),
        )


@dataclass(frozen=True)
class NextFeeding:
    """A concrete upcoming occurrence of one session."""

    date: datetime.datetime
    session: FeedingSession

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "session": self.session.to_dict()}
