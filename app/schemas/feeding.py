"""
Feeding Schemas
===============

Pydantic models for feeding schedule and manual feed request validation.
Both snake_case and the camelCase keys sent by the mobile app are accepted.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.domain.feeding import FeedingSchedule, FeedingSession
from app.enums.feeding import ScheduleInterval


class FeedingSessionSchema(BaseModel):
    """One feeding moment within a day."""
    model_config = ConfigDict(populate_by_name=True)

    time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Local time HH:MM")
    feed_amount: Decimal = Field(
        ...,
        ge=Decimal("0.1"),
        allow_inf_nan=False,
        validation_alias=AliasChoices("feed_amount", "feedAmount"),
        description="Kilograms dispensed",
    )


class FeedingScheduleCreateSchema(BaseModel):
    """Schema for creating or replacing a feeding schedule."""
    model_config = ConfigDict(populate_by_name=True)

    start_date: datetime = Field(..., validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("end_date", "endDate"))
    interval: ScheduleInterval = Field(default=ScheduleInterval.DAILY)
    days_of_week: List[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("days_of_week", "daysOfWeek"),
        description="Days of week (0=Sunday, 6=Saturday)",
    )
    sessions: List[FeedingSessionSchema] = Field(..., min_length=1)

    @field_validator("interval", mode="before")
    @classmethod
    def normalize_interval(cls, v):
        if isinstance(v, str):
            return ScheduleInterval(v.strip().lower())
        return v

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v):
        if not all(0 <= d <= 6 for d in v):
            raise ValueError("Days must be 0-6 (Sunday-Saturday)")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_days_for_interval(self):
        if self.interval != ScheduleInterval.DAILY and not self.days_of_week:
            raise ValueError(f"{self.interval} schedules require at least one day of the week")
        return self

    def to_schedule(self, feeder_id: str) -> FeedingSchedule:
        return FeedingSchedule(
            feeder_id=feeder_id,
            start_date=self.start_date,
            end_date=self.end_date,
            interval=self.interval,
            days_of_week=list(self.days_of_week),
            sessions=[FeedingSession(time=s.time, feed_amount=s.feed_amount) for s in self.sessions],
        )


class ManualFeedSchema(BaseModel):
    """Request body for an immediate feed release."""
    model_config = ConfigDict(populate_by_name=True)

    feed_amount: Decimal = Field(
        ...,
        ge=Decimal("0.1"),
        allow_inf_nan=False,
        validation_alias=AliasChoices("feed_amount", "feedAmount", "amount"),
    )
