"""
Feeding Domain Module
=====================

Recurring feeding schedules and the engine that evaluates them.

This module provides:
- FeedingSchedule / FeedingSession: schedule value objects
- NextFeeding: a concrete upcoming occurrence
- is_active, next_occurrence, total_daily_amount: schedule engine
- FeedingScheduleRepository: Protocol for schedule persistence
"""
from app.domain.exceptions import InvalidSchedule, InvalidScheduleError
from app.domain.feeding.engine import (
    MIN_FEED_AMOUNT,
    SCAN_WINDOW_DAYS,
    is_active,
    next_occurrence,
    next_occurrence_for_schedules,
    parse_session_time,
    schedule_errors,
    total_daily_amount,
    validate_schedule,
)
from app.domain.feeding.repository import FeederRecord, FeedingScheduleRepository
from app.domain.feeding.schedule_entity import FeedingSchedule, FeedingSession, NextFeeding

__all__ = [
    "FeedingSchedule",
    "FeedingSession",
    "NextFeeding",
    "FeederRecord",
    "FeedingScheduleRepository",
    "InvalidSchedule",
    "InvalidScheduleError",
    "MIN_FEED_AMOUNT",
    "SCAN_WINDOW_DAYS",
    "is_active",
    "next_occurrence",
    "next_occurrence_for_schedules",
    "parse_session_time",
    "schedule_errors",
    "total_daily_amount",
    "validate_schedule",
]
