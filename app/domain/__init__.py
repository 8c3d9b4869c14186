"""
Domain Package
==============
Framework-free SmartFeeder domain: feeder records, schedule value objects,
the recurring schedule engine, role permission templates, sensor telemetry
and feeder connectivity status.

Nothing in this package performs I/O; services and adapters pass time and
acting roles in explicitly.
"""

from .feeder_status import FeederStatus, get_feeder_status, is_feeder_online
from .feeders import FeederRecord, FeederRepository
from .feeding import (
    FeedingSchedule,
    FeedingSession,
    InvalidSchedule,
    InvalidScheduleError,
    NextFeeding,
    is_active,
    next_occurrence,
    total_daily_amount,
)
from .sensor_data import SensorDataRepository, SensorReading, SensorSummary, summarize_readings

__all__ = [
    # Feeders
    "FeederRecord",
    "FeederRepository",
    # Feeding schedules
    "FeedingSchedule",
    "FeedingSession",
    "NextFeeding",
    "InvalidSchedule",
    "InvalidScheduleError",
    "is_active",
    "next_occurrence",
    "total_daily_amount",
    # Telemetry
    "SensorDataRepository",
    "SensorReading",
    "SensorSummary",
    "summarize_readings",
    # Connectivity
    "FeederStatus",
    "get_feeder_status",
    "is_feeder_online",
]
