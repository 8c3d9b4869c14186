"""
Sensor Telemetry
================

Feeders report readings in a long/narrow shape: one row per
(device, sensor type, value, timestamp). New sensor types need no schema
change. Readings are keyed by ``device_id`` so they survive a feeder being
removed from an account.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Protocol

from app.utils.time import isoformat_or_none

# Upper bound on rows read for listings and summaries.
MAX_READINGS = 1000
DEFAULT_HOURS = 24


@dataclass
class SensorReading:
    device_id: str
    sensor_type: str
    value: float
    timestamp: datetime
    reading_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.reading_id,
            "device_id": self.device_id,
            "sensor_type": self.sensor_type,
            "value": self.value,
            "timestamp": isoformat_or_none(self.timestamp),
        }


@dataclass(frozen=True)
class SensorSummary:
    """Latest value of one sensor type plus how many readings were considered."""

    sensor_type: str
    latest_value: float
    latest_timestamp: datetime
    readings_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "sensor_type": self.sensor_type,
            "latest_value": self.latest_value,
            "latest_timestamp": isoformat_or_none(self.latest_timestamp),
            "readings_count": self.readings_count,
        }


def summarize_readings(readings: Iterable[SensorReading]) -> list[SensorSummary]:
    """
    Group readings by sensor type and keep the newest of each.

    Returns:
        One summary per sensor type, ordered by sensor type
    """
    latest: dict[str, SensorReading] = {}
    counts: dict[str, int] = {}
    for reading in readings:
        counts[reading.sensor_type] = counts.get(reading.sensor_type, 0) + 1
        current = latest.get(reading.sensor_type)
        if current is None or reading.timestamp > current.timestamp:
            latest[reading.sensor_type] = reading

    return [
        SensorSummary(
            sensor_type=sensor_type,
            latest_value=latest[sensor_type].value,
            latest_timestamp=latest[sensor_type].timestamp,
            readings_count=counts[sensor_type],
        )
        for sensor_type in sorted(latest)
    ]


class SensorDataRepository(Protocol):
    """Protocol for telemetry persistence."""

    @abstractmethod
    def add_readings(self, readings: list[SensorReading]) -> int:
        """Store readings in one transaction; returns the number stored."""
        ...

    @abstractmethod
    def get_readings(
        self,
        device_id: str,
        *,
        since: datetime | None = None,
        sensor_type: str | None = None,
        limit: int = MAX_READINGS,
    ) -> list[SensorReading]:
        """Readings of a device, newest first."""
        ...

    @abstractmethod
    def get_sensor_types(self, device_id: str) -> list[str]:
        """Distinct sensor types reported by a device, sorted."""
        ...
