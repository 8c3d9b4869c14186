"""
Sensor Data Repository
======================

SQLite implementation of the SensorDataRepository protocol.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from app.domain.sensor_data import MAX_READINGS, SensorReading

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class SQLiteSensorDataRepository:
    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        self._backend = backend

    def add_readings(self, readings: List[SensorReading]) -> int:
        return self._backend.insert_sensor_readings(readings)

    def get_readings(
        self,
        device_id: str,
        *,
        since: Optional[datetime] = None,
        sensor_type: Optional[str] = None,
        limit: int = MAX_READINGS,
    ) -> List[SensorReading]:
        return self._backend.get_sensor_readings(device_id, since=since, sensor_type=sensor_type, limit=limit)

    def get_sensor_types(self, device_id: str) -> List[str]:
        return self._backend.get_sensor_types(device_id)
