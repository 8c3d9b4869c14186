"""
Sensor Reading Database Operations
==================================

Readings are stored one row per value. Timestamps are written as UTC
ISO-8601 strings with a fixed microsecond precision so that text ordering
matches time ordering.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.domain.sensor_data import MAX_READINGS, SensorReading
from app.utils.time import coerce_datetime, utc_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


def _stamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class SensorDataOperations:
    """Telemetry persistence helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def insert_sensor_readings(self, readings: list[SensorReading]) -> int:
        if not readings:
            return 0
        db = self.get_db()
        created_at = _stamp(utc_now())
        rows = [
            (
                reading.device_id,
                reading.sensor_type,
                float(reading.value),
                _stamp(coerce_datetime(reading.timestamp) or utc_now()),
                created_at,
            )
            for reading in readings
        ]
        try:
            with db:
                db.executemany(
                    """
                    INSERT INTO SensorReadings (device_id, sensor_type, value, timestamp, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    rows,
                )
        except sqlite3.Error as e:
            logger.error(f"Error storing {len(rows)} readings for device {readings[0].device_id}: {e}")
            raise RepositoryError(
                "Failed to store sensor readings",
                detail={"device_id": readings[0].device_id},
            ) from e
        return len(rows)

    def get_sensor_readings(
        self,
        device_id: str,
        *,
        since: datetime | None = None,
        sensor_type: str | None = None,
        limit: int = MAX_READINGS,
    ) -> list[SensorReading]:
        query = "SELECT * FROM SensorReadings WHERE device_id = ?"
        params: list[Any] = [device_id]
        if since is not None:
            query += " AND timestamp >= ?"
            params.append(_stamp(coerce_datetime(since)))
        if sensor_type:
            query += " AND sensor_type = ?"
            params.append(sensor_type)
        query += " ORDER BY timestamp DESC, reading_id DESC LIMIT ?"
        params.append(int(limit))

        db = self.get_db()
        try:
            rows = db.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error reading sensor data for device {device_id}: {e}")
            raise RepositoryError("Failed to load sensor data", detail={"device_id": device_id}) from e
        return [self._row_to_reading(dict(row)) for row in rows]

    def get_sensor_types(self, device_id: str) -> list[str]:
        db = self.get_db()
        try:
            rows = db.execute(
                "SELECT DISTINCT sensor_type FROM SensorReadings WHERE device_id = ? ORDER BY sensor_type",
                (device_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error reading sensor types for device {device_id}: {e}")
            raise RepositoryError("Failed to load sensor types", detail={"device_id": device_id}) from e
        return [row["sensor_type"] for row in rows]

    @staticmethod
    def _row_to_reading(row: dict[str, Any]) -> SensorReading:
        return SensorReading(
            reading_id=row["reading_id"],
            device_id=row["device_id"],
            sensor_type=row["sensor_type"],
            value=float(row["value"]),
            timestamp=coerce_datetime(row["timestamp"]),
        )
