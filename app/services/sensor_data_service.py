"""
Sensor Data Service
===================

Stores telemetry pushed by feeders and serves it back to users who may view
a feeder's sensor data. Every accepted batch also counts as the device
checking in, which is what drives the online/offline status.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.permissions import require_permission
from app.domain.sensor_data import (
    DEFAULT_HOURS,
    MAX_READINGS,
    SensorDataRepository,
    SensorReading,
    SensorSummary,
    summarize_readings,
)
from app.enums.feeding import PermissionType
from app.services.feeder_service import FeederService, Roles
from app.utils.time import coerce_datetime, utc_now

logger = logging.getLogger(__name__)


class SensorDataService:
    def __init__(self, repository: SensorDataRepository, feeders: FeederService) -> None:
        self._repository = repository
        self._feeders = feeders

    def record_readings(self, device_id: str, readings: Iterable[Mapping[str, Any]]) -> int:
        """
        Store a batch of readings from one device.

        Args:
            device_id: Reporting device
            readings: Items with ``sensor_type``, ``value`` and an optional
                ``timestamp`` (defaults to the time of receipt)

        Returns:
            Number of readings stored
        """
        received_at = utc_now()
        batch = [
            SensorReading(
                device_id=device_id,
                sensor_type=str(item["sensor_type"]),
                value=float(item["value"]),
                timestamp=coerce_datetime(item.get("timestamp")) or received_at,
            )
            for item in readings
        ]
        if not batch:
            raise ValidationError("At least one reading is required")

        stored = self._repository.add_readings(batch)
        newest = max(reading.timestamp for reading in batch)
        if not self._feeders.record_communication(device_id, min(newest, received_at)):
            logger.debug("Readings from %s did not advance its last communication", device_id)
        logger.info("Stored %d reading(s) from device %s", stored, device_id)
        return stored

    def get_readings(
        self,
        feeder_id: str,
        roles: Roles,
        now: datetime,
        *,
        hours: int = DEFAULT_HOURS,
        sensor_type: str | None = None,
        limit: int = MAX_READINGS,
    ) -> list[SensorReading]:
        """Readings of the last ``hours`` hours before ``now``, newest first."""
        device_id = self._device_of(feeder_id, roles)
        since = coerce_datetime(now) - timedelta(hours=hours)
        return self._repository.get_readings(
            device_id,
            since=since,
            sensor_type=sensor_type,
            limit=min(limit, MAX_READINGS),
        )

    def get_sensor_types(self, feeder_id: str, roles: Roles) -> list[str]:
        return self._repository.get_sensor_types(self._device_of(feeder_id, roles))

    def summary(self, feeder_id: str, roles: Roles) -> list[SensorSummary]:
        """Latest value per sensor type over the most recent readings of the feeder."""
        device_id = self._device_of(feeder_id, roles)
        return summarize_readings(self._repository.get_readings(device_id, limit=MAX_READINGS))

    def _device_of(self, feeder_id: str, roles: Roles) -> str:
        require_permission(
            roles.get(feeder_id) if roles else None,
            PermissionType.VIEW_SENSOR_DATA,
            feeder_id=feeder_id,
        )
        feeder = self._feeders.get_feeder(feeder_id)
        if feeder.is_orphaned:
            raise NotFoundError(f"Feeder {feeder_id} not found", detail={"feeder_id": feeder_id})
        return feeder.device_id
