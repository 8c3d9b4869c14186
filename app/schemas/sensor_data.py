"""
Sensor Data Schemas
===================

Pydantic models for telemetry uploads and reading queries.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.domain.sensor_data import DEFAULT_HOURS, MAX_READINGS


class SensorReadingSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    sensor_type: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("sensor_type", "sensorType", "type"),
    )
    value: float = Field(..., allow_inf_nan=False, validation_alias=AliasChoices("value", "sensor_value"))
    timestamp: Optional[datetime] = None


class SensorReadingBatchSchema(BaseModel):
    """One upload from a device."""

    readings: List[SensorReadingSchema] = Field(..., min_length=1, max_length=MAX_READINGS)


class SensorDataQuerySchema(BaseModel):
    """Query string of the readings listing."""
    model_config = ConfigDict(populate_by_name=True)

    hours: int = Field(default=DEFAULT_HOURS, ge=1, le=24 * 90)
    limit: int = Field(default=MAX_READINGS, ge=1, le=MAX_READINGS)
    sensor_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("sensor_type", "sensorType", "type"),
    )
