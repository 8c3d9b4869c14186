"""
Feeder Schemas
==============

Pydantic models for registering a feeder and editing its settings.
"""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _check_timezone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


class FeederUpdateSchema(BaseModel):
    """Editable feeder settings; omitted fields keep their value."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    location: Optional[str] = Field(default=None, max_length=200)
    timezone: Optional[str] = Field(default=None, validation_alias=AliasChoices("timezone", "timeZone"))

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _check_timezone(v)


class FeederCreateSchema(FeederUpdateSchema):
    """Request body for adding a device to the signed-in account."""

    device_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        pattern=r"^[^\s/#+]+$",
        validation_alias=AliasChoices("device_id", "deviceId"),
        description="Hardware id, also the MQTT topic prefix",
    )
    name: str = Field(..., min_length=1, max_length=100)
