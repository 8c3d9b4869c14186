"""
Sensor Data
===========

Telemetry uploads from feeders and per-feeder readings for users.

Uploads authenticate the device with the shared ``X-Device-Key`` header
when a device key is configured.
"""

from __future__ import annotations

import hmac
import logging

from flask import request
from pydantic import ValidationError

from app.blueprints.api._common import (
    fail as _fail,
    get_container,
    get_evaluation_time as _now,
    get_feeder_roles as _roles,
    get_json as _json,
    get_sensor_data_service as _service,
    success as _success,
)
from app.domain.exceptions import AuthenticationError
from app.schemas.sensor_data import SensorDataQuerySchema, SensorReadingBatchSchema
from app.utils.http import safe_route

from . import feeding_api

logger = logging.getLogger("feeding_api.sensor_data")

DEVICE_KEY_HEADER = "X-Device-Key"


def _check_device_key(device_id: str) -> None:
    expected = get_container().config.device_api_key
    if not expected:
        return
    presented = request.headers.get(DEVICE_KEY_HEADER, "")
    if not hmac.compare_digest(presented.encode(), expected.encode()):
        logger.warning(f"Rejected readings from {device_id}: bad or missing device key")
        raise AuthenticationError("Invalid device key", detail={"code": "UNAUTHORIZED"})


@feeding_api.post("/devices/<device_id>/readings")
@safe_route("Failed to store sensor readings")
def upload_readings(device_id: str):
    """
    Store readings sent by a feeder.

    Body:
        {"readings": [{"sensor_type": "weight", "value": 12.4, "timestamp": "..."}]}
    """
    _check_device_key(device_id)
    try:
        body = SensorReadingBatchSchema.model_validate(_json())
    except ValidationError as ve:
        return _fail(
            "Invalid readings",
            400,
            details={"errors": ve.errors(include_url=False, include_context=False, include_input=False)},
        )

    stored = _service().record_readings(device_id, [r.model_dump() for r in body.readings])
    return _success({"device_id": device_id, "stored": stored}, 201)


@feeding_api.get("/feeders/<feeder_id>/sensor-data")
@safe_route("Failed to get sensor data")
def get_sensor_data(feeder_id: str):
    """
    Readings of the last ``hours`` hours (24 by default), newest first.

    Query:
        hours, limit, sensor_type, at
    """
    try:
        query = SensorDataQuerySchema.model_validate(request.args.to_dict())
    except ValidationError as ve:
        return _fail(
            "Invalid query",
            400,
            details={"errors": ve.errors(include_url=False, include_context=False, include_input=False)},
        )

    readings = _service().get_readings(
        feeder_id,
        _roles(),
        _now(),
        hours=query.hours,
        sensor_type=query.sensor_type,
        limit=query.limit,
    )
    return _success({"readings": [r.to_dict() for r in readings], "count": len(readings)})


@feeding_api.get("/feeders/<feeder_id>/sensor-data/types")
@safe_route("Failed to get sensor types")
def get_sensor_types(feeder_id: str):
    return _success({"sensor_types": _service().get_sensor_types(feeder_id, _roles())})


@feeding_api.get("/feeders/<feeder_id>/sensor-data/summary")
@safe_route("Failed to summarize sensor data")
def get_sensor_summary(feeder_id: str):
    summaries = _service().summary(feeder_id, _roles())
    return _success({"sensors": [s.to_dict() for s in summaries]})
