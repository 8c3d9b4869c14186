"""
Feeder Management
=================

Registering feeders on the signed-in account, editing and removing them,
manual feed release and connectivity status.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from app.blueprints.api._common import (
    fail as _fail,
    get_evaluation_time as _now,
    get_feeder_roles as _roles,
    get_feeder_service as _feeders,
    get_feeding_service as _service,
    get_json as _json,
    get_user_id as _user_id,
    success as _success,
)
from app.schemas.feeders import FeederCreateSchema, FeederUpdateSchema
from app.schemas.feeding import ManualFeedSchema
from app.utils.http import safe_route

from . import feeding_api

logger = logging.getLogger("feeding_api.feeders")


def _invalid(message: str, ve: ValidationError):
    return _fail(
        message,
        400,
        details={"errors": ve.errors(include_url=False, include_context=False, include_input=False)},
    )


@feeding_api.get("/feeders")
@safe_route("Failed to list feeders")
def list_feeders():
    overviews = _feeders().list_feeders(_roles(), _now())
    return _success({"feeders": [o.to_dict() for o in overviews], "count": len(overviews)})


@feeding_api.post("/feeders")
@safe_route("Failed to register feeder")
def register_feeder():
    """
    Add a device to the signed-in account.

    Body:
        {"device_id": "ESP32-AA01", "name": "Paddock 3", "timezone": "Australia/Sydney"}
    """
    try:
        body = FeederCreateSchema.model_validate(_json())
    except ValidationError as ve:
        return _invalid("Invalid feeder", ve)

    feeder = _feeders().register_feeder(_user_id(), body.model_dump(exclude_none=True))
    return _success(feeder.to_dict(), 201, message="Feeder registered")


@feeding_api.get("/feeders/<feeder_id>")
@safe_route("Failed to get feeder")
def get_feeder(feeder_id: str):
    return _success(_feeders().describe_feeder(feeder_id, _roles(), _now()).to_dict())


@feeding_api.put("/feeders/<feeder_id>")
@safe_route("Failed to update feeder")
def update_feeder(feeder_id: str):
    try:
        body = FeederUpdateSchema.model_validate(_json())
    except ValidationError as ve:
        return _invalid("Invalid feeder settings", ve)

    feeder = _feeders().update_feeder(feeder_id, body.model_dump(exclude_none=True), _roles())
    return _success(feeder.to_dict(), message="Feeder updated")


@feeding_api.delete("/feeders/<feeder_id>")
@safe_route("Failed to remove feeder")
def remove_feeder(feeder_id: str):
    cleared = _feeders().remove_feeder(feeder_id, _roles())
    return _success({"feeder_id": feeder_id, "device_cleared": cleared}, message="Feeder removed")


@feeding_api.post("/feeders/<feeder_id>/feed")
@safe_route("Failed to release feed")
def release_feed(feeder_id: str):
    """
    Dispense feed immediately.

    Body:
        {"feed_amount": 0.5}
    """
    try:
        body = ManualFeedSchema.model_validate(_json())
    except ValidationError as ve:
        return _invalid("Invalid feed amount", ve)

    amount = _service().release_feed(feeder_id, body.feed_amount, _roles())
    return _success({"feeder_id": feeder_id, "feed_amount": float(amount)}, message="Feed release sent")


@feeding_api.get("/feeders/<feeder_id>/status")
@safe_route("Failed to get feeder status")
def get_status(feeder_id: str):
    status = _feeders().feeder_status(feeder_id, _roles(), _now())
    return _success(status.to_dict())
