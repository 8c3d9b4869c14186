"""
Feeding Schedule Management
===========================

Endpoints for managing recurring feeding schedules of a feeder and for
reading the next upcoming feeding.

Schedules are evaluated at ``?at=<ISO 8601>`` when given, otherwise now.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from app.blueprints.api._common import (
    fail as _fail,
    get_evaluation_time as _now,
    get_feeder_roles as _roles,
    get_feeding_service as _service,
    get_json as _json,
    success as _success,
)
from app.schemas.feeding import FeedingScheduleCreateSchema
from app.utils.http import safe_route
from app.utils.time import format_next_feeding

from . import feeding_api

logger = logging.getLogger("feeding_api.schedules")


def _invalid_body(ve: ValidationError):
    return _fail(
        "Invalid schedule data",
        400,
        details={"errors": ve.errors(include_url=False, include_context=False, include_input=False)},
    )


@feeding_api.get("/feeders/<feeder_id>/schedules")
@safe_route("Failed to list feeding schedules")
def list_schedules(feeder_id: str):
    """All schedules of a feeder, newest first, with their evaluated state."""
    overviews = _service().overview(feeder_id, _roles(), _now())
    return _success([overview.to_dict() for overview in overviews])


@feeding_api.post("/feeders/<feeder_id>/schedules")
@safe_route("Failed to create feeding schedule")
def create_schedule(feeder_id: str):
    try:
        body = FeedingScheduleCreateSchema.model_validate(_json())
    except ValidationError as ve:
        return _invalid_body(ve)

    logger.info(f"Creating {body.interval} feeding schedule for feeder {feeder_id}")
    service = _service()
    created = service.create_schedule(body.to_schedule(feeder_id), _roles())
    return _success(service.summarize(created, _now()).to_dict(), 201, message="Feeding schedule created")


@feeding_api.get("/schedules/<schedule_id>")
@safe_route("Failed to get feeding schedule")
def get_schedule(schedule_id: str):
    service = _service()
    schedule = service.get_schedule(schedule_id, _roles())
    return _success(service.summarize(schedule, _now()).to_dict())


@feeding_api.put("/schedules/<schedule_id>")
@safe_route("Failed to update feeding schedule")
def update_schedule(schedule_id: str):
    """Replace a schedule. The sessions in the body replace all existing ones."""
    try:
        body = FeedingScheduleCreateSchema.model_validate(_json())
    except ValidationError as ve:
        return _invalid_body(ve)

    service = _service()
    updated = service.update_schedule(schedule_id, body.to_schedule(feeder_id=""), _roles())
    return _success(service.summarize(updated, _now()).to_dict(), message="Feeding schedule updated")


@feeding_api.delete("/schedules/<schedule_id>")
@safe_route("Failed to delete feeding schedule")
def delete_schedule(schedule_id: str):
    _service().delete_schedule(schedule_id, _roles())
    return _success({"id": schedule_id}, message="Feeding schedule deleted")


@feeding_api.get("/feeders/<feeder_id>/next-feeding")
@safe_route("Failed to get next feeding")
def get_next_feeding(feeder_id: str):
    """
    Earliest upcoming feeding across all schedules of the feeder.

    Returns:
        {"next_feeding": {"date", "session"} | null, "display": str | null}
    """
    service = _service()
    next_feeding = service.next_feeding(feeder_id, _roles(), _now())
    if next_feeding is None:
        return _success({"next_feeding": None, "display": None})

    feeder = service.get_feeder(feeder_id)
    return _success(
        {
            "next_feeding": next_feeding.to_dict(),
            "display": format_next_feeding(next_feeding, feeder.timezone),
        }
    )
