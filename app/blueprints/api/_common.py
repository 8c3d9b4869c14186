"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.

Usage:
    from app.blueprints.api._common import (
        get_feeding_service, get_feeder_roles, get_json, success, fail,
    )
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from flask import current_app, request, session

from app.domain.exceptions import ValidationError
from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")

# ============================================================================
# User Session Utilities
# ============================================================================


def get_user_id() -> Optional[str]:
    """Get current user ID from session."""
    return session.get("user_id")


def get_feeder_roles() -> dict[str, str]:
    """
    Roles the signed-in user holds, keyed by feeder id.

    Memberships on shared feeders come from ``feeder_roles`` in the session;
    ownership is looked up from the feeders the user owns. An anonymous
    session has neither and is denied everything.
    """
    granted = session.get("feeder_roles") or {}
    if not isinstance(granted, dict):
        logger.warning("Ignoring malformed feeder_roles in session")
        granted = {}
    return get_feeder_service().roles_for(get_user_id(), granted)


# ============================================================================
# CONTAINER ACCESS
# ============================================================================

def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_feeding_service():
    return get_container().feeding_service


def get_feeder_service():
    return get_container().feeder_service


def get_sensor_data_service():
    return get_container().sensor_data_service


# ============================================================================
# REQUEST HELPERS
# ============================================================================

def get_json() -> dict:
    """Get JSON request body, or an empty dict when absent or malformed."""
    return request.get_json(silent=True) or {}


def get_evaluation_time() -> datetime:
    """
    Instant schedules are evaluated at: ``?at=<ISO 8601>`` or the current time.

    Raises:
        ValidationError: If ``at`` is not a valid ISO 8601 datetime
    """
    raw = (request.args.get("at") or "").strip()
    if not raw:
        return datetime.now(timezone.utc)
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid datetime format: {raw}. Expected ISO 8601.") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


# ============================================================================
# RESPONSE HELPERS
# ============================================================================

def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """Flask Response with format: {"ok": true, "data": ..., "error": null}"""
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """Flask Response with format: {"ok": false, "data": null, "error": {...}}"""
    return error_response(message, status, details=details)
