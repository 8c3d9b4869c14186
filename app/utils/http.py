"""
JSON response envelope for the API.

Every response body has the shape ``{"ok": bool, "data": ..., "error": ...}``.
Errors carry ``message`` and ``timestamp`` and, for client errors, the
``details`` attached to the exception. Server errors are logged with their
traceback and answered with a fixed message per status.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from app.domain.exceptions import SmartFeederError
from app.utils.time import iso_now

_log = logging.getLogger(__name__)

_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    401: "Authentication required",
    403: "Access denied",
    404: "Resource not found",
    409: "Conflict",
    500: "An internal error occurred",
    503: "Feeder unavailable",
}


def _envelope(ok: bool, status: int, data: Any = None, error: dict | None = None, **extra: Any) -> Response:
    response = jsonify({"ok": ok, "data": data, "error": error, **extra})
    response.status_code = status
    return response


def success_response(data: dict | list | None = None, status: int = 200, *, message: str | None = None) -> Response:
    extra = {"message": message} if message is not None else {}
    return _envelope(True, status, data, **extra)


def error_response(message: str, status: int = 500, *, details: dict | None = None) -> Response:
    error: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if details:
        error["details"] = details
    return _envelope(False, status, error=error)


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log ``exc`` with its traceback and answer with the fixed message for ``status``."""
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    return error_response(_GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500]), status)


def domain_error_response(exc: SmartFeederError, fallback: str = "Request failed") -> Response:
    """Map a domain exception to its ``http_status``; only 4xx errors show their text."""
    status = exc.http_status
    if status >= 500:
        return safe_error(exc, status, context=fallback)
    _log.info("API client error [%s] %s: %s", status, fallback, exc)
    return error_response(str(exc) or fallback, status, details=exc.detail or None)


def safe_route(error_message: str = "An internal error occurred") -> Callable:
    """
    Wrap a route so that exceptions become envelope responses.

    ``error_message`` is logged with 5xx failures and returned for client
    errors raised without a message. Usage::

        @feeding_api.get("/feeders/<feeder_id>/schedules")
        @safe_route("Failed to list feeding schedules")
        def list_schedules(feeder_id):
            ...
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except SmartFeederError as exc:
                return domain_error_response(exc, error_message)
            except Exception as exc:
                return safe_error(exc, 500, context=error_message)

        return wrapper

    return decorator
