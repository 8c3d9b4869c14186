"""Centralized exception hierarchy for SmartFeeder.

All domain and service exceptions inherit from :class:`SmartFeederError` so
that callers can catch a single base class when they need a broad safety net,
yet still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    SmartFeederError (base, maps to 500)
    ├── ValidationError            (400, bad input from caller)
    │   └── InvalidScheduleError   (400, schedule breaks a structural rule)
    ├── AuthenticationError        (401, no signed-in user or device key)
    ├── PermissionDeniedError      (403, role lacks a permission)
    ├── NotFoundError              (404, entity does not exist)
    ├── ConflictError              (409, duplicate / state conflict)
    ├── ServiceError               (500, business-logic failure)
    │   └── RepositoryError        (500, database / persistence)
    ├── DeviceError                (503, feeder did not take a command)
    └── ConfigurationError         (500, missing / invalid config)
"""

from __future__ import annotations


class SmartFeederError(Exception):
    """Base exception for all SmartFeeder application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(SmartFeederError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class InvalidScheduleError(ValidationError):
    """A feeding schedule violates one of its structural invariants.

    ``detail["errors"]`` lists every problem found, in check order.
    """

    @property
    def errors(self) -> list[str]:
        return list(self.detail.get("errors", []))


# Short name used by callers that translate engine errors into form messages.
InvalidSchedule = InvalidScheduleError


class AuthenticationError(SmartFeederError):
    """No signed-in user, or a device presented a wrong key (HTTP 401)."""

    http_status: int = 401


class PermissionDeniedError(SmartFeederError):
    """Acting role lacks the permission an operation requires (HTTP 403)."""

    http_status: int = 403


class NotFoundError(SmartFeederError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(SmartFeederError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(SmartFeederError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class DeviceError(SmartFeederError):
    """Feeder communication or device-protocol failure (HTTP 503)."""

    http_status: int = 503


class ConfigurationError(SmartFeederError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
