"""
Feeding API Module
==================

Feeding schedule API organized by concern:
- schedules.py: Schedule CRUD and next feeding
- feeders.py: Feeder registration and settings, manual feed release, status
- sensor_data.py: Telemetry uploads and per-feeder readings
"""

from flask import Blueprint

from app.utils.http import error_response

# Create blueprint here to avoid circular imports
feeding_api = Blueprint("feeding_api", __name__)


@feeding_api.errorhandler(404)
def not_found(error):
    """Handle 404 errors"""
    return error_response("Resource not found", 404)


@feeding_api.errorhandler(405)
def method_not_allowed(error):
    return error_response("Method not allowed", 405)


# Import submodules to register routes (must be after blueprint creation)
from . import feeders, schedules, sensor_data

__all__ = ["feeding_api"]
