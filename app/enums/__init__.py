"""
Enums Module
============

This module provides enumeration types for the SmartFeeder application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.feeding import (
    FeederConnectionState,
    FeederRole,
    PermissionType,
    ScheduleInterval,
)

__all__ = [
    "FeederConnectionState",
    "FeederRole",
    "PermissionType",
    "ScheduleInterval",
]
