"""
Feeding Enumerations
====================

Enums for recurring feeding schedules, feeder membership roles and the
permission templates attached to them.
"""

from enum import Enum


class ScheduleInterval(str, Enum):
    """Recurrence interval of a feeding schedule.

    - DAILY: fires every day, days_of_week is ignored
    - WEEKLY: fires on the selected days of every week
    - BIWEEKLY: fires on the selected days of every second week
    - FOUR_WEEKLY: fires on the selected days of every fourth week
    """

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    FOUR_WEEKLY = "four-weekly"

    def __str__(self):
        return self.value


class FeederRole(str, Enum):
    """Membership role on a shared feeder, lowest to highest."""

    VIEWER = "viewer"
    SCHEDULER = "scheduler"
    MANAGER = "manager"
    OWNER = "owner"

    def __str__(self):
        return self.value


class PermissionType(str, Enum):
    """Individual capabilities granted by a role template."""

    VIEW_SENSOR_DATA = "view_sensor_data"
    VIEW_FEEDING_SCHEDULES = "view_feeding_schedules"
    CREATE_FEEDING_SCHEDULES = "create_feeding_schedules"
    EDIT_FEEDING_SCHEDULES = "edit_feeding_schedules"
    DELETE_FEEDING_SCHEDULES = "delete_feeding_schedules"
    MANUAL_FEED_RELEASE = "manual_feed_release"
    VIEW_CAMERA_FEEDS = "view_camera_feeds"
    EDIT_FEEDER_SETTINGS = "edit_feeder_settings"
    INVITE_OTHER_USERS = "invite_other_users"
    MANAGE_PERMISSIONS = "manage_permissions"

    def __str__(self):
        return self.value


class FeederConnectionState(str, Enum):
    """Connectivity of a feeder derived from its last communication time."""

    ONLINE = "online"
    OFFLINE = "offline"

    def __str__(self):
        return self.value
