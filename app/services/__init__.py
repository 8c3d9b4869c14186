"""
Service Organization
====================
Application services are singletons managed by ServiceContainer:

- FeederService: feeder registration, settings, removal and connectivity status
- FeedingScheduleService: permission-checked schedule CRUD, evaluation and device sync
- SensorDataService: telemetry ingestion and per-feeder readings
- DeviceMessagingService: MQTT delivery of schedules and manual feed commands
"""

from .device_messaging import DeviceMessagingService
from .feeder_service import FeederOverview, FeederService
from .feeding_schedule_service import FeedingScheduleService, ScheduleOverview
from .sensor_data_service import SensorDataService

__all__ = [
    "DeviceMessagingService",
    "FeederOverview",
    "FeederService",
    "FeedingScheduleService",
    "ScheduleOverview",
    "SensorDataService",
]
