"""Repository facades exposing typed accessors over low-level mixins."""

from infrastructure.database.repositories.feeders import SQLiteFeederRepository
from infrastructure.database.repositories.feeding_schedules import SQLiteFeedingScheduleRepository
from infrastructure.database.repositories.sensor_data import SQLiteSensorDataRepository

__all__ = ["SQLiteFeederRepository", "SQLiteFeedingScheduleRepository", "SQLiteSensorDataRepository"]
