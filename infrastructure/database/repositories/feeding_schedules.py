"""
Feeding Schedule Repository
===========================

SQLite implementation of the FeedingScheduleRepository protocol.
Wraps the FeedingScheduleOperations mixin; feeders are only read here.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from app.domain.feeding import FeederRecord, FeedingSchedule

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class SQLiteFeedingScheduleRepository:
    """
    Concrete implementation of FeedingScheduleRepository.

    Database failures surface as RepositoryError from the backend.
    """

    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        """
        Args:
            backend: Database handler that implements the feeding operations
        """
        self._backend = backend

    # ==================== Schedules ====================

    def create(self, schedule: FeedingSchedule) -> FeedingSchedule:
        return self._backend.create_feeding_schedule(schedule)

    def get_by_id(self, schedule_id: str) -> Optional[FeedingSchedule]:
        return self._backend.get_feeding_schedule(schedule_id)

    def get_by_feeder(self, feeder_id: str) -> List[FeedingSchedule]:
        """Schedules of a feeder, newest first."""
        return self._backend.get_feeding_schedules_by_feeder(feeder_id)

    def update(self, schedule_id: str, schedule: FeedingSchedule) -> Optional[FeedingSchedule]:
        return self._backend.update_feeding_schedule(schedule_id, schedule)

    def delete(self, schedule_id: str) -> bool:
        return self._backend.delete_feeding_schedule(schedule_id)

    # ==================== Feeders ====================

    def get_feeder(self, feeder_id: str) -> Optional[FeederRecord]:
        return self._backend.get_feeder(feeder_id)

