"""
Feeding Schedule Repository Protocol
====================================

Defines the interface for feeding schedule persistence.
Implementations enforce their own access control; schedules handed to the
engine are assumed to have passed it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from app.domain.feeders import FeederRecord
from app.domain.feeding.schedule_entity import FeedingSchedule


class FeedingScheduleRepository(Protocol):
    """Protocol for feeding schedule persistence operations."""

    @abstractmethod
    def create(self, schedule: FeedingSchedule) -> FeedingSchedule:
        """
        Create a schedule and its sessions.

        Args:
            schedule: Schedule to create (schedule_id should be None)

        Returns:
            Created schedule with schedule_id and session ids assigned
        """
        ...

    @abstractmethod
    def get_by_id(self, schedule_id: str) -> FeedingSchedule | None:
        """Get schedule by ID, None if it does not exist."""
        ...

    @abstractmethod
    def get_by_feeder(self, feeder_id: str) -> list[FeedingSchedule]:
        """
        Get all schedules of a feeder, newest first.

        Args:
            feeder_id: Feeder ID

        Returns:
            List of schedules with their sessions
        """
        ...

    @abstractmethod
    def update(self, schedule_id: str, schedule: FeedingSchedule) -> FeedingSchedule | None:
        """
        Replace a schedule. Sessions are deleted and recreated, not diffed.

        Returns:
            Updated schedule if found, None otherwise
        """
        ...

    @abstractmethod
    def delete(self, schedule_id: str) -> bool:
        """
        Delete a schedule and its sessions.

        Returns:
            True if deleted, False if not found
        """
        ...

    @abstractmethod
    def get_feeder(self, feeder_id: str) -> FeederRecord | None:
        """Look up the feeder a schedule belongs to."""
        ...
