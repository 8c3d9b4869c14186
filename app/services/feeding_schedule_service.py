"""
Feeding Schedule Service
========================

Application service that ties together:
- role permission checks (the acting user's feeder roles are passed in,
  never looked up globally)
- schedule validation through the engine
- persistence via a FeedingScheduleRepository
- device synchronization via DeviceMessagingService

After every mutation the full schedule set of the feeder is re-read and
pushed to the device, so the device never holds a partial view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from app.domain.exceptions import DeviceError, NotFoundError, ValidationError
from app.domain.feeding import (
    MIN_FEED_AMOUNT,
    FeederRecord,
    FeedingSchedule,
    FeedingScheduleRepository,
    NextFeeding,
    is_active,
    next_occurrence,
    next_occurrence_for_schedules,
    total_daily_amount,
    validate_schedule,
)
from app.domain.feeding.schedule_entity import to_decimal
from app.domain.permissions import require_permission
from app.enums.feeding import FeederRole, PermissionType
from app.services.device_messaging import DeviceMessagingService

logger = logging.getLogger(__name__)

# Acting user's memberships: feeder id -> role.
Roles = Mapping[str, "FeederRole | str"]


@dataclass
class ScheduleOverview:
    """A schedule together with its engine-derived values at a given instant."""

    schedule: FeedingSchedule
    is_active: bool
    next_feeding: NextFeeding | None
    total_daily_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.schedule.to_dict(),
            "is_active": self.is_active,
            "next_feeding": self.next_feeding.to_dict() if self.next_feeding else None,
            "total_daily_amount": float(self.total_daily_amount),
        }


class FeedingScheduleService:
    """Schedule CRUD, evaluation and device sync for feeders."""

    def __init__(
        self,
        repository: FeedingScheduleRepository,
        messaging: DeviceMessagingService,
        *,
        default_timezone: str = "UTC",
    ) -> None:
        self._repository = repository
        self._messaging = messaging
        self._default_timezone = default_timezone

    # ------------------------------------------------------------------ reads

    def get_feeder(self, feeder_id: str) -> FeederRecord:
        feeder = self._repository.get_feeder(feeder_id)
        if feeder is None:
            raise NotFoundError(f"Feeder {feeder_id} not found", detail={"feeder_id": feeder_id})
        return feeder

    def list_schedules(self, feeder_id: str, roles: Roles) -> list[FeedingSchedule]:
        self._require(roles, feeder_id, PermissionType.VIEW_FEEDING_SCHEDULES)
        feeder = self.get_feeder(feeder_id)
        return [self._with_timezone(s, feeder) for s in self._repository.get_by_feeder(feeder_id)]

    def get_schedule(self, schedule_id: str, roles: Roles) -> FeedingSchedule:
        schedule = self._load(schedule_id)
        self._require(roles, schedule.feeder_id, PermissionType.VIEW_FEEDING_SCHEDULES)
        return self._with_timezone(schedule, self._repository.get_feeder(schedule.feeder_id))

    def overview(self, feeder_id: str, roles: Roles, now: datetime) -> list[ScheduleOverview]:
        """Schedules of a feeder with activity, next feeding and daily totals at ``now``."""
        return [self.summarize(schedule, now) for schedule in self.list_schedules(feeder_id, roles)]

    @staticmethod
    def summarize(schedule: FeedingSchedule, now: datetime) -> ScheduleOverview:
        return ScheduleOverview(
            schedule=schedule,
            is_active=is_active(schedule, now),
            next_feeding=next_occurrence(schedule, now),
            total_daily_amount=total_daily_amount(schedule),
        )

    def next_feeding(self, feeder_id: str, roles: Roles, now: datetime) -> NextFeeding | None:
        return next_occurrence_for_schedules(self.list_schedules(feeder_id, roles), now)

    # -------------------------------------------------------------- mutations

    def create_schedule(self, schedule: FeedingSchedule, roles: Roles) -> FeedingSchedule:
        self._require(roles, schedule.feeder_id, PermissionType.CREATE_FEEDING_SCHEDULES)
        feeder = self.get_feeder(schedule.feeder_id)
        validate_schedule(schedule)

        created = self._repository.create(schedule)
        logger.info(
            "Created %s schedule %s for feeder %s with %d session(s)",
            created.interval,
            created.schedule_id,
            feeder.feeder_id,
            len(created.sessions),
        )
        self.sync_device(feeder)
        return self._with_timezone(created, feeder)

    def update_schedule(
        self,
        schedule_id: str,
        schedule: FeedingSchedule,
        roles: Roles,
    ) -> FeedingSchedule:
        """Replace a schedule; its sessions are recreated from ``schedule``."""
        existing = self._load(schedule_id)
        self._require(roles, existing.feeder_id, PermissionType.EDIT_FEEDING_SCHEDULES)
        if schedule.feeder_id and schedule.feeder_id != existing.feeder_id:
            raise ValidationError("A schedule cannot be moved to another feeder")
        schedule.feeder_id = existing.feeder_id
        validate_schedule(schedule)

        updated = self._repository.update(schedule_id, schedule)
        if updated is None:
            raise NotFoundError(f"Feeding schedule {schedule_id} not found", detail={"schedule_id": schedule_id})
        logger.info("Updated schedule %s for feeder %s", schedule_id, existing.feeder_id)

        feeder = self.get_feeder(existing.feeder_id)
        self.sync_device(feeder)
        return self._with_timezone(updated, feeder)

    def delete_schedule(self, schedule_id: str, roles: Roles) -> None:
        existing = self._load(schedule_id)
        self._require(roles, existing.feeder_id, PermissionType.DELETE_FEEDING_SCHEDULES)
        if not self._repository.delete(schedule_id):
            raise NotFoundError(f"Feeding schedule {schedule_id} not found", detail={"schedule_id": schedule_id})
        logger.info("Deleted schedule %s for feeder %s", schedule_id, existing.feeder_id)
        self.sync_device(self.get_feeder(existing.feeder_id))

    def release_feed(self, feeder_id: str, feed_amount: Any, roles: Roles) -> Decimal:
        """
        Trigger an immediate feed release on the device.

        Returns:
            The amount sent

        Raises:
            DeviceError: If the command could not be handed to the broker
        """
        self._require(roles, feeder_id, PermissionType.MANUAL_FEED_RELEASE)
        amount = to_decimal(feed_amount)
        if amount is None or not amount.is_finite() or amount < MIN_FEED_AMOUNT:
            raise ValidationError(f"Feed amount must be at least {MIN_FEED_AMOUNT}")
        feeder = self.get_feeder(feeder_id)
        if not self._messaging.release_feed(feeder.device_id, amount):
            raise DeviceError(
                f"Feed release for feeder {feeder_id} was not delivered",
                detail={"feeder_id": feeder_id, "device_id": feeder.device_id},
            )
        return amount

    def sync_device(self, feeder: FeederRecord) -> bool:
        """Push every schedule of the feeder to its device."""
        schedules = self._repository.get_by_feeder(feeder.feeder_id)
        delivered = self._messaging.publish_schedules(
            feeder.device_id,
            schedules,
            feeder.timezone or self._default_timezone,
        )
        if not delivered:
            logger.warning("Schedule sync for feeder %s was not delivered", feeder.feeder_id)
        return delivered

    # --------------------------------------------------------------- helpers

    @staticmethod
    def _require(roles: Roles, feeder_id: str, permission: PermissionType) -> None:
        require_permission(roles.get(feeder_id) if roles else None, permission, feeder_id=feeder_id)

    def _load(self, schedule_id: str) -> FeedingSchedule:
        schedule = self._repository.get_by_id(schedule_id)
        if schedule is None:
            raise NotFoundError(f"Feeding schedule {schedule_id} not found", detail={"schedule_id": schedule_id})
        return schedule

    def _with_timezone(self, schedule: FeedingSchedule, feeder: FeederRecord | None) -> FeedingSchedule:
        if not schedule.timezone:
            schedule.timezone = (feeder.timezone if feeder else None) or self._default_timezone
        return schedule
