"""
Feeder Service
==============

Registration and management of feeders on a user account.

A device id can belong to one account at a time. Removing a feeder keeps
its row with no owner (its telemetry stays addressable by device id), clears
its schedules and tells the device to drop whatever it holds. Registering an
orphaned device again reclaims that row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from app.domain.exceptions import AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError
from app.domain.feeder_status import ONLINE_WINDOW, FeederStatus, get_feeder_status
from app.domain.feeders import FeederRecord, FeederRepository
from app.domain.permissions import require_permission, role_has_permission
from app.enums.feeding import FeederRole, PermissionType
from app.services.device_messaging import DeviceMessagingService
from app.utils.time import coerce_datetime

logger = logging.getLogger(__name__)

Roles = Mapping[str, "FeederRole | str"]

_EDITABLE_FIELDS = ("name", "description", "location", "timezone")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class FeederOverview:
    feeder: FeederRecord
    role: str
    status: FeederStatus

    def to_dict(self) -> dict[str, Any]:
        return {**self.feeder.to_dict(), "role": self.role, "status": self.status.to_dict()}


class FeederService:
    """Feeder CRUD, ownership and connectivity status."""

    def __init__(
        self,
        repository: FeederRepository,
        messaging: DeviceMessagingService,
        *,
        default_timezone: str = "UTC",
        online_window: timedelta = ONLINE_WINDOW,
    ) -> None:
        self._repository = repository
        self._messaging = messaging
        self._default_timezone = default_timezone
        self._online_window = online_window

    # ------------------------------------------------------------------ roles

    def roles_for(self, user_id: str | None, granted: Roles | None = None) -> dict[str, str]:
        """
        Merge membership roles with ownership.

        Args:
            user_id: Signed-in user, or None
            granted: Memberships on feeders shared with the user

        Returns:
            feeder id -> role; ``owner`` only on feeders the user owns
        """
        # Ownership comes from the feeder row only, never from a stored membership.
        roles = {
            str(feeder_id): str(role)
            for feeder_id, role in (granted or {}).items()
            if str(role).lower() != FeederRole.OWNER.value
        }
        if user_id:
            for feeder in self._repository.get_by_owner(user_id):
                roles[feeder.feeder_id] = FeederRole.OWNER.value
        return roles

    # ------------------------------------------------------------------ reads

    def get_feeder(self, feeder_id: str) -> FeederRecord:
        feeder = self._repository.get_by_id(feeder_id)
        if feeder is None:
            raise NotFoundError(f"Feeder {feeder_id} not found", detail={"feeder_id": feeder_id})
        return feeder

    def get_feeder_by_device_id(self, device_id: str) -> FeederRecord | None:
        return self._repository.get_by_device_id(device_id)

    def describe_feeder(self, feeder_id: str, roles: Roles, now: datetime) -> FeederOverview:
        self._require(roles, feeder_id, PermissionType.VIEW_SENSOR_DATA)
        return self._overview(self.get_feeder(feeder_id), roles, now)

    def list_feeders(self, roles: Roles, now: datetime) -> list[FeederOverview]:
        """Every feeder the user may see, newest first. Orphaned feeders are skipped."""
        overviews = []
        for feeder_id, role in roles.items():
            if not role_has_permission(role, PermissionType.VIEW_SENSOR_DATA):
                continue
            feeder = self._repository.get_by_id(feeder_id)
            if feeder is None or feeder.is_orphaned:
                continue
            overviews.append(self._overview(feeder, roles, now))
        overviews.sort(key=lambda o: coerce_datetime(o.feeder.created_at) or _EPOCH, reverse=True)
        return overviews

    def feeder_status(self, feeder_id: str, roles: Roles, now: datetime) -> FeederStatus:
        self._require(roles, feeder_id, PermissionType.VIEW_SENSOR_DATA)
        feeder = self.get_feeder(feeder_id)
        return get_feeder_status(feeder.last_communication, now, window=self._online_window)

    # -------------------------------------------------------------- mutations

    def register_feeder(self, user_id: str | None, data: Mapping[str, Any]) -> FeederRecord:
        """
        Add a device to the user's account.

        Raises:
            AuthenticationError: If nobody is signed in
            ConflictError: If the device already belongs to an account
        """
        if not user_id:
            raise AuthenticationError("Sign in to register a feeder")

        device_id = str(data["device_id"]).strip()
        existing = self._repository.get_by_device_id(device_id)
        if existing is not None and not existing.is_orphaned:
            detail = {"device_id": device_id}
            if existing.owner_id == user_id:
                raise ConflictError("You already own a feeder with this device ID", detail=detail)
            raise ConflictError("This device is registered to another account", detail=detail)

        if existing is not None:
            existing.owner_id = user_id
            self._apply(existing, data)
            reclaimed = self._repository.update(existing)
            if reclaimed is None:
                raise NotFoundError(f"Feeder {existing.feeder_id} not found", detail={"feeder_id": existing.feeder_id})
            logger.info("User %s reclaimed orphaned feeder %s (%s)", user_id, reclaimed.feeder_id, device_id)
            return reclaimed

        feeder = FeederRecord(
            feeder_id="",
            device_id=device_id,
            timezone=self._default_timezone,
            owner_id=user_id,
        )
        self._apply(feeder, data)
        created = self._repository.create(feeder)
        logger.info("User %s registered feeder %s (%s)", user_id, created.feeder_id, device_id)
        return created

    def update_feeder(self, feeder_id: str, changes: Mapping[str, Any], roles: Roles) -> FeederRecord:
        """Change display fields or timezone. The device id is fixed at registration."""
        self._require(roles, feeder_id, PermissionType.EDIT_FEEDER_SETTINGS)
        feeder = self.get_feeder(feeder_id)
        self._apply(feeder, changes)
        updated = self._repository.update(feeder)
        if updated is None:
            raise NotFoundError(f"Feeder {feeder_id} not found", detail={"feeder_id": feeder_id})
        logger.info("Updated settings of feeder %s", feeder_id)
        return updated

    def remove_feeder(self, feeder_id: str, roles: Roles) -> bool:
        """
        Remove a feeder from its owner's account.

        Returns:
            Whether the device was told to clear its schedules
        """
        role = roles.get(feeder_id) if roles else None
        if str(role or "").lower() != FeederRole.OWNER.value:
            raise PermissionDeniedError(
                "Only the owner can remove a feeder",
                detail={"feeder_id": feeder_id, "role": str(role) if role else None},
            )
        feeder = self.get_feeder(feeder_id)
        if not self._repository.orphan(feeder_id):
            raise NotFoundError(f"Feeder {feeder_id} not found", detail={"feeder_id": feeder_id})

        cleared = self._messaging.publish_schedules(feeder.device_id, [], feeder.timezone or self._default_timezone)
        if not cleared:
            logger.warning("Feeder %s removed but the device was not told to clear its schedules", feeder_id)
        logger.info("Removed feeder %s (%s) from its account", feeder_id, feeder.device_id)
        return cleared

    def record_communication(self, device_id: str, at: datetime) -> bool:
        """Stamp a registered device as heard from; older stamps never replace newer ones."""
        feeder = self._repository.get_by_device_id(device_id)
        if feeder is None:
            return False
        at = coerce_datetime(at)
        last = coerce_datetime(feeder.last_communication)
        if at is None or (last is not None and last >= at):
            return False
        return self._repository.record_communication(feeder.feeder_id, at)

    # --------------------------------------------------------------- helpers

    @staticmethod
    def _require(roles: Roles, feeder_id: str, permission: PermissionType) -> None:
        require_permission(roles.get(feeder_id) if roles else None, permission, feeder_id=feeder_id)

    @staticmethod
    def _apply(feeder: FeederRecord, data: Mapping[str, Any]) -> None:
        for field_name in _EDITABLE_FIELDS:
            value = data.get(field_name)
            if value is not None:
                setattr(feeder, field_name, value)

    def _overview(self, feeder: FeederRecord, roles: Roles, now: datetime) -> FeederOverview:
        return FeederOverview(
            feeder=feeder,
            role=str(roles.get(feeder.feeder_id)),
            status=get_feeder_status(feeder.last_communication, now, window=self._online_window),
        )
