"""
Feeder Records
==============

A feeder is a physical device addressed by its ``device_id``. Ownership is
tracked by ``owner_id``; a feeder whose owner removed it keeps its row (and
its telemetry) with no owner until someone registers the device again.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from app.utils.time import isoformat_or_none


@dataclass
class FeederRecord:
    """Feeder attributes: device addressing, display fields and timezone."""

    feeder_id: str
    device_id: str
    name: str = ""
    timezone: str = "UTC"
    description: str = ""
    location: str = ""
    owner_id: str | None = None
    last_communication: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_orphaned(self) -> bool:
        return self.owner_id is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.feeder_id,
            "device_id": self.device_id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "timezone": self.timezone,
            "owner_id": self.owner_id,
            "last_communication": isoformat_or_none(self.last_communication),
            "created_at": isoformat_or_none(self.created_at),
        }


class FeederRepository(Protocol):
    """Protocol for feeder persistence operations."""

    @abstractmethod
    def create(self, feeder: FeederRecord) -> FeederRecord:
        """
        Insert a feeder.

        Returns:
            The feeder with feeder_id (when empty) and created_at assigned
        """
        ...

    @abstractmethod
    def get_by_id(self, feeder_id: str) -> FeederRecord | None:
        ...

    @abstractmethod
    def get_by_device_id(self, device_id: str) -> FeederRecord | None:
        ...

    @abstractmethod
    def get_by_owner(self, owner_id: str) -> list[FeederRecord]:
        """Feeders owned by a user, newest first."""
        ...

    @abstractmethod
    def update(self, feeder: FeederRecord) -> FeederRecord | None:
        """Write display fields, timezone and owner; None if the feeder is gone."""
        ...

    @abstractmethod
    def orphan(self, feeder_id: str) -> bool:
        """Clear the owner and delete every schedule of the feeder."""
        ...

    @abstractmethod
    def record_communication(self, feeder_id: str, at: datetime) -> bool:
        """Stamp the last time the feeder reported in."""
        ...
