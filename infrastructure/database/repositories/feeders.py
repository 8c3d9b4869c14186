"""
Feeder Repository
=================

SQLite implementation of the FeederRepository protocol.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from app.domain.feeders import FeederRecord

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class SQLiteFeederRepository:
    """Feeder rows over the FeederOperations mixin."""

    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        self._backend = backend

    def create(self, feeder: FeederRecord) -> FeederRecord:
        return self._backend.insert_feeder(feeder)

    def get_by_id(self, feeder_id: str) -> Optional[FeederRecord]:
        return self._backend.get_feeder(feeder_id)

    def get_by_device_id(self, device_id: str) -> Optional[FeederRecord]:
        return self._backend.get_feeder_by_device_id(device_id)

    def get_by_owner(self, owner_id: str) -> List[FeederRecord]:
        return self._backend.get_feeders_by_owner(owner_id)

    def update(self, feeder: FeederRecord) -> Optional[FeederRecord]:
        return self._backend.update_feeder(feeder)

    def orphan(self, feeder_id: str) -> bool:
        return self._backend.orphan_feeder(feeder_id)

    def record_communication(self, feeder_id: str, at: datetime) -> bool:
        return self._backend.record_feeder_communication(feeder_id, at)
