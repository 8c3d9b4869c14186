"""
Feeder Database Operations
==========================

CRUD for the Feeders table. Removing a feeder from an account orphans it:
the row stays (device ids are unique and telemetry refers to them) but the
owner is cleared and its schedules are deleted.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import ConflictError, RepositoryError
from app.domain.feeders import FeederRecord
from app.utils.time import parse_datetime, utc_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


class FeederOperations:
    """Feeder persistence helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def insert_feeder(self, feeder: FeederRecord) -> FeederRecord:
        """
        Insert a feeder row.

        Raises:
            ConflictError: If the device id is already registered
        """
        db = self.get_db()
        feeder_id = feeder.feeder_id or uuid.uuid4().hex
        now = utc_now()
        try:
            with db:
                db.execute(
                    """
                    INSERT INTO Feeders (
                        feeder_id, device_id, name, description, location,
                        timezone, owner_id, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        feeder_id,
                        feeder.device_id,
                        feeder.name,
                        feeder.description,
                        feeder.location,
                        feeder.timezone,
                        feeder.owner_id,
                        now.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            logger.warning(f"Feeder insert rejected for device {feeder.device_id}: {e}")
            raise ConflictError(
                "A feeder with this device ID is already registered",
                detail={"device_id": feeder.device_id},
            ) from e
        except sqlite3.Error as e:
            logger.error(f"Error creating feeder for device {feeder.device_id}: {e}")
            raise RepositoryError("Failed to create feeder", detail={"device_id": feeder.device_id}) from e

        feeder.feeder_id = feeder_id
        feeder.created_at = now
        return feeder

    def get_feeder(self, feeder_id: str) -> FeederRecord | None:
        return self._fetch_one_feeder("feeder_id", feeder_id)

    def get_feeder_by_device_id(self, device_id: str) -> FeederRecord | None:
        return self._fetch_one_feeder("device_id", device_id)

    def get_feeders_by_owner(self, owner_id: str) -> list[FeederRecord]:
        """Feeders of one owner, newest first."""
        db = self.get_db()
        try:
            rows = db.execute(
                """
                SELECT * FROM Feeders
                WHERE owner_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (owner_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error listing feeders of owner {owner_id}: {e}")
            raise RepositoryError("Failed to load feeders", detail={"owner_id": owner_id}) from e
        return [self._row_to_feeder(dict(row)) for row in rows]

    def update_feeder(self, feeder: FeederRecord) -> FeederRecord | None:
        db = self.get_db()
        try:
            with db:
                cursor = db.execute(
                    """
                    UPDATE Feeders SET
                        name = ?, description = ?, location = ?,
                        timezone = ?, owner_id = ?
                    WHERE feeder_id = ?
                    """,
                    (
                        feeder.name,
                        feeder.description,
                        feeder.location,
                        feeder.timezone,
                        feeder.owner_id,
                        feeder.feeder_id,
                    ),
                )
        except sqlite3.Error as e:
            logger.error(f"Error updating feeder {feeder.feeder_id}: {e}")
            raise RepositoryError("Failed to update feeder", detail={"feeder_id": feeder.feeder_id}) from e
        if cursor.rowcount == 0:
            return None
        return self.get_feeder(feeder.feeder_id)

    def orphan_feeder(self, feeder_id: str) -> bool:
        """Clear the owner and delete the feeder's schedules in one transaction."""
        db = self.get_db()
        try:
            with db:
                db.execute("DELETE FROM FeedingSchedules WHERE feeder_id = ?", (feeder_id,))
                cursor = db.execute("UPDATE Feeders SET owner_id = NULL WHERE feeder_id = ?", (feeder_id,))
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Error orphaning feeder {feeder_id}: {e}")
            raise RepositoryError("Failed to remove feeder", detail={"feeder_id": feeder_id}) from e

    def record_feeder_communication(self, feeder_id: str, at: datetime) -> bool:
        db = self.get_db()
        try:
            with db:
                cursor = db.execute(
                    "UPDATE Feeders SET last_communication = ? WHERE feeder_id = ?",
                    (at.isoformat(), feeder_id),
                )
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Error recording communication for feeder {feeder_id}: {e}")
            raise RepositoryError("Failed to update feeder", detail={"feeder_id": feeder_id}) from e

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fetch_one_feeder(self, column: str, value: str) -> FeederRecord | None:
        db = self.get_db()
        try:
            row = db.execute(f"SELECT * FROM Feeders WHERE {column} = ?", (value,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error getting feeder by {column} {value}: {e}")
            raise RepositoryError("Failed to load feeder", detail={column: value}) from e
        return self._row_to_feeder(dict(row)) if row else None

    @staticmethod
    def _row_to_feeder(row: dict[str, Any]) -> FeederRecord:
        return FeederRecord(
            feeder_id=row["feeder_id"],
            device_id=row["device_id"],
            name=row.get("name") or "",
            description=row.get("description") or "",
            location=row.get("location") or "",
            timezone=row.get("timezone") or "UTC",
            owner_id=row.get("owner_id"),
            last_communication=parse_datetime(row.get("last_communication")),
            created_at=parse_datetime(row.get("created_at")),
        )
