"""
Feeding Schedule Database Operations
====================================

CRUD for the FeedingSchedules and FeedingSessions tables.
Sessions are owned by their schedule: updates delete and re-insert them,
and deleting a schedule (or its feeder) cascades to them.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.domain.feeding.schedule_entity import FeedingSchedule, FeedingSession
from app.utils.time import isoformat_or_none, parse_datetime, utc_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class FeedingScheduleOperations:
    """Feeding schedule CRUD helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def create_feeding_schedule(self, schedule: FeedingSchedule) -> FeedingSchedule:
        """
        Insert a schedule and its sessions in one transaction.

        Args:
            schedule: Schedule to create (schedule_id is assigned here)

        Returns:
            The same schedule with ids and timestamps filled in
        """
        db = self.get_db()
        schedule_id = _new_id()
        now = utc_now()

        try:
            with db:
                db.execute(
                    """
                    INSERT INTO FeedingSchedules (
                        schedule_id, feeder_id, start_date, end_date,
                        interval_type, days_of_week, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        schedule_id,
                        schedule.feeder_id,
                        isoformat_or_none(schedule.start_date),
                        isoformat_or_none(schedule.end_date),
                        str(schedule.interval),
                        json.dumps(list(schedule.days_of_week)),
                        now.isoformat(),
                        now.isoformat(),
                    ),
                )
                self._insert_sessions(db, schedule_id, schedule.sessions)
        except sqlite3.Error as e:
            logger.error(f"Error creating feeding schedule for feeder {schedule.feeder_id}: {e}")
            raise RepositoryError(
                "Failed to create feeding schedule", detail={"feeder_id": schedule.feeder_id}
            ) from e

        schedule.schedule_id = schedule_id
        schedule.created_at = now
        schedule.updated_at = now
        return schedule

    def get_feeding_schedule(self, schedule_id: str) -> FeedingSchedule | None:
        db = self.get_db()
        try:
            row = db.execute(
                "SELECT * FROM FeedingSchedules WHERE schedule_id = ?",
                (schedule_id,),
            ).fetchone()
            if not row:
                return None
            return self._row_to_schedule(dict(row), self._load_sessions(db, [schedule_id]))
        except sqlite3.Error as e:
            logger.error(f"Error getting feeding schedule {schedule_id}: {e}")
            raise RepositoryError("Failed to load feeding schedule", detail={"schedule_id": schedule_id}) from e

    def get_feeding_schedules_by_feeder(self, feeder_id: str) -> list[FeedingSchedule]:
        """All schedules of a feeder, newest first."""
        db = self.get_db()
        try:
            rows = db.execute(
                """
                SELECT * FROM FeedingSchedules
                WHERE feeder_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (feeder_id,),
            ).fetchall()
            sessions = self._load_sessions(db, [row["schedule_id"] for row in rows])
            return [self._row_to_schedule(dict(row), sessions) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error getting feeding schedules for feeder {feeder_id}: {e}")
            raise RepositoryError("Failed to load feeding schedules", detail={"feeder_id": feeder_id}) from e

    def update_feeding_schedule(self, schedule_id: str, schedule: FeedingSchedule) -> FeedingSchedule | None:
        """Replace schedule fields and recreate all sessions."""
        db = self.get_db()
        now = utc_now()
        try:
            with db:
                cursor = db.execute(
                    """
                    UPDATE FeedingSchedules SET
                        start_date = ?, end_date = ?, interval_type = ?,
                        days_of_week = ?, updated_at = ?
                    WHERE schedule_id = ?
                    """,
                    (
                        isoformat_or_none(schedule.start_date),
                        isoformat_or_none(schedule.end_date),
                        str(schedule.interval),
                        json.dumps(list(schedule.days_of_week)),
                        now.isoformat(),
                        schedule_id,
                    ),
                )
                if cursor.rowcount == 0:
                    return None
                db.execute("DELETE FROM FeedingSessions WHERE schedule_id = ?", (schedule_id,))
                self._insert_sessions(db, schedule_id, schedule.sessions)
        except sqlite3.Error as e:
            logger.error(f"Error updating feeding schedule {schedule_id}: {e}")
            raise RepositoryError("Failed to update feeding schedule", detail={"schedule_id": schedule_id}) from e

        return self.get_feeding_schedule(schedule_id)

    def delete_feeding_schedule(self, schedule_id: str) -> bool:
        db = self.get_db()
        try:
            with db:
                cursor = db.execute("DELETE FROM FeedingSchedules WHERE schedule_id = ?", (schedule_id,))
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Error deleting feeding schedule {schedule_id}: {e}")
            raise RepositoryError("Failed to delete feeding schedule", detail={"schedule_id": schedule_id}) from e

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _insert_sessions(db: "Connection", schedule_id: str, sessions: list[FeedingSession]) -> None:
        for position, session in enumerate(sessions):
            session.session_id = _new_id()
            db.execute(
                """
                INSERT INTO FeedingSessions (session_id, schedule_id, position, time, feed_amount)
                VALUES (?, ?, ?, ?, ?)
                """,
                (session.session_id, schedule_id, position, session.time, str(session.feed_amount)),
            )

    @staticmethod
    def _load_sessions(db: "Connection", schedule_ids: list[str]) -> dict[str, list[FeedingSession]]:
        grouped: dict[str, list[FeedingSession]] = {schedule_id: [] for schedule_id in schedule_ids}
        if not schedule_ids:
            return grouped
        placeholders = ", ".join("?" for _ in schedule_ids)
        rows = db.execute(
            f"""
            SELECT * FROM FeedingSessions
            WHERE schedule_id IN ({placeholders})
            ORDER BY schedule_id, position
            """,
            schedule_ids,
        ).fetchall()
        for row in rows:
            grouped[row["schedule_id"]].append(
                FeedingSession(
                    time=row["time"],
                    feed_amount=row["feed_amount"],
                    session_id=row["session_id"],
                )
            )
        return grouped

    @staticmethod
    def _row_to_schedule(row: dict[str, Any], sessions: dict[str, list[FeedingSession]]) -> FeedingSchedule:
        days = row.get("days_of_week")
        try:
            days_of_week = json.loads(days) if days else []
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON in days_of_week: {days}")
            days_of_week = []
        return FeedingSchedule(
            schedule_id=row["schedule_id"],
            feeder_id=row["feeder_id"],
            start_date=parse_datetime(row.get("start_date")),
            end_date=parse_datetime(row.get("end_date")),
            interval=row.get("interval_type") or "daily",
            days_of_week=days_of_week,
            sessions=sessions.get(row["schedule_id"], []),
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )
