import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from infrastructure.database.ops.feeders import FeederOperations
from infrastructure.database.ops.feeding_schedules import FeedingScheduleOperations
from infrastructure.database.ops.sensor_data import SensorDataOperations

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


class SQLiteDatabaseHandler(FeederOperations, FeedingScheduleOperations, SensorDataOperations):
    """Thread-safe SQLite handler decoupled from Flask globals."""

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()

        if database_path != MEMORY_DATABASE:
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created database directory: {db_path.parent}")

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return "malformed" in message or "is not a database" in message

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        if self._database_path == MEMORY_DATABASE:
            return None
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{db_path.suffix or '.db'}"
        try:
            shutil.move(str(db_path), str(quarantined))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Enable cascades and WAL; sessions rely on ON DELETE CASCADE."""
        connection.execute("PRAGMA foreign_keys=ON")
        if self._database_path != MEMORY_DATABASE:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        # In-memory databases live only as long as their connection.
        if self._database_path == MEMORY_DATABASE:
            return
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        finally:
            conn.commit()

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        try:
            with self.connection() as db:
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Feeders (
                        feeder_id TEXT PRIMARY KEY,
                        device_id TEXT NOT NULL UNIQUE,
                        name TEXT,
                        description TEXT,
                        location TEXT,
                        timezone TEXT DEFAULT 'UTC',
                        owner_id TEXT,
                        last_communication TIMESTAMP,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS FeedingSchedules (
                        schedule_id TEXT PRIMARY KEY,
                        feeder_id TEXT NOT NULL,
                        start_date TIMESTAMP NOT NULL,
                        end_date TIMESTAMP,
                        interval_type TEXT NOT NULL DEFAULT 'daily'
                            CHECK (interval_type IN ('daily', 'weekly', 'biweekly', 'four-weekly')),
                        days_of_week TEXT NOT NULL DEFAULT '[]',
                        created_at TIMESTAMP NOT NULL,
                        updated_at TIMESTAMP NOT NULL,
                        FOREIGN KEY (feeder_id) REFERENCES Feeders(feeder_id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_feeding_schedules_feeder ON FeedingSchedules(feeder_id)"
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS FeedingSessions (
                        session_id TEXT PRIMARY KEY,
                        schedule_id TEXT NOT NULL,
                        position INTEGER NOT NULL DEFAULT 0,
                        time TEXT NOT NULL,
                        feed_amount TEXT NOT NULL,
                        FOREIGN KEY (schedule_id) REFERENCES FeedingSchedules(schedule_id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute("CREATE INDEX IF NOT EXISTS idx_feeders_owner ON Feeders(owner_id)")
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_feeding_sessions_schedule ON FeedingSessions(schedule_id)"
                )
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS SensorReadings (
                        reading_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        device_id TEXT NOT NULL,
                        sensor_type TEXT NOT NULL,
                        value REAL NOT NULL,
                        timestamp TIMESTAMP NOT NULL,
                        created_at TIMESTAMP NOT NULL
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_sensor_readings_device_time "
                    "ON SensorReadings(device_id, timestamp)"
                )
            logger.info("Database tables ready at %s", self._database_path)
        except sqlite3.Error as e:
            logger.error(f"Error creating tables: {e}")
            raise
