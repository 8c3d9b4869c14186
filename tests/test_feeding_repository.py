"""
Feeding Repository Tests
========================
CRUD against the in-memory SQLite database.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.domain.exceptions import RepositoryError
from app.domain.feeders import FeederRecord
from app.enums.feeding import ScheduleInterval
from conftest import DEVICE_ID, FEEDER_ID, make_schedule


class TestFeederLookup:
    def test_get_feeder(self, feeding_repo, feeder):
        loaded = feeding_repo.get_feeder(FEEDER_ID)

        assert loaded.device_id == DEVICE_ID
        assert loaded.timezone == "Australia/Sydney"

    def test_unknown_feeder(self, feeding_repo):
        assert feeding_repo.get_feeder("missing") is None


class TestCreate:
    def test_assigns_ids_and_timestamps(self, feeding_repo, feeder):
        created = feeding_repo.create(make_schedule(sessions=[("08:00", "1.5"), ("18:00", "2")]))

        assert created.schedule_id
        assert created.created_at is not None
        assert created.created_at == created.updated_at
        assert all(session.session_id for session in created.sessions)

    def test_round_trip(self, feeding_repo, feeder):
        created = feeding_repo.create(
            make_schedule(
                start=datetime(2025, 2, 1, 6, 30, tzinfo=timezone.utc),
                end=datetime(2025, 6, 1, tzinfo=timezone.utc),
                interval="biweekly",
                days=[1, 4],
                sessions=[("06:30", "0.75"), ("17:15", "1.25")],
            )
        )

        loaded = feeding_repo.get_by_id(created.schedule_id)

        assert loaded.feeder_id == FEEDER_ID
        assert loaded.start_date == datetime(2025, 2, 1, 6, 30, tzinfo=timezone.utc)
        assert loaded.end_date == datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert loaded.interval is ScheduleInterval.BIWEEKLY
        assert loaded.days_of_week == [1, 4]
        assert [(s.time, s.feed_amount) for s in loaded.sessions] == [
            ("06:30", Decimal("0.75")),
            ("17:15", Decimal("1.25")),
        ]

    def test_session_order_preserved(self, feeding_repo, feeder):
        """Sessions come back in entry order, not sorted by time."""
        created = feeding_repo.create(make_schedule(sessions=[("18:00", "1"), ("06:00", "1")]))

        loaded = feeding_repo.get_by_id(created.schedule_id)
        assert [s.time for s in loaded.sessions] == ["18:00", "06:00"]

    def test_unknown_feeder_raises_repository_error(self, feeding_repo):
        with pytest.raises(RepositoryError) as exc_info:
            feeding_repo.create(make_schedule(feeder_id="missing"))

        assert exc_info.value.detail == {"feeder_id": "missing"}


class TestQueries:
    def test_get_by_feeder_newest_first(self, feeding_repo, feeder):
        first = feeding_repo.create(make_schedule())
        second = feeding_repo.create(make_schedule(interval="weekly", days=[2]))

        ids = [s.schedule_id for s in feeding_repo.get_by_feeder(FEEDER_ID)]

        assert ids == [second.schedule_id, first.schedule_id]

    def test_get_by_feeder_empty(self, feeding_repo, feeder):
        assert feeding_repo.get_by_feeder(FEEDER_ID) == []

    def test_get_by_feeder_isolated(self, feeding_repo, feeder_repo, feeder):
        feeder_repo.create(FeederRecord(feeder_id="feeder-2", device_id="ESP32-CC03"))
        feeding_repo.create(make_schedule(feeder_id="feeder-2"))

        assert feeding_repo.get_by_feeder(FEEDER_ID) == []
        assert len(feeding_repo.get_by_feeder("feeder-2")) == 1

    def test_get_unknown_schedule(self, feeding_repo):
        assert feeding_repo.get_by_id("missing") is None


class TestUpdate:
    def test_replaces_fields_and_sessions(self, feeding_repo, feeder):
        created = feeding_repo.create(make_schedule(sessions=[("08:00", "1"), ("12:00", "1")]))
        old_session_ids = {s.session_id for s in created.sessions}

        updated = feeding_repo.update(
            created.schedule_id,
            make_schedule(interval="weekly", days=[0, 6], sessions=[("09:30", "2.5")]),
        )

        assert updated.schedule_id == created.schedule_id
        assert updated.interval is ScheduleInterval.WEEKLY
        assert updated.days_of_week == [0, 6]
        assert [(s.time, s.feed_amount) for s in updated.sessions] == [("09:30", Decimal("2.5"))]
        assert old_session_ids.isdisjoint({s.session_id for s in updated.sessions})
        assert updated.updated_at >= created.created_at

    def test_unknown_schedule_returns_none(self, feeding_repo, feeder):
        assert feeding_repo.update("missing", make_schedule()) is None


class TestDelete:
    def test_delete(self, feeding_repo, feeder):
        created = feeding_repo.create(make_schedule())

        assert feeding_repo.delete(created.schedule_id) is True
        assert feeding_repo.get_by_id(created.schedule_id) is None
        assert feeding_repo.delete(created.schedule_id) is False

    def test_sessions_removed_with_schedule(self, feeding_repo, feeder, db_handler):
        created = feeding_repo.create(make_schedule(sessions=[("08:00", "1"), ("20:00", "1")]))
        feeding_repo.delete(created.schedule_id)

        count = db_handler.get_db().execute(
            "SELECT COUNT(*) FROM FeedingSessions WHERE schedule_id = ?", (created.schedule_id,)
        ).fetchone()[0]
        assert count == 0
