"""
Sensor Data Tests
=================
Reading summaries, SQLite storage and SensorDataService access rules.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.domain.sensor_data import SensorReading, summarize_readings
from conftest import DEVICE_ID, FEEDER_ID

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def reading(sensor_type, value, minutes_ago, device_id=DEVICE_ID):
    return SensorReading(
        device_id=device_id,
        sensor_type=sensor_type,
        value=value,
        timestamp=NOW - timedelta(minutes=minutes_ago),
    )


class TestSummarize:
    def test_latest_per_type(self):
        summaries = summarize_readings(
            [reading("weight", 10.0, 30), reading("weight", 9.5, 5), reading("temperature", 21.0, 60)]
        )

        assert [s.sensor_type for s in summaries] == ["temperature", "weight"]
        weight = summaries[1]
        assert weight.latest_value == 9.5
        assert weight.readings_count == 2
        assert weight.to_dict()["latest_timestamp"] == "2025-01-01T11:55:00+00:00"

    def test_empty(self):
        assert summarize_readings([]) == []


class TestRepository:
    def test_newest_first_and_filters(self, sensor_repo):
        sensor_repo.add_readings(
            [reading("weight", 10.0, 120), reading("weight", 9.0, 10), reading("temperature", 20.5, 5)]
        )

        newest = sensor_repo.get_readings(DEVICE_ID)
        recent_weight = sensor_repo.get_readings(DEVICE_ID, since=NOW - timedelta(hours=1), sensor_type="weight")

        assert [r.value for r in newest] == [20.5, 9.0, 10.0]
        assert newest[0].reading_id is not None
        assert newest[0].timestamp == NOW - timedelta(minutes=5)
        assert [r.value for r in recent_weight] == [9.0]

    def test_limit_and_device_isolation(self, sensor_repo):
        sensor_repo.add_readings([reading("weight", float(i), i) for i in range(5)])
        sensor_repo.add_readings([reading("weight", 99.0, 0, device_id="ESP32-BB02")])

        assert [r.value for r in sensor_repo.get_readings(DEVICE_ID, limit=2)] == [0.0, 1.0]

    def test_sensor_types_sorted_unique(self, sensor_repo):
        sensor_repo.add_readings([reading("weight", 1, 1), reading("battery", 3.7, 2), reading("weight", 2, 3)])

        assert sensor_repo.get_sensor_types(DEVICE_ID) == ["battery", "weight"]
        assert sensor_repo.get_sensor_types("ESP32-ZZ99") == []

    def test_empty_batch(self, sensor_repo):
        assert sensor_repo.add_readings([]) == 0


class TestService:
    def test_record_stamps_feeder(self, sensor_data_service, feeder_repo, feeder):
        stored = sensor_data_service.record_readings(
            DEVICE_ID,
            [
                {"sensor_type": "weight", "value": 12.5, "timestamp": NOW - timedelta(minutes=2)},
                {"sensor_type": "battery", "value": 3.9, "timestamp": NOW - timedelta(minutes=1)},
            ],
        )

        assert stored == 2
        assert feeder_repo.get_by_id(FEEDER_ID).last_communication == NOW - timedelta(minutes=1)

    def test_future_timestamps_do_not_stamp_ahead(self, sensor_data_service, feeder_repo, feeder):
        """A device clock running fast cannot keep a feeder online."""
        sensor_data_service.record_readings(
            DEVICE_ID,
            [{"sensor_type": "weight", "value": 1.0, "timestamp": datetime(2999, 1, 1, tzinfo=timezone.utc)}],
        )

        last = feeder_repo.get_by_id(FEEDER_ID).last_communication
        assert last < datetime(2999, 1, 1, tzinfo=timezone.utc)

    def test_unregistered_device_still_stored(self, sensor_data_service, sensor_repo):
        sensor_data_service.record_readings("ESP32-ZZ99", [{"sensor_type": "weight", "value": 1.0}])

        assert len(sensor_repo.get_readings("ESP32-ZZ99")) == 1

    def test_empty_batch_rejected(self, sensor_data_service):
        with pytest.raises(ValidationError):
            sensor_data_service.record_readings(DEVICE_ID, [])

    def test_readings_window(self, sensor_data_service, sensor_repo, feeder):
        sensor_repo.add_readings([reading("weight", 1.0, 60 * 30), reading("weight", 2.0, 60)])

        day = sensor_data_service.get_readings(FEEDER_ID, {FEEDER_ID: "viewer"}, NOW)
        two_days = sensor_data_service.get_readings(FEEDER_ID, {FEEDER_ID: "viewer"}, NOW, hours=48)

        assert [r.value for r in day] == [2.0]
        assert [r.value for r in two_days] == [2.0, 1.0]

    def test_summary_and_types(self, sensor_data_service, sensor_repo, feeder, owner_roles):
        sensor_repo.add_readings([reading("weight", 1.0, 10), reading("weight", 2.0, 1)])

        (summary,) = sensor_data_service.summary(FEEDER_ID, owner_roles)

        assert summary.latest_value == 2.0
        assert summary.readings_count == 2
        assert sensor_data_service.get_sensor_types(FEEDER_ID, owner_roles) == ["weight"]

    def test_requires_membership(self, sensor_data_service, feeder):
        with pytest.raises(PermissionDeniedError) as exc_info:
            sensor_data_service.summary(FEEDER_ID, {})

        assert exc_info.value.detail["permission"] == "view_sensor_data"

    def test_orphaned_feeder_hidden(self, sensor_data_service, feeder_repo, feeder):
        feeder_repo.orphan(FEEDER_ID)

        with pytest.raises(NotFoundError):
            sensor_data_service.get_sensor_types(FEEDER_ID, {FEEDER_ID: "viewer"})
