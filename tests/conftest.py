"""
Shared test fixtures for the SmartFeeder test suite.

Provides:
- In-memory SQLite database with all tables created
- Feeder, feeding and sensor repositories wired to the test database
- A fake MQTT publisher recording every message
- Service and Flask app factories for the top-level application
- Helpers for building schedules

Usage:
    def test_example(feeder_repo, feeder):
        assert feeder_repo.get_by_id(feeder.feeder_id) is not None
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from app.domain.feeders import FeederRecord
from app.domain.feeding import FeedingSchedule, FeedingSession
from app.hardware.mqtt.mqtt_broker_wrapper import MQTTClientWrapper
from app.services.device_messaging import DeviceMessagingService
from app.services.feeder_service import FeederService
from app.services.feeding_schedule_service import FeedingScheduleService
from app.services.sensor_data_service import SensorDataService
from infrastructure.database.repositories import (
    SQLiteFeederRepository,
    SQLiteFeedingScheduleRepository,
    SQLiteSensorDataRepository,
)
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

FEEDER_ID = "feeder-1"
DEVICE_ID = "ESP32-AA01"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


# ========================== Builders =======================================


def make_schedule(
    *,
    feeder_id: str = FEEDER_ID,
    start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc),
    end: datetime | None = None,
    interval: str = "daily",
    days: list[int] | None = None,
    sessions: list[tuple[str, str]] | None = None,
    timezone_name: str | None = None,
) -> FeedingSchedule:
    """Schedule with sensible defaults; sessions are (time, amount) pairs."""
    pairs = sessions if sessions is not None else [("08:00", "1.0")]
    return FeedingSchedule(
        feeder_id=feeder_id,
        start_date=start,
        end_date=end,
        interval=interval,
        days_of_week=days or [],
        sessions=[FeedingSession(time=t, feed_amount=a) for t, a in pairs],
        timezone=timezone_name,
    )


def published_messages(paho_client: MagicMock) -> list[tuple[str, dict]]:
    """(topic, decoded payload) for every publish on the fake paho client."""
    return [(c.args[0], json.loads(c.args[1])) for c in paho_client.publish.call_args_list]


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler


@pytest.fixture()
def feeding_repo(db_handler):
    """SQLiteFeedingScheduleRepository backed by the in-memory DB."""
    return SQLiteFeedingScheduleRepository(db_handler)


@pytest.fixture()
def feeder_repo(db_handler):
    return SQLiteFeederRepository(db_handler)


@pytest.fixture()
def sensor_repo(db_handler):
    return SQLiteSensorDataRepository(db_handler)


@pytest.fixture()
def feeder(feeder_repo):
    """A feeder in Sydney owned by USER_ID."""
    return feeder_repo.create(
        FeederRecord(
            feeder_id=FEEDER_ID,
            device_id=DEVICE_ID,
            name="Paddock 3",
            timezone="Australia/Sydney",
            owner_id=USER_ID,
        )
    )


# ========================== MQTT Fixtures ==================================


@pytest.fixture()
def paho_client():
    """Stand-in for paho's Client; every publish succeeds."""
    client = MagicMock(name="paho_client")
    client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)
    return client


@pytest.fixture()
def mqtt_wrapper(paho_client):
    return MQTTClientWrapper("broker.test", 1883, "test-client", client=paho_client)


@pytest.fixture()
def messaging(mqtt_wrapper):
    return DeviceMessagingService(mqtt_wrapper)


# ========================== Service Fixtures ===============================


@pytest.fixture()
def feeding_service(feeding_repo, messaging):
    return FeedingScheduleService(feeding_repo, messaging, default_timezone="UTC")


@pytest.fixture()
def feeder_service(feeder_repo, messaging):
    return FeederService(feeder_repo, messaging, default_timezone="UTC")


@pytest.fixture()
def sensor_data_service(sensor_repo, feeder_service):
    return SensorDataService(sensor_repo, feeder_service)


@pytest.fixture()
def owner_roles():
    return {FEEDER_ID: "owner"}


# ========================== Flask Fixtures =================================


@pytest.fixture()
def app(tmp_path, mqtt_wrapper):
    from app import create_app

    flask_app = create_app(
        {
            "database_path": str(tmp_path / "smartfeeder.db"),
            "enable_mqtt": False,
            "log_file": "",
        },
        mqtt_client=mqtt_wrapper,
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.config["CONTAINER"].shutdown()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def api_feeder(app):
    """Feeder owned by USER_ID in the app's database."""
    repo = app.config["CONTAINER"].feeder_repo
    return repo.create(FeederRecord(feeder_id=FEEDER_ID, device_id=DEVICE_ID, timezone="UTC", owner_id=USER_ID))


def sign_in(client, roles: dict[str, str] | None = None, *, user_id: str | None = None) -> None:
    """
    Store the user and their feeder memberships in the session the way the
    auth layer does.

    Ownership is read from the feeder row, so an ``owner`` entry in ``roles``
    signs in as USER_ID (who owns the test feeders); anyone else signs in as
    OTHER_USER_ID unless ``user_id`` says otherwise.
    """
    roles = roles or {}
    if user_id is None:
        user_id = USER_ID if "owner" in roles.values() else OTHER_USER_ID
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["feeder_roles"] = roles
