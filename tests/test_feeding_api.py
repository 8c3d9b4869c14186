"""
Feeding API Tests
=================
HTTP behaviour of the feeding blueprint: envelope, status codes, permissions.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from conftest import DEVICE_ID, FEEDER_ID, published_messages, sign_in

BASE = "/api/feeding"
AT = {"at": "2025-01-01T00:00:00Z"}

DAILY_BODY = {
    "startDate": "2025-01-01T00:00:00Z",
    "interval": "daily",
    "sessions": [{"time": "08:00", "feedAmount": 1.5}, {"time": "18:00", "feedAmount": 2}],
}


@pytest.fixture()
def owner_client(client, api_feeder):
    sign_in(client, {FEEDER_ID: "owner"})
    return client


def _create(client, body=None):
    response = client.post(f"{BASE}/feeders/{FEEDER_ID}/schedules", json=body or DAILY_BODY, query_string=AT)
    assert response.status_code == 201
    return response.get_json()["data"]


class TestEnvelope:
    def test_unknown_route_is_json(self, client):
        response = client.get(f"{BASE}/nothing-here")

        assert response.status_code == 404
        payload = response.get_json()
        assert payload["ok"] is False
        assert payload["data"] is None
        assert "timestamp" in payload["error"]

    def test_invalid_evaluation_time(self, owner_client):
        response = owner_client.get(f"{BASE}/feeders/{FEEDER_ID}/schedules", query_string={"at": "soon"})

        assert response.status_code == 400
        assert "Invalid datetime format" in response.get_json()["error"]["message"]


class TestPermissions:
    def test_anonymous_denied(self, client, api_feeder):
        response = client.post(f"{BASE}/feeders/{FEEDER_ID}/schedules", json=DAILY_BODY)

        assert response.status_code == 403
        error = response.get_json()["error"]
        assert error["details"]["permission"] == "create_feeding_schedules"

    def test_viewer_can_read_but_not_write(self, client, api_feeder):
        sign_in(client, {FEEDER_ID: "viewer"})

        assert client.get(f"{BASE}/feeders/{FEEDER_ID}/schedules").status_code == 200
        assert client.post(f"{BASE}/feeders/{FEEDER_ID}/schedules", json=DAILY_BODY).status_code == 403
        assert client.post(f"{BASE}/feeders/{FEEDER_ID}/feed", json={"feed_amount": 1}).status_code == 403


class TestCreateSchedule:
    def test_created(self, owner_client, paho_client):
        response = owner_client.post(f"{BASE}/feeders/{FEEDER_ID}/schedules", json=DAILY_BODY, query_string=AT)

        assert response.status_code == 201
        payload = response.get_json()
        assert payload["ok"] is True
        assert payload["message"] == "Feeding schedule created"
        data = payload["data"]
        assert data["id"]
        assert data["interval"] == "daily"
        assert data["is_active"] is True
        assert data["total_daily_amount"] == 3.5
        assert data["next_feeding"]["date"] == "2025-01-01T08:00:00+00:00"

        topic, message = published_messages(paho_client)[-1]
        assert topic == f"{DEVICE_ID}/writeDataRequest"
        assert len(message["schedule"]) == 2

    def test_missing_sessions_rejected(self, owner_client):
        body = {key: value for key, value in DAILY_BODY.items() if key != "sessions"}

        response = owner_client.post(f"{BASE}/feeders/{FEEDER_ID}/schedules", json=body)

        assert response.status_code == 400
        errors = response.get_json()["error"]["details"]["errors"]
        assert errors[0]["loc"] == ["sessions"]

    def test_weekly_without_days_rejected(self, owner_client):
        response = owner_client.post(
            f"{BASE}/feeders/{FEEDER_ID}/schedules", json={**DAILY_BODY, "interval": "weekly"}
        )
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "session",
        [{"time": "8:00", "feedAmount": 1}, {"time": "24:00", "feedAmount": 1}, {"time": "08:00", "feedAmount": 0.05}],
    )
    def test_bad_sessions_rejected(self, owner_client, session):
        response = owner_client.post(
            f"{BASE}/feeders/{FEEDER_ID}/schedules", json={**DAILY_BODY, "sessions": [session]}
        )
        assert response.status_code == 400

    def test_end_before_start_is_never_active(self, owner_client):
        response = owner_client.post(
            f"{BASE}/feeders/{FEEDER_ID}/schedules",
            json={**DAILY_BODY, "endDate": "2024-12-01T00:00:00Z"},
            query_string=AT,
        )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["is_active"] is False
        assert data["next_feeding"] is None

    def test_unknown_feeder(self, client, api_feeder):
        sign_in(client, {"feeder-9": "manager"})

        response = client.post(f"{BASE}/feeders/feeder-9/schedules", json=DAILY_BODY)

        assert response.status_code == 404


class TestReadSchedules:
    def test_list_newest_first(self, owner_client):
        first = _create(owner_client)
        second = _create(owner_client, {**DAILY_BODY, "interval": "weekly", "daysOfWeek": [3]})

        response = owner_client.get(f"{BASE}/feeders/{FEEDER_ID}/schedules", query_string=AT)

        assert [item["id"] for item in response.get_json()["data"]] == [second["id"], first["id"]]

    def test_get_one(self, owner_client):
        created = _create(owner_client)

        response = owner_client.get(f"{BASE}/schedules/{created['id']}", query_string=AT)

        assert response.status_code == 200
        assert response.get_json()["data"]["sessions"][1]["time"] == "18:00"

    def test_get_unknown(self, owner_client):
        response = owner_client.get(f"{BASE}/schedules/does-not-exist")

        assert response.status_code == 404
        assert response.get_json()["error"]["details"] == {"schedule_id": "does-not-exist"}


class TestUpdateAndDelete:
    def test_update(self, owner_client):
        created = _create(owner_client)

        response = owner_client.put(
            f"{BASE}/schedules/{created['id']}",
            json={**DAILY_BODY, "sessions": [{"time": "06:00", "feed_amount": "0.5"}]},
            query_string=AT,
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["id"] == created["id"]
        assert [s["time"] for s in data["sessions"]] == ["06:00"]
        assert data["total_daily_amount"] == 0.5

    def test_delete(self, owner_client, paho_client):
        created = _create(owner_client)

        response = owner_client.delete(f"{BASE}/schedules/{created['id']}")

        assert response.status_code == 200
        assert response.get_json()["data"] == {"id": created["id"]}
        assert published_messages(paho_client)[-1][1] == {"schedule": []}
        assert owner_client.get(f"{BASE}/schedules/{created['id']}").status_code == 404


class TestNextFeeding:
    def test_next_feeding_with_display(self, owner_client):
        _create(owner_client)

        response = owner_client.get(f"{BASE}/feeders/{FEEDER_ID}/next-feeding", query_string=AT)

        data = response.get_json()["data"]
        assert data["next_feeding"]["date"] == "2025-01-01T08:00:00+00:00"
        assert data["next_feeding"]["session"]["time"] == "08:00"
        assert data["display"] == "Jan 1, 2025 8:00 AM UTC"

    def test_none_scheduled(self, owner_client):
        response = owner_client.get(f"{BASE}/feeders/{FEEDER_ID}/next-feeding", query_string=AT)

        assert response.get_json()["data"] == {"next_feeding": None, "display": None}


class TestFeederControl:
    def test_manual_feed(self, owner_client, paho_client):
        response = owner_client.post(f"{BASE}/feeders/{FEEDER_ID}/feed", json={"amount": 0.75})

        assert response.status_code == 200
        payload = response.get_json()
        assert payload["data"] == {"feeder_id": FEEDER_ID, "feed_amount": 0.75}
        assert payload["message"] == "Feed release sent"
        assert published_messages(paho_client) == [(f"{DEVICE_ID}/writeDataRequest", {"feed": {"amount": 0.75}})]

    def test_manual_feed_not_delivered(self, owner_client, paho_client):
        paho_client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)

        response = owner_client.post(f"{BASE}/feeders/{FEEDER_ID}/feed", json={"amount": 0.75})

        assert response.status_code == 503
        payload = response.get_json()
        assert payload["ok"] is False
        assert payload["error"]["message"] == "Feeder unavailable"

    def test_manual_feed_below_minimum(self, owner_client, paho_client):
        response = owner_client.post(f"{BASE}/feeders/{FEEDER_ID}/feed", json={"feed_amount": 0})

        assert response.status_code == 400
        paho_client.publish.assert_not_called()

    def test_status(self, owner_client, app):
        repo = app.config["CONTAINER"].feeder_repo
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        repo.record_communication(FEEDER_ID, now - timedelta(minutes=3))

        response = owner_client.get(
            f"{BASE}/feeders/{FEEDER_ID}/status", query_string={"at": "2025-01-01T12:00:00Z"}
        )

        data = response.get_json()["data"]
        assert data["status"] == "online"
        assert data["is_online"] is True
        assert data["display_text"] == "Online"
