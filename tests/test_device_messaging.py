"""
Device Messaging Tests
======================
Tests for topic handling, schedule/feed publishing and the MQTT wrapper.
"""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from app.domain.exceptions import ValidationError
from app.hardware.mqtt.mqtt_broker_wrapper import MQTTClientWrapper
from app.services.device_messaging import DeviceMessagingService, build_topic, validate_topic
from conftest import make_schedule, published_messages


class TestTopics:
    def test_build_topic(self):
        assert build_topic(" ESP32-AA01 ") == "ESP32-AA01/writeDataRequest"

    @pytest.mark.parametrize("topic", ["", "   ", "feeders/#", "a/+/b", "with space/x"])
    def test_invalid_topics_rejected(self, topic):
        with pytest.raises(ValidationError):
            validate_topic(topic)

    def test_valid_topic_trimmed(self):
        assert validate_topic("  dev/writeDataRequest ") == "dev/writeDataRequest"


class TestPublishSchedules:
    def test_full_schedule_set_published(self, messaging, paho_client):
        schedules = [
            make_schedule(start=datetime(2025, 1, 21, tzinfo=timezone.utc), sessions=[("08:00", "2.5")]),
            make_schedule(start=datetime(2025, 1, 20, tzinfo=timezone.utc), interval="weekly", days=[0],
                          sessions=[("20:00", "3")]),
        ]

        assert messaging.publish_schedules("ESP32-AA01", schedules, "UTC") is True

        assert published_messages(paho_client) == [
            (
                "ESP32-AA01/writeDataRequest",
                {"schedule": [[1737446400, None, 86400, 2.5], [1737921600, None, 604800, 3.0]]},
            )
        ]
        assert paho_client.publish.call_args.kwargs["qos"] == 1

    def test_empty_set_clears_device(self, messaging, paho_client):
        messaging.publish_schedules("dev", [], "UTC")
        assert published_messages(paho_client) == [("dev/writeDataRequest", {"schedule": []})]


class TestReleaseFeed:
    def test_feed_payload(self, messaging, paho_client):
        assert messaging.release_feed("dev", Decimal("0.5")) is True
        assert published_messages(paho_client) == [("dev/writeDataRequest", {"feed": {"amount": 0.5}})]


class TestDisabledMessaging:
    def test_publish_dropped_without_client(self):
        service = DeviceMessagingService(None)

        assert service.enabled is False
        assert service.release_feed("dev", Decimal("1")) is False
        assert service.health() == {"enabled": False}

    def test_invalid_topic_raises_even_when_disabled(self):
        with pytest.raises(ValidationError):
            DeviceMessagingService(None).publish("bad/#", {})


class TestMQTTClientWrapper:
    def test_connects_lazily_on_publish(self, mqtt_wrapper, paho_client):
        assert mqtt_wrapper.connected is False

        assert mqtt_wrapper.publish("dev/writeDataRequest", "{}") is True

        paho_client.connect.assert_called_once_with("broker.test", 1883, 60)
        paho_client.loop_start.assert_called_once()
        assert mqtt_wrapper.health_status.successful_publishes == 1

    def test_connect_failure_counts_failed_publish(self, paho_client):
        paho_client.connect.side_effect = OSError("connection refused")
        wrapper = MQTTClientWrapper("broker.test", 1883, client=paho_client)

        assert wrapper.publish("dev/writeDataRequest", "{}") is False

        health = wrapper.health_status.to_dict()
        assert health["is_connected"] is False
        assert health["failed_publishes"] == 1
        assert health["last_error"] == "connection refused"
        paho_client.publish.assert_not_called()

    def test_non_success_result_code(self, mqtt_wrapper, paho_client):
        paho_client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)

        assert mqtt_wrapper.publish("dev/writeDataRequest", "{}") is False
        assert mqtt_wrapper.health_status.failed_publishes == 1

    def test_publish_exception_is_contained(self, mqtt_wrapper, paho_client):
        paho_client.publish.side_effect = RuntimeError("socket closed")

        assert mqtt_wrapper.publish("dev/writeDataRequest", "{}") is False
        assert mqtt_wrapper.health_status.last_error == "socket closed"

    def test_success_rate(self, mqtt_wrapper, paho_client):
        mqtt_wrapper.publish("a/b", "1")
        paho_client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)
        mqtt_wrapper.publish("a/b", "2")

        assert mqtt_wrapper.health_status.to_dict()["publish_success_rate"] == 50.0

    def test_disconnect(self, mqtt_wrapper, paho_client):
        mqtt_wrapper.connect()
        mqtt_wrapper.disconnect()

        paho_client.disconnect.assert_called_once()
        paho_client.loop_stop.assert_called_once()
        assert mqtt_wrapper.connected is False

    def test_service_health_reports_wrapper(self, messaging):
        health = messaging.health()
        assert health["enabled"] is True
        assert health["successful_publishes"] == 0
