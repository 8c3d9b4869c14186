"""
Device Messaging Service
========================

Delivers feeding schedules and manual feed commands to feeders over MQTT.
Every message for a feeder goes to ``<device_id>/writeDataRequest``.

Delivery is fire-and-forget: a failed publish is logged and reported as
False, it never aborts the schedule change that triggered it.
"""

from __future__ import annotations

import json
import logging
import re
from decimal import Decimal
from typing import Any, Iterable

from app.domain.exceptions import ValidationError
from app.domain.feeding.schedule_entity import FeedingSchedule
from app.hardware.mqtt.mqtt_broker_wrapper import MQTTClientWrapper
from app.utils.mqtt_schedules import convert_schedules_to_mqtt

logger = logging.getLogger(__name__)

WRITE_REQUEST_SUFFIX = "writeDataRequest"
_INVALID_TOPIC_CHARS = re.compile(r"[#+\s]")


def build_topic(device_id: str) -> str:
    return f"{str(device_id).strip()}/{WRITE_REQUEST_SUFFIX}"


def validate_topic(topic: str) -> str:
    """Return the trimmed topic; wildcards and whitespace are rejected."""
    cleaned = (topic or "").strip()
    if not cleaned:
        raise ValidationError("Topic cannot be empty")
    if _INVALID_TOPIC_CHARS.search(cleaned):
        raise ValidationError("Topic contains invalid characters. Avoid +, #, and spaces.")
    return cleaned


class DeviceMessagingService:
    """Publishes feeder payloads through an MQTTClientWrapper."""

    def __init__(self, mqtt_client: MQTTClientWrapper | None) -> None:
        self._mqtt = mqtt_client

    @property
    def enabled(self) -> bool:
        return self._mqtt is not None

    def health(self) -> dict[str, Any]:
        if self._mqtt is None:
            return {"enabled": False}
        return {"enabled": True, **self._mqtt.health_status.to_dict()}

    def publish(self, topic: str, payload: dict[str, Any]) -> bool:
        topic = validate_topic(topic)
        if self._mqtt is None:
            logger.info("MQTT disabled; dropping message for %s", topic)
            return False
        return self._mqtt.publish(topic, json.dumps(payload))

    def publish_schedules(
        self,
        device_id: str,
        schedules: Iterable[FeedingSchedule],
        timezone: str = "UTC",
    ) -> bool:
        """Send the full schedule set of one feeder, replacing whatever the device holds."""
        schedules = list(schedules)
        message = convert_schedules_to_mqtt(schedules, timezone)
        topic = build_topic(device_id)
        logger.info(
            "Publishing %d schedule(s) / %d entr(ies) to %s",
            len(schedules),
            len(message["schedule"]),
            topic,
        )
        return self.publish(topic, message)

    def release_feed(self, device_id: str, feed_amount: Decimal) -> bool:
        """Ask the feeder to dispense ``feed_amount`` kilograms now."""
        topic = build_topic(device_id)
        logger.info("Manual feed release of %s kg requested on %s", feed_amount, topic)
        return self.publish(topic, {"feed": {"amount": float(feed_amount)}})
