"""
    Wrapper around the paho MQTT client used to reach feeders through the
    IoT gateway. Publishing is fire-and-forget: failures are logged and
    counted in the health status, never raised to callers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import paho.mqtt.client as mqtt

from app.hardware.mqtt.client_factory import create_mqtt_client
from app.utils.time import utc_now

_mqtt_logger = logging.getLogger("smartfeeder.mqtt")


@dataclass
class HealthStatus:
    """
    Tracks the health status of the MQTT client connection.
    """

    is_connected: bool = False
    last_error: str | None = None
    last_error_time: datetime | None = None
    connection_attempts: int = 0
    successful_publishes: int = 0
    failed_publishes: int = 0

    @property
    def success_rate(self) -> float:
        """Publish success rate percentage"""
        total_publishes = self.successful_publishes + self.failed_publishes
        if total_publishes == 0:
            return 0.0
        return (self.successful_publishes / total_publishes) * 100

    def mark_connected(self):
        self.is_connected = True
        self.last_error = None
        self.last_error_time = None

    def mark_disconnected(self):
        self.is_connected = False

    def record_error(self, error: Exception):
        self.last_error = str(error)
        self.last_error_time = utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Return health status as a dictionary."""
        return {
            "is_connected": self.is_connected,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
            "connection_attempts": self.connection_attempts,
            "successful_publishes": self.successful_publishes,
            "failed_publishes": self.failed_publishes,
            "publish_success_rate": round(self.success_rate, 2),
        }


class MQTTClientWrapper:
    """
    Connection-managing publisher for the feeder broker.
    """

    def __init__(self, broker: str, port: int, client_id: str = "", *, client: Any = None):
        """
        Args:
            broker: The MQTT broker address.
            port: The MQTT broker port.
            client_id: The MQTT client ID.
            client: Pre-built client (tests inject a double here).
        """
        self.broker = broker
        self.port = port
        self.client_id = client_id
        self.client = client if client is not None else create_mqtt_client(client_id=client_id)
        self.connected = False
        self.health_status = HealthStatus()
        self._lock = threading.Lock()

    def connect(self) -> bool:
        """Connect and start paho's network loop thread."""
        with self._lock:
            if self.connected:
                return True
            self.health_status.connection_attempts += 1
            try:
                self.client.connect(self.broker, self.port, 60)
                self.client.loop_start()
            except Exception as e:
                _mqtt_logger.error("Error connecting to MQTT broker %s:%s: %s", self.broker, self.port, e)
                self.health_status.record_error(e)
                return False
            self.connected = True
            self.health_status.mark_connected()
            _mqtt_logger.info("Connected to MQTT broker %s:%s", self.broker, self.port)
            return True

    def disconnect(self) -> None:
        with self._lock:
            if not self.connected:
                return
            try:
                self.client.disconnect()
                self.client.loop_stop()
                _mqtt_logger.info("Disconnected from MQTT broker.")
            except Exception as e:
                _mqtt_logger.error("Error disconnecting from MQTT broker: %s", e)
                self.health_status.record_error(e)
            finally:
                self.connected = False
                self.health_status.mark_disconnected()

    def publish(self, topic: str, payload: str, qos: int = 1) -> bool:
        """
        Publish a message, connecting first if needed.

        Returns:
            True when paho accepted the message for delivery.
        """
        if not self.connected and not self.connect():
            _mqtt_logger.warning("MQTT client not connected. Cannot publish to %s.", topic)
            with self._lock:
                self.health_status.failed_publishes += 1
            return False

        try:
            msg_info = self.client.publish(topic, payload, qos=qos)
        except Exception as e:
            _mqtt_logger.error("Error publishing to MQTT topic %s: %s", topic, e)
            with self._lock:
                self.health_status.failed_publishes += 1
                self.health_status.record_error(e)
            return False

        with self._lock:
            if msg_info.rc == mqtt.MQTT_ERR_SUCCESS:
                self.health_status.successful_publishes += 1
                _mqtt_logger.debug("Published to %s: %s", topic, payload)
                return True
            self.health_status.failed_publishes += 1
        _mqtt_logger.error("Failed to publish to %s. MQTT result code: %s", topic, msg_info.rc)
        return False
