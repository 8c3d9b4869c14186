from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.config import AppConfig
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

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    feeder_repo: SQLiteFeederRepository
    feeding_repo: SQLiteFeedingScheduleRepository
    sensor_repo: SQLiteSensorDataRepository
    mqtt_client: Optional[MQTTClientWrapper]
    messaging: DeviceMessagingService
    feeder_service: FeederService
    feeding_service: FeedingScheduleService
    sensor_data_service: SensorDataService

    @classmethod
    def build(
        cls,
        config: AppConfig,
        *,
        mqtt_client: Optional[MQTTClientWrapper] = None,
    ) -> "ServiceContainer":
        """
        Wire the database, MQTT publisher and services from ``config``.

        Args:
            config: Loaded application configuration
            mqtt_client: Pre-built publisher; when omitted one is created
                if ``config.enable_mqtt`` is set
        """
        database = SQLiteDatabaseHandler(config.database_path)
        database.create_tables()
        feeder_repo = SQLiteFeederRepository(database)
        feeding_repo = SQLiteFeedingScheduleRepository(database)
        sensor_repo = SQLiteSensorDataRepository(database)

        if mqtt_client is None and config.enable_mqtt:
            mqtt_client = MQTTClientWrapper(
                broker=config.mqtt_broker_host,
                port=config.mqtt_broker_port,
                client_id=config.mqtt_client_id,
            )
            if not mqtt_client.connect():
                logger.warning(
                    "MQTT broker %s:%s unreachable at startup; will retry on publish",
                    config.mqtt_broker_host,
                    config.mqtt_broker_port,
                )
        elif mqtt_client is None:
            logger.info("MQTT disabled; schedule changes will not reach feeders")

        messaging = DeviceMessagingService(mqtt_client)
        feeder_service = FeederService(
            feeder_repo,
            messaging,
            default_timezone=config.default_timezone,
            online_window=config.online_window,
        )
        feeding_service = FeedingScheduleService(
            feeding_repo,
            messaging,
            default_timezone=config.default_timezone,
        )
        return cls(
            config=config,
            database=database,
            feeder_repo=feeder_repo,
            feeding_repo=feeding_repo,
            sensor_repo=sensor_repo,
            mqtt_client=mqtt_client,
            messaging=messaging,
            feeder_service=feeder_service,
            feeding_service=feeding_service,
            sensor_data_service=SensorDataService(sensor_repo, feeder_service),
        )

    def shutdown(self) -> None:
        """Disconnect from the broker and close this thread's database connection."""
        if self.mqtt_client is not None:
            self.mqtt_client.disconnect()
        self.database.close_db()
        logger.info("Service container shut down")
