"""
Configuration for SmartFeeder
=============================
Runtime settings read from ``SMARTFEEDER_*`` environment variables, plus
the logging setup shared by the server and the CLI entry point.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field, fields
from datetime import timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.domain.exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_HANDLER_NAME = "smartfeeder_console"
FILE_HANDLER_NAME = "smartfeeder_file"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_SECRET_KEY", "SmartFeederDevSecretKey"))
    database_path: str = field(
        default_factory=lambda: os.getenv("SMARTFEEDER_DATABASE_PATH", "database/smartfeeder.db")
    )

    enable_mqtt: bool = field(default_factory=lambda: _env_bool("SMARTFEEDER_ENABLE_MQTT", True))
    mqtt_broker_host: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_MQTT_HOST", "localhost"))
    mqtt_broker_port: int = field(default_factory=lambda: _env_int("SMARTFEEDER_MQTT_PORT", 1883))
    mqtt_client_id: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_MQTT_CLIENT_ID", "smartfeeder-api"))

    # Zone used for feeders that have none stored.
    default_timezone: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_DEFAULT_TIMEZONE", "UTC"))
    online_window_minutes: int = field(default_factory=lambda: _env_int("SMARTFEEDER_ONLINE_WINDOW_MINUTES", 10))
    # Shared key feeders send in X-Device-Key when uploading readings. Empty disables the check.
    device_api_key: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_DEVICE_API_KEY", ""))

    DEBUG: bool = field(default_factory=lambda: _env_bool("SMARTFEEDER_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_LOG_LEVEL", "INFO"))
    # Empty string disables the file handler.
    log_file: str = field(default_factory=lambda: os.getenv("SMARTFEEDER_LOG_FILE", "logs/smartfeeder.log"))

    _DEFAULT_SECRET_KEY: str = field(default="SmartFeederDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise ConfigurationError(
                "Cannot use default secret key in production. "
                "Set SMARTFEEDER_SECRET_KEY to a secure random value."
            )

    @property
    def online_window(self) -> timedelta:
        return timedelta(minutes=self.online_window_minutes)

    def validate(self) -> list[str]:
        """Return a list of problems; empty when the configuration is usable."""
        problems: list[str] = []
        if not 0 < self.mqtt_broker_port < 65536:
            problems.append(f"SMARTFEEDER_MQTT_PORT must be between 1 and 65535, got {self.mqtt_broker_port}")
        if self.online_window_minutes <= 0:
            problems.append(
                f"SMARTFEEDER_ONLINE_WINDOW_MINUTES must be positive, got {self.online_window_minutes}"
            )
        if self.enable_mqtt and not self.mqtt_broker_host:
            problems.append("SMARTFEEDER_MQTT_HOST is required when MQTT is enabled")
        if self.environment == "production" and not self.device_api_key:
            problems.append("SMARTFEEDER_DEVICE_API_KEY is required in production")
        if logging.getLevelName(self.log_level.upper()) not in range(0, 51):
            problems.append(f"Unknown SMARTFEEDER_LOG_LEVEL {self.log_level!r}")
        try:
            ZoneInfo(self.default_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            problems.append(f"Unknown SMARTFEEDER_DEFAULT_TIMEZONE {self.default_timezone!r}")
        return problems

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DATABASE_PATH": self.database_path,
            "MQTT_BROKER_HOST": self.mqtt_broker_host,
            "MQTT_BROKER_PORT": self.mqtt_broker_port,
            "DEFAULT_TIMEZONE": self.default_timezone,
            "DEBUG": self.DEBUG,
        }


def apply_overrides(config: AppConfig, overrides: dict[str, Any]) -> AppConfig:
    """
    Set AppConfig fields by name (exact, or the upper-case form of a field).

    Raises:
        ConfigurationError: If a key names no field, or the result is invalid
    """
    names = {f.name for f in fields(config) if f.init}
    unknown = []
    for key, value in overrides.items():
        name = key if key in names else key.lower()
        if name not in names:
            unknown.append(key)
            continue
        setattr(config, name, value)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration key(s): {', '.join(sorted(unknown))}",
            detail={"unknown": sorted(unknown)},
        )

    problems = config.validate()
    if problems:
        raise ConfigurationError("; ".join(problems), detail={"problems": problems})
    return config


def setup_logging(debug: bool = False, log_file: str | None = None, level: str = "INFO") -> None:
    """Setup logging configuration. Safe to call once per ``create_app``."""
    log_level = logging.DEBUG if debug else logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == CONSOLE_HANDLER_NAME for h in root.handlers)
    has_file = any(getattr(h, "name", "") == FILE_HANDLER_NAME for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter(LOG_FORMAT)

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = CONSOLE_HANDLER_NAME
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = FILE_HANDLER_NAME
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    if _env_bool("SMARTFEEDER_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    try:
        config = AppConfig()
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    problems = config.validate()
    if problems:
        raise ConfigurationError("; ".join(problems), detail={"problems": problems})
    return config
