from __future__ import annotations

import atexit
import logging
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.feeding import feeding_api
from app.config import apply_overrides, load_config, setup_logging
from app.hardware.mqtt.mqtt_broker_wrapper import MQTTClientWrapper

API_PREFIX = "/api/feeding"


def create_app(
    config_overrides: dict[str, Any] | None = None,
    *,
    mqtt_client: MQTTClientWrapper | None = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        config_overrides: AppConfig field values that win over the environment
            (an exact field name or its upper-case form, e.g. ``{"DATABASE_PATH": ":memory:"}``)
        mqtt_client: Publisher to use instead of one built from the config
    """
    config = load_config()
    if config_overrides:
        apply_overrides(config, config_overrides)

    # Configure logging early so MQTT connect attempts are visible.
    setup_logging(debug=config.DEBUG, log_file=config.log_file, level=config.log_level)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config, mqtt_client=mqtt_client)
    container.database.init_app(flask_app)
    flask_app.config["CONTAINER"] = container

    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown() -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated")
        container.shutdown()

    atexit.register(_graceful_shutdown)

    # Domain exceptions carry their own ``http_status``; anything raised outside
    # a safe_route handler on /api/ still gets the JSON envelope.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from app.domain.exceptions import SmartFeederError
        from app.utils.http import domain_error_response, error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, SmartFeederError):
            return domain_error_response(exc)

        return safe_error(exc, 500, context="unhandled")

    flask_app.register_blueprint(feeding_api, url_prefix=API_PREFIX)

    for bp_name in flask_app.blueprints:
        logging.info(f" Registered blueprint: {bp_name}")

    logger = logging.getLogger(__name__)
    logger.info("SmartFeeder application initialized successfully.")
    return flask_app


__all__ = ["create_app"]
