"""
Construction of paho-mqtt clients for the feeder gateway.

paho-mqtt 2.x requires a callback API version flag while 1.x rejects it. The
factory asks for the v1 callback signature when the flag exists, so handlers
written as (client, userdata, msg) keep working on both major versions.
"""
from __future__ import annotations

from typing import Any, Dict

import paho.mqtt.client as mqtt

# Attribute names of the v1 callback API across paho 2.x releases.
_CALLBACK_API_NAMES = ("VERSION1", "V1", "V311", "v311")


def _legacy_callback_api() -> Any:
    api = getattr(mqtt, "CallbackAPIVersion", None)
    if api is None:
        return None
    for name in _CALLBACK_API_NAMES:
        if hasattr(api, name):
            return getattr(api, name)
    return None


def create_mqtt_client(client_id: str = "", **kwargs: Any) -> mqtt.Client:
    """
    Build an MQTT client speaking MQTT 3.1.1.

    Args:
        client_id: Client identifier presented to the broker ("" lets the broker assign one).
        kwargs: Extra keyword arguments forwarded to ``mqtt.Client``.
    """
    client_kwargs: Dict[str, Any] = {
        "client_id": client_id or "",
        "protocol": kwargs.pop("protocol", getattr(mqtt, "MQTTv311", 4)),
    }
    client_kwargs.update(kwargs)

    callback_api = _legacy_callback_api()
    if callback_api is not None:
        client_kwargs["callback_api_version"] = callback_api

    try:
        return mqtt.Client(**client_kwargs)
    except TypeError:
        # paho 1.x: no callback_api_version keyword.
        client_kwargs.pop("callback_api_version", None)
        return mqtt.Client(**client_kwargs)
