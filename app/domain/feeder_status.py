"""
Feeder connectivity status.

A feeder counts as online while its last message is newer than the online
window (10 minutes by default).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.enums.feeding import FeederConnectionState
from app.utils.time import coerce_datetime

ONLINE_WINDOW = timedelta(minutes=10)


@dataclass(frozen=True)
class FeederStatus:
    status: FeederConnectionState
    is_online: bool
    last_communication: datetime | None
    display_text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "is_online": self.is_online,
            "last_communication": self.last_communication.isoformat() if self.last_communication else None,
            "display_text": self.display_text,
        }


def is_feeder_online(
    last_communication: datetime | str | None,
    now: datetime,
    *,
    window: timedelta = ONLINE_WINDOW,
) -> bool:
    """True when the last communication is strictly newer than ``now - window``."""
    last = coerce_datetime(last_communication)
    reference = coerce_datetime(now)
    if last is None or reference is None:
        return False
    return last > reference - window


def get_feeder_status(
    last_communication: datetime | str | None,
    now: datetime,
    *,
    window: timedelta = ONLINE_WINDOW,
) -> FeederStatus:
    online = is_feeder_online(last_communication, now, window=window)
    return FeederStatus(
        status=FeederConnectionState.ONLINE if online else FeederConnectionState.OFFLINE,
        is_online=online,
        last_communication=coerce_datetime(last_communication),
        display_text="Online" if online else "Offline",
    )
