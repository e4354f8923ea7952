"""Domain entity representing a registered push device."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DevicePlatform(str, Enum):
    """Platforms a push token can belong to."""

    IOS = "IOS"
    ANDROID = "ANDROID"
    WEB = "WEB"


@dataclass
class DeviceToken:
    """Association between a user and one device installation."""

    id: str | None
    user_id: str
    token: str
    platform: DevicePlatform
    is_active: bool = True
    last_used_at: datetime | None = None
    created_at: datetime | None = None


__all__ = ["DevicePlatform", "DeviceToken"]
