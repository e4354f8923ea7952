"""Push gateway adapters used by the delivery worker."""

from __future__ import annotations

import httpx

from app.config import Settings

from .base import NOT_CONFIGURED, NotificationProvider, ProviderDeliveryError
from .fcm import FcmProvider
from .onesignal import OneSignalProvider


def build_providers(
    settings: Settings, *, client: httpx.AsyncClient | None = None
) -> list[NotificationProvider]:
    """Return every known provider; unconfigured ones report ``not configured``."""

    timeout = settings.provider_timeout_seconds
    return [
        OneSignalProvider(
            settings.onesignal_app_id,
            settings.onesignal_rest_api_key,
            api_url=settings.onesignal_api_url,
            client=client,
            timeout=timeout,
        ),
        FcmProvider(
            settings.fcm_server_key,
            project_id=settings.fcm_project_id,
            api_url=settings.fcm_api_url,
            client=client,
            timeout=timeout,
        ),
    ]


__all__ = [
    "FcmProvider",
    "NOT_CONFIGURED",
    "NotificationProvider",
    "OneSignalProvider",
    "ProviderDeliveryError",
    "build_providers",
]
