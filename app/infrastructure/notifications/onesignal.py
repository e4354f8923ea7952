"""OneSignal batch push adapter."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from .base import NotificationProvider

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://onesignal.com/api/v1/notifications"


class OneSignalProvider(NotificationProvider):
    """Send notifications through the OneSignal REST API using player ids."""

    name = "onesignal"
    max_batch_size = 2000

    def __init__(
        self,
        app_id: str | None,
        rest_api_key: str | None,
        *,
        api_url: str = DEFAULT_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.app_id = app_id
        self.rest_api_key = rest_api_key
        self.api_url = api_url

    @property
    def is_configured(self) -> bool:
        return bool(self.app_id and self.rest_api_key)

    def build_request(
        self,
        tokens: Sequence[str],
        title: str,
        message: str,
        data: Mapping[str, str],
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        body: dict[str, Any] = {
            "app_id": self.app_id,
            "include_player_ids": list(tokens),
            "headings": {"en": title},
            "contents": {"en": message},
        }
        if data:
            body["data"] = dict(data)
        headers = {
            "Authorization": f"Basic {self.rest_api_key}",
            "Content-Type": "application/json; charset=utf-8",
        }
        return self.api_url, headers, body

    def check_response(self, response: httpx.Response, batch_size: int) -> None:
        super().check_response(response, batch_size)
        try:
            payload = response.json()
        except ValueError:
            return
        if isinstance(payload, dict) and payload.get("errors"):
            # Unsubscribed or unknown player ids come back as a 200 with errors.
            logger.warning("OneSignal reported errors for a batch of %d: %s", batch_size, payload["errors"])


__all__ = ["OneSignalProvider"]
