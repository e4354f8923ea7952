"""Firebase Cloud Messaging adapter (HTTP registration-id API)."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from .base import NotificationProvider

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://fcm.googleapis.com/fcm/send"


class FcmProvider(NotificationProvider):
    """Send notifications to FCM registration ids with a server key."""

    name = "fcm"
    max_batch_size = 1000

    def __init__(
        self,
        server_key: str | None,
        *,
        project_id: str | None = None,
        api_url: str = DEFAULT_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.server_key = server_key
        self.project_id = project_id
        self.api_url = api_url

    @property
    def is_configured(self) -> bool:
        return bool(self.server_key)

    def build_request(
        self,
        tokens: Sequence[str],
        title: str,
        message: str,
        data: Mapping[str, str],
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        body: dict[str, Any] = {
            "registration_ids": list(tokens),
            "notification": {"title": title, "body": message},
        }
        if data:
            body["data"] = dict(data)
        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }
        if self.project_id:
            headers["project_id"] = self.project_id
        return self.api_url, headers, body

    def check_response(self, response: httpx.Response, batch_size: int) -> None:
        super().check_response(response, batch_size)
        try:
            payload = response.json()
        except ValueError:
            return
        if isinstance(payload, dict) and payload.get("failure"):
            logger.warning(
                "FCM could not deliver to %s of %d registration ids",
                payload["failure"],
                batch_size,
            )


__all__ = ["FcmProvider"]
