"""Common behaviour shared by push gateway adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

import httpx

from app.domain.entities import DeliveryOutcome

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "not configured"


class ProviderDeliveryError(RuntimeError):
    """A gateway rejected the request or could not be reached."""

    def __init__(self, provider: str, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.provider = provider
        self.reason = reason
        self.status_code = status_code


class NotificationProvider(ABC):
    """Adapter translating a notification into one push gateway's request.

    ``send`` returns a :class:`DeliveryOutcome` when the gateway accepted the
    notification or when the adapter is not configured. Transport and gateway
    failures raise :class:`ProviderDeliveryError`.
    """

    name: str = "provider"
    max_batch_size: int = 1000

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._timeout = timeout

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Return ``True`` when credentials for the gateway are present."""

    @abstractmethod
    def build_request(
        self,
        tokens: Sequence[str],
        title: str,
        message: str,
        data: Mapping[str, str],
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return the URL, headers and JSON body for one batch of ``tokens``."""

    def check_response(self, response: httpx.Response, batch_size: int) -> None:
        """Raise :class:`ProviderDeliveryError` unless ``response`` is a success."""

        if not response.is_success:
            raise ProviderDeliveryError(
                self.name,
                f"{self.name} send failed: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

    async def send(
        self,
        tokens: Iterable[str],
        title: str,
        message: str,
        data: Mapping[str, str] | None = None,
    ) -> DeliveryOutcome:
        if not self.is_configured:
            logger.warning("%s not configured; skipping send", self.name)
            return DeliveryOutcome(provider=self.name, success=False, reason=NOT_CONFIGURED)

        unique_tokens = list(dict.fromkeys(token for token in tokens if token))
        if not unique_tokens:
            return DeliveryOutcome(provider=self.name, success=False, reason="no tokens")

        async with self._http_client() as client:
            for batch in _batches(unique_tokens, self.max_batch_size):
                url, headers, body = self.build_request(batch, title, message, data or {})
                try:
                    response = await client.post(url, headers=headers, json=body)
                except httpx.HTTPError as exc:
                    raise ProviderDeliveryError(
                        self.name, f"{self.name} request failed: {exc}"
                    ) from exc
                self.check_response(response, len(batch))

        logger.info("%s accepted notification for %d device(s)", self.name, len(unique_tokens))
        return DeliveryOutcome(provider=self.name, success=True)

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client


def _batches(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


__all__ = ["NOT_CONFIGURED", "NotificationProvider", "ProviderDeliveryError"]
