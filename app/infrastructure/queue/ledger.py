"""Per-job record of providers that already accepted a notification."""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from .errors import QUEUE_BACKEND_ERRORS

logger = logging.getLogger(__name__)

_KEY_PREFIX = "notification:delivered:"


class DeliveryLedger:
    """Remember, across retries of one job, which providers already delivered it.

    The ledger is best-effort: when Redis fails, reads return an empty set and
    writes are logged and dropped. A lost entry can only cause a provider to
    be called again on a later attempt.
    """

    def __init__(self, redis: Redis, *, ttl_seconds: int = 86_400) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds

    async def delivered_providers(self, job_id: str) -> set[str]:
        try:
            members = await self._redis.smembers(_KEY_PREFIX + job_id)
        except QUEUE_BACKEND_ERRORS as exc:
            logger.warning("Could not read delivery ledger for job %s: %s", job_id, exc)
            return set()
        return {
            member.decode() if isinstance(member, bytes) else str(member)
            for member in members
        }

    async def record(self, job_id: str, provider: str) -> None:
        key = _KEY_PREFIX + job_id
        try:
            await self._redis.sadd(key, provider)
            await self._redis.expire(key, self._ttl_seconds)
        except QUEUE_BACKEND_ERRORS as exc:
            logger.warning(
                "Could not record %s delivery for job %s: %s", provider, job_id, exc
            )

    async def clear(self, job_id: str) -> None:
        try:
            await self._redis.delete(_KEY_PREFIX + job_id)
        except QUEUE_BACKEND_ERRORS as exc:
            # Keys expire on their own.
            logger.warning("Could not clear delivery ledger for job %s: %s", job_id, exc)


__all__ = ["DeliveryLedger"]
