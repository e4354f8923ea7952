"""arq worker consuming the notification dispatch queue.

Run with ``arq app.worker.WorkerSettings``.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from datetime import timedelta
from functools import partial
from typing import Any

import anyio
import httpx
from arq import Retry, cron, func
from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import deliver_notification
from app.config import get_settings
from app.domain.entities import DeviceToken, NotificationJobData
from app.domain.exceptions import NotificationDeliveryError
from app.infrastructure.database import SessionLocal
from app.infrastructure.notifications import build_providers
from app.infrastructure.queue import (
    DELIVER_NOTIFICATION_TASK,
    DeliveryLedger,
    NotificationQueueClient,
    build_redis_settings,
)
from app.infrastructure.repositories import DeviceTokenRepository

logger = logging.getLogger(__name__)

settings = get_settings()


def retry_delay(job_try: int) -> float:
    """Exponential backoff in seconds before attempt ``job_try + 1``."""

    return settings.notification_backoff_seconds * 2 ** max(0, job_try - 1)


async def fetch_active_tokens(user_ids: Sequence[str]) -> list[DeviceToken]:
    """Load active device tokens for ``user_ids`` without blocking the loop."""

    def _load() -> list[DeviceToken]:
        session = SessionLocal()
        try:
            return DeviceTokenRepository(session).list_active_for_users(user_ids)
        finally:
            session.close()

    return await anyio.to_thread.run_sync(_load)


async def deliver_notification_task(ctx: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
    """Deliver one queued notification; retried by arq with exponential backoff."""

    job = NotificationJobData.from_payload(payload)
    job_id: str = ctx["job_id"]
    job_try: int = ctx.get("job_try", 1)
    max_attempts: int = ctx.get("max_attempts", settings.notification_max_attempts)
    ledger: DeliveryLedger = ctx["ledger"]

    delivered = await ledger.delivered_providers(job_id)
    try:
        report = await deliver_notification(
            job,
            fetch_tokens=ctx["fetch_tokens"],
            providers=ctx["providers"],
            skip_providers=delivered,
            on_delivered=partial(ledger.record, job_id),
        )
    except (NotificationDeliveryError, SQLAlchemyError) as exc:
        if job_try < max_attempts:
            delay = retry_delay(job_try)
            logger.warning(
                "Notification job %s attempt %d/%d failed (%s); retrying in %.0fs",
                job_id,
                job_try,
                max_attempts,
                exc,
                delay,
            )
            raise Retry(defer=delay) from exc
        logger.error(
            "Notification job %s failed after %d attempt(s): %s", job_id, job_try, exc
        )
        await ledger.clear(job_id)
        if isinstance(exc, SQLAlchemyError):
            raise NotificationDeliveryError(f"Device token lookup failed: {exc}") from exc
        raise

    await ledger.clear(job_id)
    logger.info(
        "Notification job %s finished with status %s on attempt %d",
        job_id,
        report.status,
        job_try,
    )
    return report.to_result()


async def purge_completed_notifications(ctx: dict[str, Any]) -> int:
    """Drop completed job results past retention; failed ones are kept."""

    client: NotificationQueueClient = ctx["queue_client"]
    retention = timedelta(seconds=settings.notification_completed_retention_seconds)
    purged = await client.purge_completed(retention)
    if purged:
        logger.info("Purged %d completed notification job(s)", purged)
    return purged


async def startup(ctx: dict[str, Any]) -> None:
    http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    ctx["http_client"] = http_client
    ctx["providers"] = build_providers(settings, client=http_client)
    ctx["fetch_tokens"] = fetch_active_tokens
    ctx["ledger"] = DeliveryLedger(ctx["redis"])
    ctx["max_attempts"] = settings.notification_max_attempts
    ctx["queue_client"] = NotificationQueueClient.from_pool(
        ctx["redis"],
        WorkerSettings.redis_settings,
        queue_name=settings.notification_queue_name,
    )
    configured = [provider.name for provider in ctx["providers"] if provider.is_configured]
    logger.info(
        "Notification worker started; configured providers: %s",
        ", ".join(configured) or "none",
    )


async def shutdown(ctx: dict[str, Any]) -> None:
    http_client: httpx.AsyncClient | None = ctx.get("http_client")
    if http_client is not None:
        await http_client.aclose()
    logger.info("Notification worker stopped")


class WorkerSettings:
    """Settings object read by the ``arq`` command line."""

    functions = [
        func(
            deliver_notification_task,
            name=DELIVER_NOTIFICATION_TASK,
            max_tries=settings.notification_max_attempts,
            timeout=settings.notification_job_timeout_seconds,
            keep_result_forever=True,
        )
    ]
    cron_jobs = [
        cron(purge_completed_notifications, minute=set(range(0, 60, 10)), run_at_startup=True)
    ]
    on_startup = startup
    on_shutdown = shutdown
    queue_name = settings.notification_queue_name
    # The worker outlives short outages, unlike the request path.
    redis_settings = dataclasses.replace(
        build_redis_settings(settings), conn_retries=10, conn_retry_delay=2
    )
    max_jobs = settings.notification_worker_concurrency
    job_timeout = settings.notification_job_timeout_seconds
    max_tries = settings.notification_max_attempts
    retry_jobs = True


__all__ = [
    "WorkerSettings",
    "deliver_notification_task",
    "fetch_active_tokens",
    "purge_completed_notifications",
    "retry_delay",
]
