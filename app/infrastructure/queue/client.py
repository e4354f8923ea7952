"""arq-backed client for the notification dispatch queue."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings
from arq.constants import result_key_prefix
from arq.jobs import JobResult

from app.config import Settings
from app.domain.entities import (
    DeliveryOutcome,
    JobState,
    NotificationJob,
    NotificationJobData,
)
from app.domain.exceptions import NotificationDeliveryError
from app.utils import RateLimitedLogger

from .errors import (
    QUEUE_BACKEND_ERRORS,
    QueueConnectivityError,
    QueueError,
    QueueProtocolError,
    classify_queue_error,
)

logger = logging.getLogger(__name__)

DELIVER_NOTIFICATION_TASK = "deliver_notification"

PoolFactory = Callable[..., Awaitable[ArqRedis]]


def build_redis_settings(settings: Settings) -> RedisSettings:
    """Return connection settings tuned to fail fast when Redis is down."""

    return RedisSettings(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password or None,
        database=settings.redis_database,
        conn_timeout=settings.queue_connect_timeout,
        conn_retries=settings.queue_connect_retries,
        conn_retry_delay=settings.queue_connect_retry_delay,
    )


class NotificationQueueClient:
    """Producer and history view over the arq queue holding delivery jobs.

    The client owns one Redis pool. :meth:`open` connects lazily with the
    bounded retries configured in ``redis_settings``; every backend failure is
    re-raised as :class:`QueueConnectivityError` or :class:`QueueProtocolError`.
    """

    def __init__(
        self,
        redis_settings: RedisSettings,
        *,
        queue_name: str,
        warning_logger: RateLimitedLogger | None = None,
        pool_factory: PoolFactory = create_pool,
    ) -> None:
        self.redis_settings = redis_settings
        self.queue_name = queue_name
        self._warnings = warning_logger or RateLimitedLogger(logger, 60.0)
        self._pool_factory = pool_factory
        self._pool: ArqRedis | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationQueueClient":
        return cls(
            build_redis_settings(settings),
            queue_name=settings.notification_queue_name,
            warning_logger=RateLimitedLogger(
                logger, settings.queue_warning_interval_seconds
            ),
        )

    @classmethod
    def from_pool(
        cls, pool: ArqRedis, redis_settings: RedisSettings, *, queue_name: str
    ) -> "NotificationQueueClient":
        """Wrap a pool owned by someone else, such as the arq worker."""

        client = cls(redis_settings, queue_name=queue_name)
        client._pool = pool
        return client

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def open(self) -> ArqRedis:
        """Return the shared pool, connecting first when needed."""

        if self._pool is not None:
            return self._pool
        async with self._lock:
            if self._pool is None:
                try:
                    self._pool = await self._pool_factory(
                        self.redis_settings, default_queue_name=self.queue_name
                    )
                except QUEUE_BACKEND_ERRORS as exc:
                    error = classify_queue_error(exc)
                    self._report(error)
                    raise error from exc
                self._warnings.reset()
                logger.info(
                    "Connected to notification queue '%s' at %s:%s",
                    self.queue_name,
                    self.redis_settings.host,
                    self.redis_settings.port,
                )
        return self._pool

    async def close(self) -> None:
        async with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            await pool.aclose()

    async def enqueue(self, job: NotificationJobData) -> str:
        """Queue ``job`` for delivery and return its identifier."""

        job_id = uuid4().hex
        queued = await self._call(
            lambda pool: pool.enqueue_job(
                DELIVER_NOTIFICATION_TASK,
                job.to_payload(),
                _job_id=job_id,
                _queue_name=self.queue_name,
            )
        )
        if queued is None:
            raise QueueProtocolError(f"Job {job_id} already exists in the queue")
        return job_id

    async def list_finished(self) -> list[NotificationJob]:
        """Return completed and failed jobs, most recently finished first."""

        results = await self._call(lambda pool: pool.all_job_results())
        jobs = [
            job_from_result(result)
            for result in results
            if result.function == DELIVER_NOTIFICATION_TASK
            and result.queue_name == self.queue_name
        ]
        jobs.sort(key=_finished_sort_key, reverse=True)
        return jobs

    async def delete_result(self, job_id: str) -> bool:
        removed = await self._call(lambda pool: pool.delete(result_key_prefix + job_id))
        return bool(removed)

    async def purge_completed(self, retention: timedelta) -> int:
        """Delete completed job results older than ``retention``; failed ones stay."""

        cutoff = datetime.now(timezone.utc) - retention
        purged = 0
        for job in await self.list_finished():
            if job.state is not JobState.COMPLETED:
                continue
            if job.finished_at is not None and _as_utc(job.finished_at) > cutoff:
                continue
            if await self.delete_result(job.id):
                purged += 1
        return purged

    async def _call(self, operation: Callable[[ArqRedis], Awaitable[Any]]) -> Any:
        pool = await self.open()
        try:
            return await operation(pool)
        except QUEUE_BACKEND_ERRORS as exc:
            error = classify_queue_error(exc)
            self._report(error)
            raise error from exc

    def _report(self, error: QueueError) -> None:
        if isinstance(error, QueueConnectivityError):
            self._warnings.warning(
                "connectivity",
                "Notification queue at %s:%s is unreachable; notifications will not be queued: %s",
                self.redis_settings.host,
                self.redis_settings.port,
                error,
            )
        else:
            logger.error("Notification queue command failed: %s", error)


def job_from_result(result: JobResult) -> NotificationJob:
    """Build a :class:`NotificationJob` from a finished arq job record."""

    raw_payload = result.args[0] if result.args else dict(result.kwargs)
    payload = NotificationJobData.from_payload(raw_payload)

    if result.success:
        summary = result.result if isinstance(result.result, dict) else {}
        return NotificationJob(
            id=result.job_id or "",
            payload=payload,
            state=JobState.COMPLETED,
            attempt_count=result.job_try,
            enqueued_at=result.enqueue_time,
            started_at=result.start_time,
            finished_at=result.finish_time,
            status=summary.get("status"),
            outcomes=_outcomes_from_dicts(summary.get("results") or []),
        )

    error = result.result
    outcomes: list[DeliveryOutcome] = []
    if isinstance(error, NotificationDeliveryError):
        outcomes = list(error.outcomes)
    return NotificationJob(
        id=result.job_id or "",
        payload=payload,
        state=JobState.FAILED,
        attempt_count=result.job_try,
        enqueued_at=result.enqueue_time,
        started_at=result.start_time,
        finished_at=result.finish_time,
        failure_reason=str(error) or error.__class__.__name__,
        status="failed",
        outcomes=outcomes,
    )


def _outcomes_from_dicts(items: list[dict[str, Any]]) -> list[DeliveryOutcome]:
    return [
        DeliveryOutcome(
            provider=str(item.get("provider")),
            success=bool(item.get("success")),
            reason=item.get("reason"),
        )
        for item in items
        if isinstance(item, dict)
    ]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _finished_sort_key(job: NotificationJob) -> datetime:
    moment = job.finished_at or job.enqueued_at
    if moment is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return _as_utc(moment)


__all__ = [
    "DELIVER_NOTIFICATION_TASK",
    "NotificationQueueClient",
    "build_redis_settings",
    "job_from_result",
]
