"""Tests for the notification queue client and its failure handling."""

from __future__ import annotations

import logging
import time

import pytest
from arq.connections import RedisSettings
from redis.exceptions import ResponseError

from app.domain.entities import NotificationJobData
from app.infrastructure.queue import (
    NotificationQueueClient,
    QueueConnectivityError,
    QueueProtocolError,
)
from app.utils import RateLimitedLogger

pytestmark = pytest.mark.anyio

JOB = NotificationJobData(
    title="Hello", message="World", recipient_user_ids=("u1",), initiator_id="admin"
)


def _failing_factory(exc: BaseException):
    async def factory(*args, **kwargs):
        raise exc

    return factory


class _Pool:
    def __init__(self, enqueue_result=object()):
        self.enqueue_result = enqueue_result
        self.enqueued = []
        self.closed = False

    async def enqueue_job(self, function, *args, **kwargs):
        self.enqueued.append((function, args, kwargs))
        return self.enqueue_result

    async def aclose(self):
        self.closed = True


def _pool_factory(pool):
    async def factory(*args, **kwargs):
        return pool

    return factory


async def test_unreachable_backend_fails_fast():
    settings = RedisSettings(
        host="127.0.0.1", port=1, conn_timeout=1, conn_retries=1, conn_retry_delay=0.1
    )
    client = NotificationQueueClient(settings, queue_name="test-queue")

    started = time.monotonic()
    with pytest.raises(QueueConnectivityError):
        await client.enqueue(JOB)

    assert time.monotonic() - started < 5
    assert client.is_open is False


async def test_refused_connection_is_classified_as_connectivity():
    client = NotificationQueueClient(
        RedisSettings(),
        queue_name="q",
        pool_factory=_failing_factory(ConnectionRefusedError("refused")),
    )

    with pytest.raises(QueueConnectivityError):
        await client.open()


async def test_other_backend_errors_are_classified_as_protocol():
    client = NotificationQueueClient(
        RedisSettings(),
        queue_name="q",
        pool_factory=_failing_factory(ResponseError("WRONGTYPE")),
    )

    with pytest.raises(QueueProtocolError):
        await client.open()


async def test_enqueue_uses_payload_and_queue_name():
    pool = _Pool()
    client = NotificationQueueClient(RedisSettings(), queue_name="q", pool_factory=_pool_factory(pool))

    job_id = await client.enqueue(JOB)

    function, args, kwargs = pool.enqueued[0]
    assert function == "deliver_notification"
    assert args == (JOB.to_payload(),)
    assert kwargs["_job_id"] == job_id
    assert kwargs["_queue_name"] == "q"

    await client.close()
    assert pool.closed is True
    assert client.is_open is False


async def test_duplicate_job_is_a_protocol_error():
    client = NotificationQueueClient(
        RedisSettings(), queue_name="q", pool_factory=_pool_factory(_Pool(enqueue_result=None))
    )

    with pytest.raises(QueueProtocolError):
        await client.enqueue(JOB)


async def test_connectivity_warnings_are_throttled(caplog):
    clock = [0.0]
    warnings = RateLimitedLogger(
        logging.getLogger("test.queue"), 60, clock=lambda: clock[0]
    )
    client = NotificationQueueClient(
        RedisSettings(),
        queue_name="q",
        warning_logger=warnings,
        pool_factory=_failing_factory(ConnectionRefusedError("refused")),
    )

    with caplog.at_level(logging.WARNING, logger="test.queue"):
        for _ in range(3):
            with pytest.raises(QueueConnectivityError):
                await client.open()
        clock[0] = 61.0
        with pytest.raises(QueueConnectivityError):
            await client.open()

    messages = [record.getMessage() for record in caplog.records if record.name == "test.queue"]
    assert len(messages) == 2
    assert "2 similar messages suppressed" in messages[1]


def test_rate_limited_logger_tracks_keys_independently(caplog):
    clock = [0.0]
    limited = RateLimitedLogger(logging.getLogger("test.keys"), 10, clock=lambda: clock[0])

    with caplog.at_level(logging.WARNING, logger="test.keys"):
        assert limited.warning("a", "first a") is True
        assert limited.warning("a", "second a") is False
        assert limited.warning("b", "first b") is True
        limited.reset("a")
        assert limited.warning("a", "third a") is True

    assert [record.getMessage() for record in caplog.records] == [
        "first a",
        "first b",
        "third a",
    ]
