"""Tests for the delivery worker task and the delivery use case."""

from __future__ import annotations

import pytest
from arq import Retry
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from app.application.use_cases.notifications import (
    DELIVERED_EARLIER,
    STATUS_NO_TOKENS,
    STATUS_SENT,
    deliver_notification,
    enqueue_notification,
    register_device,
)
from app.domain.entities import (
    DeliveryOutcome,
    DevicePlatform,
    DeviceToken,
    NotificationJobData,
    NotificationRequest,
    RecipientFilter,
)
from app.domain.exceptions import NotificationDeliveryError
from app.infrastructure.notifications import NOT_CONFIGURED, ProviderDeliveryError
from app.infrastructure.queue import DeliveryLedger
from app.infrastructure.repositories import DeviceTokenRepository
from app.worker import deliver_notification_task, retry_delay

pytestmark = pytest.mark.anyio

JOB = NotificationJobData(
    title="School closed",
    message="No classes tomorrow",
    recipient_user_ids=("u1", "u2"),
    initiator_id="admin",
    data={"kind": "closure"},
)


class FakeProvider:
    def __init__(self, name: str, *, configured: bool = True, error: Exception | None = None):
        self.name = name
        self.is_configured = configured
        self.error = error
        self.calls: list[list[str]] = []

    async def send(self, tokens, title, message, data=None):
        self.calls.append(list(tokens))
        if not self.is_configured:
            return DeliveryOutcome(provider=self.name, success=False, reason=NOT_CONFIGURED)
        if self.error is not None:
            raise self.error
        return DeliveryOutcome(provider=self.name, success=True)


class FakeLedger:
    def __init__(self, delivered: dict[str, set[str]] | None = None):
        self.delivered = delivered or {}
        self.cleared: list[str] = []

    async def delivered_providers(self, job_id):
        return set(self.delivered.get(job_id, set()))

    async def record(self, job_id, provider):
        self.delivered.setdefault(job_id, set()).add(provider)

    async def clear(self, job_id):
        self.cleared.append(job_id)
        self.delivered.pop(job_id, None)


def _tokens(*values: str):
    async def fetch(user_ids):
        return [
            DeviceToken(id=str(index), user_id="u1", token=value, platform=DevicePlatform.IOS)
            for index, value in enumerate(values)
        ]

    return fetch


def _ctx(providers, *, job_try=1, ledger=None, tokens=("t1", "t2")):
    return {
        "job_id": "job-1",
        "job_try": job_try,
        "max_attempts": 3,
        "ledger": ledger or FakeLedger(),
        "fetch_tokens": _tokens(*tokens),
        "providers": providers,
    }


async def test_job_without_tokens_completes_without_calling_providers():
    provider = FakeProvider("onesignal")

    result = await deliver_notification_task(_ctx([provider], tokens=()), JOB.to_payload())

    assert result["status"] == STATUS_NO_TOKENS
    assert provider.calls == []


async def test_unconfigured_providers_do_not_fail_the_job():
    providers = [FakeProvider("onesignal", configured=False), FakeProvider("fcm", configured=False)]

    result = await deliver_notification_task(_ctx(providers), JOB.to_payload())

    assert result["status"] == STATUS_SENT
    assert [item["reason"] for item in result["results"]] == [NOT_CONFIGURED, NOT_CONFIGURED]


async def test_every_provider_receives_the_full_token_list():
    providers = [FakeProvider("onesignal"), FakeProvider("fcm")]

    result = await deliver_notification_task(
        _ctx(providers, tokens=("t1", "t2", "t1")), JOB.to_payload()
    )

    assert result == {
        "status": STATUS_SENT,
        "tokenCount": 2,
        "results": [
            {"provider": "onesignal", "success": True},
            {"provider": "fcm", "success": True},
        ],
    }
    assert providers[0].calls == [["t1", "t2"]]
    assert providers[1].calls == [["t1", "t2"]]


async def test_failed_attempt_is_retried_with_backoff_while_attempts_remain():
    ledger = FakeLedger()
    providers = [
        FakeProvider("onesignal"),
        FakeProvider("fcm", error=ProviderDeliveryError("fcm", "fcm send failed: 503")),
    ]

    with pytest.raises(Retry) as info:
        await deliver_notification_task(_ctx(providers, job_try=2, ledger=ledger), JOB.to_payload())

    assert info.value.defer_score == retry_delay(2) * 1000
    assert ledger.delivered == {"job-1": {"onesignal"}}


async def test_last_attempt_fails_the_job_with_the_provider_reason():
    ledger = FakeLedger()
    providers = [FakeProvider("fcm", error=ProviderDeliveryError("fcm", "fcm send failed: 503"))]

    with pytest.raises(NotificationDeliveryError) as info:
        await deliver_notification_task(_ctx(providers, job_try=3, ledger=ledger), JOB.to_payload())

    assert str(info.value) == "fcm: fcm send failed: 503"
    assert info.value.outcomes[0].success is False
    assert ledger.cleared == ["job-1"]


async def test_providers_that_already_delivered_are_skipped_on_retry():
    ledger = FakeLedger({"job-1": {"onesignal"}})
    onesignal = FakeProvider("onesignal")
    fcm = FakeProvider("fcm")

    result = await deliver_notification_task(
        _ctx([onesignal, fcm], job_try=2, ledger=ledger), JOB.to_payload()
    )

    assert onesignal.calls == []
    assert fcm.calls == [["t1", "t2"]]
    assert result["results"][0] == {
        "provider": "onesignal",
        "success": True,
        "reason": DELIVERED_EARLIER,
    }
    assert ledger.cleared == ["job-1"]


async def test_failure_carries_every_outcome_of_the_attempt():
    providers = [
        FakeProvider("onesignal", configured=False),
        FakeProvider("fcm", error=RuntimeError("boom")),
    ]

    with pytest.raises(NotificationDeliveryError) as info:
        await deliver_notification(JOB, fetch_tokens=_tokens("t1"), providers=providers)

    assert [(outcome.provider, outcome.success) for outcome in info.value.outcomes] == [
        ("onesignal", False),
        ("fcm", False),
    ]


def test_backoff_doubles_per_attempt():
    assert retry_delay(2) == retry_delay(1) * 2
    assert retry_delay(3) == retry_delay(1) * 4


class UnreachableRedis:
    async def smembers(self, key):
        raise RedisConnectionError("Connection reset by peer")

    async def sadd(self, key, *values):
        raise RedisConnectionError("Connection reset by peer")

    async def expire(self, key, seconds):
        raise RedisConnectionError("Connection reset by peer")

    async def delete(self, key):
        raise RedisConnectionError("Connection reset by peer")


async def test_ledger_outage_does_not_fail_a_delivered_job():
    provider = FakeProvider("onesignal")
    ctx = _ctx([provider], ledger=DeliveryLedger(UnreachableRedis()))

    result = await deliver_notification_task(ctx, JOB.to_payload())

    assert result["status"] == STATUS_SENT
    assert result["results"] == [{"provider": "onesignal", "success": True}]
    assert provider.calls == [["t1", "t2"]]


async def test_token_lookup_failure_is_retried_while_attempts_remain():
    async def failing_lookup(user_ids):
        raise OperationalError("SELECT device_token", {}, Exception("database is locked"))

    provider = FakeProvider("fcm")
    ctx = _ctx([provider], job_try=1)
    ctx["fetch_tokens"] = failing_lookup

    with pytest.raises(Retry) as info:
        await deliver_notification_task(ctx, JOB.to_payload())

    assert info.value.defer_score == retry_delay(1) * 1000
    assert provider.calls == []


async def test_token_lookup_failure_on_last_attempt_fails_with_a_reason():
    async def failing_lookup(user_ids):
        raise OperationalError("SELECT device_token", {}, Exception("database is locked"))

    ctx = _ctx([FakeProvider("fcm")], job_try=3)
    ctx["fetch_tokens"] = failing_lookup

    with pytest.raises(NotificationDeliveryError) as info:
        await deliver_notification_task(ctx, JOB.to_payload())

    assert str(info.value).startswith("Device token lookup failed")


class RecordingQueue:
    def __init__(self) -> None:
        self.jobs: list[NotificationJobData] = []

    async def enqueue(self, job):
        self.jobs.append(job)
        return "job-1"


async def test_class_notification_reaches_only_the_guardian_with_a_device(directory, db_session):
    class_id = directory.school_class("9A")
    staff = directory.user("TEACHER")
    first_parent = directory.user("PARENT")
    second_parent = directory.user("PARENT")
    directory.assign_teacher(staff, class_id)
    directory.enrol_student(class_id, first_parent)
    directory.enrol_student(class_id, second_parent)
    register_device(
        db_session,
        user_id=first_parent,
        token="p1-token",
        platform="IOS",
        requester_id=first_parent,
    )
    queue = RecordingQueue()

    enqueued = await enqueue_notification(
        db_session,
        NotificationRequest(
            title="Meeting",
            message="Tomorrow 5pm",
            recipient_filter=RecipientFilter(class_ids=(class_id,)),
        ),
        initiator_id="admin",
        queue=queue,
    )

    assert enqueued.queued is True
    assert enqueued.recipient_count == 3
    assert set(queue.jobs[0].recipient_user_ids) == {staff, first_parent, second_parent}

    async def lookup(user_ids):
        return DeviceTokenRepository(db_session).list_active_for_users(user_ids)

    onesignal = FakeProvider("onesignal")
    fcm = FakeProvider("fcm", configured=False)
    ctx = _ctx([onesignal, fcm], ledger=FakeLedger())
    ctx["fetch_tokens"] = lookup

    result = await deliver_notification_task(ctx, queue.jobs[0].to_payload())

    assert onesignal.calls == [["p1-token"]]
    assert fcm.calls == [["p1-token"]]
    assert result["status"] == STATUS_SENT
    assert result["tokenCount"] == 1
    assert result["results"] == [
        {"provider": "onesignal", "success": True},
        {"provider": "fcm", "success": False, "reason": NOT_CONFIGURED},
    ]
