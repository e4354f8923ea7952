"""Domain entities describing push notification requests and jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 1000


@dataclass(frozen=True)
class RecipientFilter:
    """Who should receive a notification: explicit users, roles and classes."""

    user_ids: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()
    class_ids: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.user_ids or self.roles or self.class_ids)


@dataclass(frozen=True)
class NotificationRequest:
    """A message an administrator wants pushed to a set of recipients."""

    title: str
    message: str
    recipient_filter: RecipientFilter
    data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationJobData:
    """Payload stored with a queued delivery job.

    ``recipient_user_ids`` is the snapshot taken when the job was enqueued.
    """

    title: str
    message: str
    recipient_user_ids: tuple[str, ...]
    initiator_id: str
    data: dict[str, str] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "data": dict(self.data),
            "recipient_user_ids": list(self.recipient_user_ids),
            "initiator_id": self.initiator_id,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NotificationJobData":
        return cls(
            title=str(payload["title"]),
            message=str(payload["message"]),
            recipient_user_ids=tuple(payload.get("recipient_user_ids") or ()),
            initiator_id=str(payload["initiator_id"]),
            data=dict(payload.get("data") or {}),
        )


class JobState(str, Enum):
    """Lifecycle states of a delivery job."""

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of handing a notification to one provider."""

    provider: str
    success: bool
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"provider": self.provider, "success": self.success}
        if self.reason is not None:
            result["reason"] = self.reason
        return result


@dataclass
class NotificationJob:
    """A delivery job as recorded by the dispatch queue."""

    id: str
    payload: NotificationJobData
    state: JobState
    attempt_count: int
    enqueued_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    failure_reason: str | None = None
    status: str | None = None
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    def is_addressed_to(self, user_id: str) -> bool:
        return user_id in self.payload.recipient_user_ids


@dataclass(frozen=True)
class EnqueueResult:
    """Answer given to the caller after trying to queue a notification."""

    queued: bool
    recipient_count: int
    warning: str | None = None
    job_id: str | None = None


__all__ = [
    "DeliveryOutcome",
    "EnqueueResult",
    "JobState",
    "MESSAGE_MAX_LENGTH",
    "NotificationJob",
    "NotificationJobData",
    "NotificationRequest",
    "RecipientFilter",
    "TITLE_MAX_LENGTH",
]
