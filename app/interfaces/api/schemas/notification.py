"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.entities import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    DevicePlatform,
    EnqueueResult,
    NotificationJob,
    NotificationRequest,
    RecipientFilter,
)

RoleName = Literal["SCHOOL_ADMIN", "TEACHER", "PARENT"]


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while using snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class DeviceRegistrationRequest(CamelModel):
    """Payload used to register a push token for the authenticated user."""

    user_id: UUID
    device_token: str = Field(..., min_length=1, max_length=512)
    platform: DevicePlatform


class DeviceTokenRead(CamelModel):
    id: str
    user_id: str
    token: str
    platform: DevicePlatform
    is_active: bool
    last_used_at: datetime | None = None
    created_at: datetime | None = None


class RecipientsPayload(CamelModel):
    user_ids: list[UUID] | None = None
    roles: list[RoleName] | None = None
    class_ids: list[UUID] | None = None


class SendNotificationRequest(CamelModel):
    """Payload describing a notification and who should receive it."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    message: str = Field(..., min_length=1, max_length=MESSAGE_MAX_LENGTH)
    recipients: RecipientsPayload
    data: dict[str, str] | None = None

    def to_domain(self) -> NotificationRequest:
        recipients = self.recipients
        return NotificationRequest(
            title=self.title,
            message=self.message,
            recipient_filter=RecipientFilter(
                user_ids=tuple(str(user_id) for user_id in recipients.user_ids or ()),
                roles=tuple(recipients.roles or ()),
                class_ids=tuple(str(class_id) for class_id in recipients.class_ids or ()),
            ),
            data=dict(self.data or {}),
        )


class EnqueueResponse(CamelModel):
    """Answer to a send request; ``warning`` is set when nothing was queued."""

    queued: bool
    recipient_count: int
    warning: str | None = None
    job_id: str | None = None

    @classmethod
    def from_result(cls, result: EnqueueResult) -> "EnqueueResponse":
        return cls(
            queued=result.queued,
            recipient_count=result.recipient_count,
            warning=result.warning,
            job_id=result.job_id,
        )


class DeliveryOutcomeRead(CamelModel):
    provider: str
    success: bool
    reason: str | None = None


class NotificationJobRead(CamelModel):
    """Summary of a finished delivery job."""

    id: str
    state: str
    status: str | None = None
    failed_reason: str | None = None
    title: str
    message: str
    data: dict[str, str] = Field(default_factory=dict)
    recipient_user_ids: list[str]
    initiated_by: str
    attempts: int
    timestamp: datetime | None = None
    started_on: datetime | None = None
    finished_on: datetime | None = None
    results: list[DeliveryOutcomeRead] = Field(default_factory=list)

    @classmethod
    def from_job(cls, job: NotificationJob) -> "NotificationJobRead":
        return cls(
            id=job.id,
            state=job.state.value,
            status=job.status,
            failed_reason=job.failure_reason,
            title=job.payload.title,
            message=job.payload.message,
            data=dict(job.payload.data),
            recipient_user_ids=list(job.payload.recipient_user_ids),
            initiated_by=job.payload.initiator_id,
            attempts=job.attempt_count,
            timestamp=job.enqueued_at,
            started_on=job.started_at,
            finished_on=job.finished_at,
            results=[DeliveryOutcomeRead.model_validate(outcome) for outcome in job.outcomes],
        )


__all__ = [
    "DeliveryOutcomeRead",
    "DeviceRegistrationRequest",
    "DeviceTokenRead",
    "EnqueueResponse",
    "NotificationJobRead",
    "RecipientsPayload",
    "SendNotificationRequest",
]
