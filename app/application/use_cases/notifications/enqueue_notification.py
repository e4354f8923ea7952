"""Use case queuing a push notification for asynchronous delivery."""

from __future__ import annotations

import logging
from functools import partial

import anyio
from sqlalchemy.orm import Session

from app.domain.entities import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    EnqueueResult,
    NotificationJobData,
    NotificationRequest,
)
from app.domain.exceptions import NotificationValidationError
from app.infrastructure.queue import (
    NotificationQueueClient,
    QueueConnectivityError,
    QueueProtocolError,
)

from .resolve_recipients import resolve_recipients

logger = logging.getLogger(__name__)

QUEUE_UNAVAILABLE_WARNING = (
    "Notification queue unavailable. Notification was not sent; "
    "check that the queue backend (Redis) is running."
)


def validate_notification_request(request: NotificationRequest) -> None:
    """Reject requests whose fields are out of range before any lookup."""

    if not 1 <= len(request.title) <= TITLE_MAX_LENGTH:
        raise NotificationValidationError(
            f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"
        )
    if not 1 <= len(request.message) <= MESSAGE_MAX_LENGTH:
        raise NotificationValidationError(
            f"Message must be between 1 and {MESSAGE_MAX_LENGTH} characters"
        )
    for key, value in request.data.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise NotificationValidationError("Notification data must map strings to strings")


async def enqueue_notification(
    session: Session,
    request: NotificationRequest,
    *,
    initiator_id: str,
    queue: NotificationQueueClient,
) -> EnqueueResult:
    """Resolve recipients and queue a delivery job.

    Validation and resolution errors propagate. Queue backend failures never
    do: they are answered with ``queued=False`` and a warning.
    """

    validate_notification_request(request)

    recipient_ids = await anyio.to_thread.run_sync(
        partial(resolve_recipients, session, request.recipient_filter)
    )
    recipient_count = len(recipient_ids)

    job = NotificationJobData(
        title=request.title,
        message=request.message,
        recipient_user_ids=tuple(recipient_ids),
        initiator_id=initiator_id,
        data=dict(request.data),
    )

    try:
        job_id = await queue.enqueue(job)
    except QueueConnectivityError:
        logger.info(
            "Notification for %d recipient(s) not queued: queue unreachable", recipient_count
        )
        return EnqueueResult(
            queued=False,
            recipient_count=recipient_count,
            warning=QUEUE_UNAVAILABLE_WARNING,
        )
    except QueueProtocolError as exc:
        logger.error(
            "Notification for %d recipient(s) not queued: %s", recipient_count, exc
        )
        return EnqueueResult(
            queued=False,
            recipient_count=recipient_count,
            warning=f"Notification queue error: {exc}. Notification was not sent.",
        )

    logger.info(
        "Queued notification job %s for %d recipient(s) by %s",
        job_id,
        recipient_count,
        initiator_id,
    )
    return EnqueueResult(queued=True, recipient_count=recipient_count, job_id=job_id)


__all__ = ["QUEUE_UNAVAILABLE_WARNING", "enqueue_notification", "validate_notification_request"]
