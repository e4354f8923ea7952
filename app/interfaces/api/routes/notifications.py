"""Endpoints for device registration, notification dispatch and history."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    enqueue_notification as enqueue_notification_uc,
    list_notifications as list_notifications_uc,
    register_device as register_device_uc,
)
from app.domain.entities import User
from app.domain.exceptions import (
    DeviceOwnershipError,
    NotificationValidationError,
    RecipientsNotFoundError,
)
from app.infrastructure.database import get_db
from app.infrastructure.queue import NotificationQueueClient, QueueError
from app.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_queue,
    require_admin,
)
from app.interfaces.api.schemas import (
    DeviceRegistrationRequest,
    DeviceTokenRead,
    EnqueueResponse,
    NotificationJobRead,
    SendNotificationRequest,
)

router = APIRouter(prefix="/notification", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.post("/device", response_model=DeviceTokenRead, status_code=status.HTTP_201_CREATED)
def register_device(
    body: DeviceRegistrationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DeviceTokenRead:
    """Register or refresh a push token for the authenticated user."""

    try:
        device = register_device_uc(
            db,
            user_id=str(body.user_id),
            token=body.device_token,
            platform=body.platform,
            requester_id=current_user.id,
        )
    except DeviceOwnershipError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotificationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DeviceTokenRead.model_validate(device)


@router.post(
    "/send",
    response_model=EnqueueResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
async def send_notification(
    body: SendNotificationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    queue: NotificationQueueClient = Depends(get_notification_queue),
) -> EnqueueResponse:
    """Queue a push notification; the response never waits for delivery."""

    try:
        result = await enqueue_notification_uc(
            db, body.to_domain(), initiator_id=current_user.id, queue=queue
        )
    except NotificationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RecipientsNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    if not result.queued:
        logger.warning("Notification requested by %s was not queued", current_user.id)
    return EnqueueResponse.from_result(result)


@router.get("/list", response_model=list[NotificationJobRead])
async def list_notifications(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    current_user: User = Depends(get_current_active_user),
    queue: NotificationQueueClient = Depends(get_notification_queue),
) -> list[NotificationJobRead]:
    """List finished jobs: all for administrators, otherwise the caller's own."""

    try:
        jobs = await list_notifications_uc(
            queue,
            requester_role=current_user.role.name,
            requester_id=current_user.id,
            limit=limit,
        )
    except QueueError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification history is unavailable",
        ) from exc
    return [NotificationJobRead.from_job(job) for job in jobs]
