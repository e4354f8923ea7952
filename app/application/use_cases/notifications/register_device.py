"""Use case for registering a push device token."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import DevicePlatform, DeviceToken
from app.domain.exceptions import DeviceOwnershipError, NotificationValidationError
from app.infrastructure.repositories import DeviceTokenRepository
from app.utils import now_in_app_timezone


def register_device(
    session: Session,
    *,
    user_id: str,
    token: str,
    platform: DevicePlatform | str,
    requester_id: str,
) -> DeviceToken:
    """Store ``token`` for ``user_id`` or refresh the existing registration."""

    if user_id != requester_id:
        raise DeviceOwnershipError("User ID does not match authenticated user")

    token = token.strip()
    if not token:
        raise NotificationValidationError("Device token is required")

    try:
        platform = DevicePlatform(platform)
    except ValueError as exc:
        raise NotificationValidationError("Platform must be IOS, ANDROID, or WEB") from exc

    return DeviceTokenRepository(session).upsert(
        user_id=user_id,
        token=token,
        platform=platform,
        used_at=now_in_app_timezone(),
    )


__all__ = ["register_device"]
