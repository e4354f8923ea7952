"""Domain entities exposed by the application."""

from .device_token import DevicePlatform, DeviceToken
from .notification import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    DeliveryOutcome,
    EnqueueResult,
    JobState,
    NotificationJob,
    NotificationJobData,
    NotificationRequest,
    RecipientFilter,
)
from .role import ROLE_NAMES, ROLE_PARENT, ROLE_SCHOOL_ADMIN, ROLE_TEACHER, Role
from .user import User

__all__ = [
    "DeliveryOutcome",
    "DevicePlatform",
    "DeviceToken",
    "EnqueueResult",
    "JobState",
    "MESSAGE_MAX_LENGTH",
    "NotificationJob",
    "NotificationJobData",
    "NotificationRequest",
    "RecipientFilter",
    "ROLE_NAMES",
    "ROLE_PARENT",
    "ROLE_SCHOOL_ADMIN",
    "ROLE_TEACHER",
    "Role",
    "TITLE_MAX_LENGTH",
    "User",
]
