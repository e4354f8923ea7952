"""Use cases of the notification dispatch subsystem."""

from .deliver_notification import (
    DELIVERED_EARLIER,
    STATUS_NO_TOKENS,
    STATUS_SENT,
    DeliveryReport,
    deliver_notification,
)
from .enqueue_notification import (
    QUEUE_UNAVAILABLE_WARNING,
    enqueue_notification,
    validate_notification_request,
)
from .list_notifications import DEFAULT_LIMIT, MAX_LIMIT, list_notifications
from .register_device import register_device
from .resolve_recipients import resolve_recipients

__all__ = [
    "DEFAULT_LIMIT",
    "DELIVERED_EARLIER",
    "DeliveryReport",
    "MAX_LIMIT",
    "QUEUE_UNAVAILABLE_WARNING",
    "STATUS_NO_TOKENS",
    "STATUS_SENT",
    "deliver_notification",
    "enqueue_notification",
    "list_notifications",
    "register_device",
    "resolve_recipients",
    "validate_notification_request",
]
