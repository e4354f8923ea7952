"""Aggregate application use cases."""

from .notifications import (
    deliver_notification,
    enqueue_notification,
    list_notifications,
    register_device,
    resolve_recipients,
)

__all__ = [
    "deliver_notification",
    "enqueue_notification",
    "list_notifications",
    "register_device",
    "resolve_recipients",
]
