"""Dispatch queue adapters built on arq."""

from .client import (
    DELIVER_NOTIFICATION_TASK,
    NotificationQueueClient,
    build_redis_settings,
    job_from_result,
)
from .errors import (
    QueueConnectivityError,
    QueueError,
    QueueProtocolError,
    classify_queue_error,
)
from .ledger import DeliveryLedger

__all__ = [
    "DELIVER_NOTIFICATION_TASK",
    "DeliveryLedger",
    "NotificationQueueClient",
    "QueueConnectivityError",
    "QueueError",
    "QueueProtocolError",
    "build_redis_settings",
    "classify_queue_error",
    "job_from_result",
]
