from .notification import (
    DeliveryOutcomeRead,
    DeviceRegistrationRequest,
    DeviceTokenRead,
    EnqueueResponse,
    NotificationJobRead,
    RecipientsPayload,
    SendNotificationRequest,
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
