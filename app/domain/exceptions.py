"""Errors raised by notification use cases."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from app.domain.entities import DeliveryOutcome


class NotificationValidationError(ValueError):
    """The request is malformed and was rejected before doing any work."""


class RecipientValidationError(NotificationValidationError):
    """The recipient filter names no users, roles or classes."""


class RecipientsNotFoundError(LookupError):
    """The recipient filter resolved to no users."""


class DeviceOwnershipError(ValueError):
    """A user tried to register a device token on behalf of someone else."""


class NotificationDeliveryError(RuntimeError):
    """At least one provider raised while delivering a job.

    ``outcomes`` holds what every provider reported during the failed attempt.
    Both values are kept in ``args`` so the error survives pickling into the
    queue's job result.
    """

    def __init__(self, reason: str, outcomes: Iterable["DeliveryOutcome"] = ()) -> None:
        outcomes = tuple(outcomes)
        super().__init__(reason, outcomes)
        self.reason = reason
        self.outcomes = outcomes

    def __str__(self) -> str:
        return self.reason


__all__ = [
    "DeviceOwnershipError",
    "NotificationDeliveryError",
    "NotificationValidationError",
    "RecipientValidationError",
    "RecipientsNotFoundError",
]
