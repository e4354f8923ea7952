"""Use case delivering one queued notification through every provider."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection, Sequence
from dataclasses import dataclass, field
from typing import Any

from app.domain.entities import DeliveryOutcome, DeviceToken, NotificationJobData
from app.domain.exceptions import NotificationDeliveryError
from app.infrastructure.notifications import NotificationProvider

logger = logging.getLogger(__name__)

STATUS_SENT = "sent"
STATUS_NO_TOKENS = "no-tokens"
DELIVERED_EARLIER = "delivered on earlier attempt"

TokenLookup = Callable[[Sequence[str]], Awaitable[Sequence[DeviceToken]]]
DeliveredCallback = Callable[[str], Awaitable[None]]


@dataclass
class DeliveryReport:
    """Summary of a successful delivery attempt."""

    status: str
    token_count: int = 0
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    def to_result(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "tokenCount": self.token_count,
            "results": [outcome.to_dict() for outcome in self.outcomes],
        }


async def deliver_notification(
    job: NotificationJobData,
    *,
    fetch_tokens: TokenLookup,
    providers: Sequence[NotificationProvider],
    skip_providers: Collection[str] = (),
    on_delivered: DeliveredCallback | None = None,
) -> DeliveryReport:
    """Send ``job`` to the active devices of its recipients.

    Providers run concurrently. Providers named in ``skip_providers`` already
    delivered this job and are not called again. If any provider raises, the
    attempt fails with :class:`NotificationDeliveryError` carrying every
    provider's outcome; unconfigured providers never fail the attempt.
    """

    tokens = await fetch_tokens(job.recipient_user_ids)
    active_tokens = list(dict.fromkeys(token.token for token in tokens if token.is_active))
    if not active_tokens:
        logger.warning(
            "No device tokens found for %d recipient(s)", len(job.recipient_user_ids)
        )
        return DeliveryReport(status=STATUS_NO_TOKENS)

    pending = [provider for provider in providers if provider.name not in skip_providers]
    results = await asyncio.gather(
        *(
            provider.send(active_tokens, job.title, job.message, job.data)
            for provider in pending
        ),
        return_exceptions=True,
    )
    attempted = dict(zip((provider.name for provider in pending), results))

    outcomes: list[DeliveryOutcome] = []
    failures: list[DeliveryOutcome] = []
    for provider in providers:
        if provider.name not in attempted:
            outcomes.append(
                DeliveryOutcome(provider=provider.name, success=True, reason=DELIVERED_EARLIER)
            )
            continue

        result = attempted[provider.name]
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("%s send failed: %s", provider.name, result)
            outcome = DeliveryOutcome(
                provider=provider.name,
                success=False,
                reason=str(result) or result.__class__.__name__,
            )
            failures.append(outcome)
        else:
            outcome = result
            if outcome.success and on_delivered is not None:
                await on_delivered(provider.name)
        outcomes.append(outcome)

    if failures:
        reason = "; ".join(f"{outcome.provider}: {outcome.reason}" for outcome in failures)
        raise NotificationDeliveryError(reason, outcomes)

    return DeliveryReport(
        status=STATUS_SENT, token_count=len(active_tokens), outcomes=outcomes
    )


__all__ = [
    "DELIVERED_EARLIER",
    "DeliveryReport",
    "STATUS_NO_TOKENS",
    "STATUS_SENT",
    "deliver_notification",
]
