"""Use case listing finished notification jobs."""

from __future__ import annotations

from app.domain.entities import ROLE_SCHOOL_ADMIN, NotificationJob
from app.domain.exceptions import NotificationValidationError
from app.infrastructure.queue import NotificationQueueClient

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


async def list_notifications(
    queue: NotificationQueueClient,
    *,
    requester_role: str,
    requester_id: str,
    limit: int = DEFAULT_LIMIT,
) -> list[NotificationJob]:
    """Return up to ``limit`` recently finished jobs visible to the requester.

    Administrators see every job; anyone else only sees jobs they were a
    recipient of.
    """

    if not 1 <= limit <= MAX_LIMIT:
        raise NotificationValidationError(f"limit must be between 1 and {MAX_LIMIT}")

    jobs = await queue.list_finished()
    if requester_role.upper() != ROLE_SCHOOL_ADMIN:
        jobs = [job for job in jobs if job.is_addressed_to(requester_id)]
    return jobs[:limit]


__all__ = ["DEFAULT_LIMIT", "MAX_LIMIT", "list_notifications"]
