"""Use case turning a recipient filter into a set of user identifiers."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.domain.entities import RecipientFilter
from app.domain.exceptions import RecipientValidationError, RecipientsNotFoundError
from app.infrastructure.repositories import DirectoryRepository

logger = logging.getLogger(__name__)


def resolve_recipients(session: Session, recipient_filter: RecipientFilter) -> list[str]:
    """Return the deduplicated union of users addressed by ``recipient_filter``.

    The union covers explicit ids that exist, active users holding any listed
    role, and for each listed class its assigned staff plus the guardians of
    its active students. The order is stable: first appearance wins.
    """

    if recipient_filter.is_empty():
        raise RecipientValidationError(
            "At least one of userIds, roles, or classIds is required"
        )

    repository = DirectoryRepository(session)
    resolved: dict[str, None] = {}
    for group in (
        repository.existing_user_ids(recipient_filter.user_ids),
        repository.active_user_ids_by_roles(recipient_filter.roles),
        repository.staff_user_ids_for_classes(recipient_filter.class_ids),
        repository.guardian_user_ids_for_classes(recipient_filter.class_ids),
    ):
        for user_id in group:
            resolved.setdefault(user_id, None)

    if not resolved:
        raise RecipientsNotFoundError("No recipients found for the provided criteria")

    logger.debug("Resolved %d recipient(s) for filter %s", len(resolved), recipient_filter)
    return list(resolved)


__all__ = ["resolve_recipients"]
