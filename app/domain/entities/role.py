"""Domain entity representing a user role."""

from dataclasses import dataclass

ROLE_SCHOOL_ADMIN = "SCHOOL_ADMIN"
ROLE_TEACHER = "TEACHER"
ROLE_PARENT = "PARENT"

ROLE_NAMES = (ROLE_SCHOOL_ADMIN, ROLE_TEACHER, ROLE_PARENT)


@dataclass
class Role:
    """Core attributes describing a role that can be assigned to a user."""

    id: int
    name: str
    description: str | None = None


__all__ = ["Role", "ROLE_NAMES", "ROLE_PARENT", "ROLE_SCHOOL_ADMIN", "ROLE_TEACHER"]
