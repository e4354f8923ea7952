"""Domain entity representing a directory user."""

from dataclasses import dataclass
from datetime import datetime

from .role import ROLE_SCHOOL_ADMIN, Role


@dataclass
class User:
    """Core attributes describing an application user."""

    id: str
    role: Role
    name: str
    email: str
    is_active: bool
    created_at: datetime | None = None

    def has_role(self, name: str) -> bool:
        """Return ``True`` when the user's role name matches ``name``."""

        return self.role.name.upper() == name.upper()

    def is_admin(self) -> bool:
        """Return ``True`` when the user is a school administrator."""

        return self.has_role(ROLE_SCHOOL_ADMIN)
