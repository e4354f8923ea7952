"""Persistence layer for directory users."""

from __future__ import annotations

from sqlalchemy.orm import Session, joinedload

from app.domain.entities import Role, User
from app.infrastructure.models import UserModel


class UserRepository:
    """Read access to users of the institution directory."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> User | None:
        model = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.id == user_id)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            role=Role(
                id=model.role.id,
                name=model.role.name,
                description=model.role.description,
            ),
            name=model.name,
            email=model.email,
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )


__all__ = ["UserRepository"]
