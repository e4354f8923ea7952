"""Persistence helpers for device token registrations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.entities import DevicePlatform, DeviceToken
from app.infrastructure.models import DeviceTokenModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone


class DeviceTokenRepository:
    """Store and query :class:`DeviceToken` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, *, user_id: str, token: str) -> DeviceToken | None:
        model = self._get_model(user_id=user_id, token=token)
        return self._to_entity(model) if model else None

    def upsert(
        self,
        *,
        user_id: str,
        token: str,
        platform: DevicePlatform,
        used_at: datetime,
    ) -> DeviceToken:
        """Insert an active registration or refresh the existing one."""

        model = self._get_model(user_id=user_id, token=token)
        if model is None:
            model = DeviceTokenModel(user_id=user_id, token=token)
            self._refresh(model, platform=platform, used_at=used_at)
            self.session.add(model)
            try:
                self.session.commit()
            except IntegrityError:
                # Another request registered the same pair in the meantime.
                self.session.rollback()
                model = self._get_model(user_id=user_id, token=token)
                if model is None:
                    raise
                self._refresh(model, platform=platform, used_at=used_at)
                self.session.commit()
        else:
            self._refresh(model, platform=platform, used_at=used_at)
            self.session.add(model)
            self.session.commit()

        self.session.refresh(model)
        return self._to_entity(model)

    def list_active_for_users(self, user_ids: Sequence[str]) -> list[DeviceToken]:
        if not user_ids:
            return []
        query = (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.user_id.in_(set(user_ids)))
            .filter(DeviceTokenModel.is_active.is_(True))
            .order_by(DeviceTokenModel.user_id, DeviceTokenModel.created_at)
        )
        return [self._to_entity(model) for model in query.all()]

    def count_for_user(self, user_id: str) -> int:
        return (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.user_id == user_id)
            .count()
        )

    def _get_model(self, *, user_id: str, token: str) -> DeviceTokenModel | None:
        return (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.user_id == user_id)
            .filter(DeviceTokenModel.token == token)
            .one_or_none()
        )

    @staticmethod
    def _refresh(
        model: DeviceTokenModel, *, platform: DevicePlatform, used_at: datetime
    ) -> None:
        model.platform = DevicePlatform(platform).value
        model.is_active = True
        model.last_used_at = ensure_app_naive_datetime(used_at)

    @staticmethod
    def _to_entity(model: DeviceTokenModel) -> DeviceToken:
        return DeviceToken(
            id=model.id,
            user_id=model.user_id,
            token=model.token,
            platform=DevicePlatform(model.platform),
            is_active=bool(model.is_active),
            last_used_at=ensure_app_timezone(model.last_used_at),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["DeviceTokenRepository"]
