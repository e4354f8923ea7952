"""SQLAlchemy model for push device registrations."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class DeviceTokenModel(Base):
    """Push token registered by a user for one device installation."""

    __tablename__ = "device_token"
    __table_args__ = (
        UniqueConstraint("user_id", "token", name="uq_device_token_user_token"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(512), nullable=False)
    platform = Column(String(10), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["DeviceTokenModel"]
