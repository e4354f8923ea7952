"""SQLAlchemy model for the user table."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base


class UserModel(Base):
    """Database representation of a directory user."""

    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    role_id = Column(Integer, ForeignKey("role.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(120), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    role = relationship("RoleModel", lazy="joined")


__all__ = ["UserModel"]
