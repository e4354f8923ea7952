"""SQLAlchemy models for enrolled students and their guardians."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base


class ParentModel(Base):
    """Guardian profile linked to a directory user."""

    __tablename__ = "parent"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    user = relationship("UserModel", lazy="joined")


class StudentModel(Base):
    """A member enrolled in a class."""

    __tablename__ = "student"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    class_id = Column(String(36), ForeignKey("school_class.id"), nullable=True, index=True)
    parent_id = Column(String(36), ForeignKey("parent.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    parent = relationship("ParentModel", lazy="joined")


__all__ = ["ParentModel", "StudentModel"]
