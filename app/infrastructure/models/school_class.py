"""SQLAlchemy models for classes and the staff assigned to them."""

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base


class SchoolClassModel(Base):
    """A class (grade/section) members are enrolled in."""

    __tablename__ = "school_class"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(100), nullable=False)
    section = Column(String(20), nullable=True)


class TeacherModel(Base):
    """Staff profile linked to a directory user."""

    __tablename__ = "teacher"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    user = relationship("UserModel", lazy="joined")


class TeacherClassModel(Base):
    """Assignment of a teacher to a class."""

    __tablename__ = "teacher_class"
    __table_args__ = (UniqueConstraint("teacher_id", "class_id"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    teacher_id = Column(
        String(36), ForeignKey("teacher.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id = Column(
        String(36),
        ForeignKey("school_class.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    teacher = relationship("TeacherModel", lazy="joined")


__all__ = ["SchoolClassModel", "TeacherModel", "TeacherClassModel"]
