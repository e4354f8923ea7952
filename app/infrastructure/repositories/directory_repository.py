"""Queries over the user/role/class directory used to address notifications."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.infrastructure.models import (
    ParentModel,
    RoleModel,
    StudentModel,
    TeacherClassModel,
    TeacherModel,
    UserModel,
)


class DirectoryRepository:
    """Look up user identifiers by id, role and class membership."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def existing_user_ids(self, user_ids: Sequence[str]) -> list[str]:
        if not user_ids:
            return []
        query = self.session.query(UserModel.id).filter(UserModel.id.in_(set(user_ids)))
        return [user_id for (user_id,) in query.all()]

    def active_user_ids_by_roles(self, role_names: Sequence[str]) -> list[str]:
        if not role_names:
            return []
        query = (
            self.session.query(UserModel.id)
            .join(RoleModel, UserModel.role_id == RoleModel.id)
            .filter(RoleModel.name.in_(set(role_names)))
            .filter(UserModel.is_active.is_(True))
        )
        return [user_id for (user_id,) in query.all()]

    def staff_user_ids_for_classes(self, class_ids: Sequence[str]) -> list[str]:
        if not class_ids:
            return []
        query = (
            self.session.query(TeacherModel.user_id)
            .join(TeacherClassModel, TeacherClassModel.teacher_id == TeacherModel.id)
            .filter(TeacherClassModel.class_id.in_(set(class_ids)))
        )
        return [user_id for (user_id,) in query.all()]

    def guardian_user_ids_for_classes(self, class_ids: Sequence[str]) -> list[str]:
        """Return the guardians of active students enrolled in ``class_ids``."""

        if not class_ids:
            return []
        query = (
            self.session.query(ParentModel.user_id)
            .join(StudentModel, StudentModel.parent_id == ParentModel.id)
            .filter(StudentModel.class_id.in_(set(class_ids)))
            .filter(StudentModel.is_active.is_(True))
        )
        return [user_id for (user_id,) in query.all()]


__all__ = ["DirectoryRepository"]
