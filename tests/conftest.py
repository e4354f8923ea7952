"""Shared fixtures: a throwaway SQLite directory and helpers to populate it."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(__file__).parent / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("ONESIGNAL_APP_ID", None)
os.environ.pop("ONESIGNAL_REST_API_KEY", None)
os.environ.pop("FCM_SERVER_KEY", None)

from app.domain.entities import ROLE_NAMES  # noqa: E402
from app.infrastructure import database  # noqa: E402
from app.infrastructure.models import (  # noqa: E402
    ParentModel,
    RoleModel,
    SchoolClassModel,
    StudentModel,
    TeacherClassModel,
    TeacherModel,
    UserModel,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db_session():
    """Yield a session bound to freshly created tables."""

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.initialize_database()
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
        database.engine.dispose()
        if TEST_DB_PATH.exists():
            TEST_DB_PATH.unlink()


@dataclass
class Directory:
    """Small builder for users, classes and enrolments."""

    session: object
    roles: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for index, name in enumerate(ROLE_NAMES, start=1):
            self.session.add(RoleModel(id=index, name=name))
            self.roles[name] = index
        self.session.commit()

    def user(self, role: str, *, name: str | None = None, is_active: bool = True) -> str:
        user_id = str(uuid4())
        self.session.add(
            UserModel(
                id=user_id,
                role_id=self.roles[role],
                name=name or f"{role.title()} {user_id[:8]}",
                email=f"{user_id}@school.test",
                is_active=is_active,
            )
        )
        self.session.commit()
        return user_id

    def school_class(self, name: str = "5A") -> str:
        class_id = str(uuid4())
        self.session.add(SchoolClassModel(id=class_id, name=name))
        self.session.commit()
        return class_id

    def assign_teacher(self, user_id: str, class_id: str) -> None:
        teacher = self.session.query(TeacherModel).filter_by(user_id=user_id).one_or_none()
        if teacher is None:
            teacher = TeacherModel(id=str(uuid4()), user_id=user_id)
            self.session.add(teacher)
            self.session.flush()
        self.session.add(TeacherClassModel(teacher_id=teacher.id, class_id=class_id))
        self.session.commit()

    def enrol_student(self, class_id: str, parent_user_id: str, *, is_active: bool = True) -> str:
        parent = self.session.query(ParentModel).filter_by(user_id=parent_user_id).one_or_none()
        if parent is None:
            parent = ParentModel(id=str(uuid4()), user_id=parent_user_id)
            self.session.add(parent)
            self.session.flush()
        student_id = str(uuid4())
        self.session.add(
            StudentModel(
                id=student_id,
                first_name="Student",
                last_name=student_id[:8],
                class_id=class_id,
                parent_id=parent.id,
                is_active=is_active,
            )
        )
        self.session.commit()
        return student_id


@pytest.fixture
def directory(db_session) -> Directory:
    return Directory(db_session)
