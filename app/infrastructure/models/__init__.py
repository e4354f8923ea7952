"""ORM models used by the application infrastructure."""

from .device_token import DeviceTokenModel
from .role import RoleModel
from .school_class import SchoolClassModel, TeacherClassModel, TeacherModel
from .student import ParentModel, StudentModel
from .user import UserModel

__all__ = [
    "DeviceTokenModel",
    "ParentModel",
    "RoleModel",
    "SchoolClassModel",
    "StudentModel",
    "TeacherClassModel",
    "TeacherModel",
    "UserModel",
]
