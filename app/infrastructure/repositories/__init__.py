"""Repository implementations for infrastructure layer."""

from .device_token_repository import DeviceTokenRepository
from .directory_repository import DirectoryRepository
from .user_repository import UserRepository

__all__ = [
    "DeviceTokenRepository",
    "DirectoryRepository",
    "UserRepository",
]
