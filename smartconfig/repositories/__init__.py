from .base import BaseRepository
from .setting_repository import SettingRepository

__all__ = [
    "BaseRepository",
    "SettingRepository",
]
