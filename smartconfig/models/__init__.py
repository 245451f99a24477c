from .setting import Setting, SettingDimension

__all__ = [
    "Setting",
    "SettingDimension",
]
