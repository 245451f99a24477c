"""Binding of declared settings to resolved, typed values.

Responsibilities:
- Declare settings statically (name, kind, default, required)
- Convert stored strings to typed values through a fixed converter table
- Store list and dict settings one row per item
- Load, update and initialize settings under the process's dimensions
"""

from .converters import COLLECTION_KINDS, CONVERTERS, ValueConverter, ValueKind, collect, deserialize, itemize, serialize
from .registry import SettingDefinition, SettingsRegistry

__all__ = [
    "COLLECTION_KINDS",
    "CONVERTERS",
    "ValueConverter",
    "ValueKind",
    "deserialize",
    "serialize",
    "itemize",
    "collect",
    "SettingDefinition",
    "SettingsRegistry",
]
