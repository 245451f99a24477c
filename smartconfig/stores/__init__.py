"""Setting stores.

Responsibilities:
- Fetch every stored record sharing a setting name
- Upsert records addressed by their exact dimension assignment
- Apply batch writes atomically
"""

from .base import DataStore, SettingAssignment
from .memory_store import MemoryStore
from .sql_store import SqlStore

__all__ = [
    "DataStore",
    "SettingAssignment",
    "MemoryStore",
    "SqlStore",
]
