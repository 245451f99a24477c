from .health import health
from .settings import get_setting, put_setting

__all__ = [
    "health",
    "get_setting",
    "put_setting",
]
