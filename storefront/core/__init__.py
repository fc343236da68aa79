# Core modules

from .config import settings, get_settings, Settings
from .storage import KeyValueStorage, InMemoryStorage, JsonFileStorage

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "KeyValueStorage",
    "InMemoryStorage",
    "JsonFileStorage",
]
