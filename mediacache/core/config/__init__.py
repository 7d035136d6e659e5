"""
Config - Cache configuration.

- settings.py: Settings from environment, database path resolution
"""

from .settings import (
    Settings,
    DB_FILENAME,
    get_settings,
    reset_settings,
    resolve_db_path,
)

__all__ = [
    "Settings",
    "DB_FILENAME",
    "get_settings",
    "reset_settings",
    "resolve_db_path",
]
