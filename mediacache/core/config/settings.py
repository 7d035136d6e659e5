"""
Settings - Cache configuration using dataclasses.

Environment variables:
- MEDIA_CACHE_DB_PATH: SQLite database path (default: $HOME/.media-cache.db)
- MEDIA_CACHE_BUSY_RETRIES: Attempts on a busy/locked database
- MEDIA_CACHE_BUSY_BACKOFF: Initial backoff between attempts (seconds)

Log level and format are read by mediacache.common.logging (LOG_LEVEL, LOG_JSON).
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from ..errors import ConfigurationError


DB_FILENAME = ".media-cache.db"


def _default_db_path() -> Optional[str]:
    explicit = os.getenv("MEDIA_CACHE_DB_PATH")
    if explicit:
        return explicit
    home = os.getenv("HOME")
    if not home:
        return None
    return str(Path(home) / DB_FILENAME)


@dataclass
class Settings:
    """Cache settings from environment."""

    # Storage
    db_path: Optional[str] = field(default_factory=_default_db_path)
    busy_retries: int = field(
        default_factory=lambda: int(os.getenv("MEDIA_CACHE_BUSY_RETRIES", "50"))
    )
    busy_backoff: float = field(
        default_factory=lambda: float(os.getenv("MEDIA_CACHE_BUSY_BACKOFF", "0.005"))
    )
    busy_backoff_max: float = 1.0


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the settings singleton so the environment is read again."""
    global _settings
    _settings = None


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """
    Resolve and validate the database file location.

    Args:
        db_path: Explicit path. If None, uses settings.db_path

    Returns:
        Absolute path to the database file

    Raises:
        ConfigurationError: No location configured, or parent not writable
    """
    if db_path is None:
        db_path = get_settings().db_path

    if not db_path:
        raise ConfigurationError(
            "No database location configured: set MEDIA_CACHE_DB_PATH or HOME",
        )

    path = Path(db_path).expanduser()
    if str(path) == ":memory:":
        return path

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"Cannot create database directory '{path.parent}'",
            data={"db_path": str(path)},
            cause=e,
        )

    if not os.access(path.parent, os.W_OK):
        raise ConfigurationError(
            f"Database directory '{path.parent}' is not writable",
            data={"db_path": str(path)},
        )

    return path.resolve()
