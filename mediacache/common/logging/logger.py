"""Root logger setup and logger factory."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .correlation import CorrelationLogFilter
from .formatters import JSONFormatter, StructuredLogAdapter
from .logging_config import get_logging_config

PLAIN_FORMAT = "%(asctime)s [%(correlation_id)s] [%(cache_id)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Set once setup_logging has run
_logging_configured = False


def _console_handler(level: int, json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: str, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    # Files are always JSON
    handler.setFormatter(JSONFormatter(include_path=True))
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    component: str = "default",
    force: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. If None, taken from logging-config.yaml
        log_file: Rotating JSON log file (optional)
        json_format: JSON console output. If None, taken from logging-config.yaml
        max_bytes: Max file size before rotation
        backup_count: Number of rotated files kept
        component: Component section of logging-config.yaml
        force: Reconfigure even if already configured
    """
    global _logging_configured
    if _logging_configured and not force:
        return

    config = get_logging_config()
    resolved = config.for_component(component)
    numeric_level = getattr(logging, (level or resolved.level).upper())
    if json_format is None:
        json_format = resolved.json_format

    handlers = [_console_handler(numeric_level, json_format)]
    if log_file:
        handlers.append(_file_handler(log_file, numeric_level, max_bytes, backup_count))

    context_filter = CorrelationLogFilter()
    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    for name, module_level in config.module_levels().items():
        logging.getLogger(name).setLevel(module_level)

    _logging_configured = True


def get_logger(name: str) -> StructuredLogAdapter:
    """Structured logger for a module (usually __name__)."""
    return StructuredLogAdapter(logging.getLogger(name))
