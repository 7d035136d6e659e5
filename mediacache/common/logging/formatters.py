"""JSON log formatting and the structured logger adapter."""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

# Context attributes copied from the record when set
CONTEXT_FIELDS = ("correlation_id", "cache_id")

# Structured-data keys also promoted to the top level for log queries
PROMOTED_FIELDS = ("media_id", "operation")


def component_of(logger_name: str) -> str:
    """
    Short component name for a logger.

    Examples:
        mediacache.core.cache.media_cache -> cache.media_cache
        mediacache.metadata.reader -> metadata.reader
        __main__ -> main
    """
    if logger_name == "__main__":
        return "main"
    for prefix in ("mediacache.core.", "mediacache."):
        if logger_name.startswith(prefix):
            return logger_name[len(prefix):]
    return logger_name


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Carries the context ids (correlation_id, cache_id), the adapter's
    structured data under "data", and exception details.
    """

    def __init__(self, include_path: bool = False,
                 extra_fields: Optional[Dict[str, Any]] = None):
        """
        Args:
            include_path: Add "path" as file:line
            extra_fields: Static fields added to every entry
        """
        super().__init__()
        self.include_path = include_path
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "component": component_of(record.name),
            "logger": record.name,
            "message": message.strip() if message else "",
        }
        if self.include_path:
            entry["path"] = f"{record.pathname}:{record.lineno}"

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value

        data = getattr(record, "structured_data", None)
        if data:
            entry["data"] = data
            for name in PROMOTED_FIELDS:
                if name in data and name not in entry:
                    entry[name] = data[name]

        if record.exc_info:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc) if exc else None,
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        entry.update(self.extra_fields)
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter accepting a ``data`` mapping on every logging call.

    Usage:
        logger = get_logger(__name__)
        logger.info("Inserted media", data={"media_id": "42"})
        catalog_log = logger.bind(cache_id="catalog")
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, extra or {})

    def bind(self, **fields) -> 'StructuredLogAdapter':
        """Adapter over the same logger with extra record attributes."""
        return StructuredLogAdapter(self.logger, {**self.extra, **fields})

    def process(self, msg: str, kwargs: dict) -> Tuple[str, dict]:
        extra = {**self.extra, **kwargs.get("extra", {})}
        data = kwargs.pop("data", None)
        if data:
            extra["structured_data"] = data
        kwargs["extra"] = extra
        return msg, kwargs
