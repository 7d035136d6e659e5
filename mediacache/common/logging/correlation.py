"""Correlation and cache context for log records."""

import uuid
import logging
import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional


# Context variable for correlation ID (thread-safe, async-safe)
correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for the cache table being operated on
cache_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "cache_id", default=None
)


def generate_correlation_id() -> str:
    """Generate unique correlation ID."""
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: Optional[str]):
    """Set correlation ID in context."""
    correlation_id_var.set(cid)


def get_cache_id() -> Optional[str]:
    """Get current cache ID from context."""
    return cache_id_var.get()


def set_cache_id(cache_id: Optional[str]):
    """Set cache ID in context."""
    cache_id_var.set(cache_id)


@contextmanager
def cache_context(cache_id: str) -> Iterator[str]:
    """
    Bind a cache ID to the current context for the duration of a block.

    Nested blocks restore the outer value on exit.

    Usage:
        with cache_context("catalog"):
            logger.info("Inserting")  # record.cache_id == "catalog"
    """
    token = cache_id_var.set(cache_id)
    try:
        yield cache_id
    finally:
        cache_id_var.reset(token)


class CorrelationLogFilter(logging.Filter):
    """
    Logging filter that adds correlation_id and cache_id to log records.

    Values already on the record (bound through the adapter) win over the
    context variables.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id()
        if getattr(record, "cache_id", None) is None:
            record.cache_id = get_cache_id()
        return True
