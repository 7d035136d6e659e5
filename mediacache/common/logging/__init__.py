"""Structured logging for media-cache."""

from .logger import setup_logging, get_logger
from .logging_config import LoggingConfig, get_logging_config
from .formatters import JSONFormatter, StructuredLogAdapter
from .correlation import (
    CorrelationLogFilter,
    cache_context,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    get_cache_id,
    set_cache_id,
)

__all__ = [
    # Logger
    'setup_logging',
    'get_logger',
    # Logging config
    'LoggingConfig',
    'get_logging_config',
    # Structured logging
    'JSONFormatter',
    'StructuredLogAdapter',
    # Correlation
    'CorrelationLogFilter',
    'cache_context',
    'generate_correlation_id',
    'get_correlation_id',
    'set_correlation_id',
    'get_cache_id',
    'set_cache_id',
]
