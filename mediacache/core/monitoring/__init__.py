"""Monitoring and metrics collection."""

from .metrics import (
    # Decorators
    track_duration,

    # Helper functions
    record_cache_hit,
    record_cache_miss,
    record_operation,
    record_busy_retry,

    # Metrics
    cache_operations_total,
    cache_operation_duration_seconds,
    cache_busy_retries_total,
)

__all__ = [
    'track_duration',
    'record_cache_hit',
    'record_cache_miss',
    'record_operation',
    'record_busy_retry',
    'cache_operations_total',
    'cache_operation_duration_seconds',
    'cache_busy_retries_total',
]
