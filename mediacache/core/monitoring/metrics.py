"""
Cache metrics collection using Prometheus.

Tracks:
- Cache operations by outcome (hit/miss/ok/error)
- Operation latency
- Busy/locked retries against the shared database file
"""

from prometheus_client import Counter, Histogram
import time
from functools import wraps
from typing import Callable, Any, Optional

cache_operations_total = Counter(
    'media_cache_operations_total',
    'Total media cache operations',
    ['operation', 'result']  # operation: insert, get, search, remove; result: ok, hit, miss, error
)

cache_operation_duration_seconds = Histogram(
    'media_cache_operation_duration_seconds',
    'Media cache operation duration in seconds',
    ['operation'],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5]
)

cache_busy_retries_total = Counter(
    'media_cache_busy_retries_total',
    'Retries caused by a busy or locked database'
)


def track_duration(metric: Histogram, labels: Optional[dict] = None):
    """
    Observe the wall time of each call in a histogram.

    Usage:
        @track_duration(cache_operation_duration_seconds, {'operation': 'insert'})
        def insert(self, media, parent=None):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            started = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                # Recorded on error too
                elapsed = time.perf_counter() - started
                if labels:
                    metric.labels(**labels).observe(elapsed)
                else:
                    metric.observe(elapsed)
        return wrapper
    return decorator


def record_cache_hit():
    """Record a cache hit."""
    cache_operations_total.labels(operation='get', result='hit').inc()


def record_cache_miss():
    """Record a cache miss."""
    cache_operations_total.labels(operation='get', result='miss').inc()


def record_operation(operation: str, result: str = 'ok'):
    """Record a cache operation outcome."""
    cache_operations_total.labels(operation=operation, result=result).inc()


def record_busy_retry():
    """Record a retry caused by database contention."""
    cache_busy_retries_total.inc()
