"""SQLite-backed media record cache."""

from .models import CacheEntry
from .interfaces import MediaCacheProtocol
from .media_cache import MediaCache, CACHE_ID_PATTERN, FIXED_COLUMNS, quote_identifier

__all__ = [
    'CacheEntry',
    'MediaCacheProtocol',
    'MediaCache',
    'CACHE_ID_PATTERN',
    'FIXED_COLUMNS',
    'quote_identifier',
]
