"""
Media cache protocol.

Implementations:
- MediaCache (mediacache.core.cache.media_cache)
"""

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from ..data import Media
from .models import CacheEntry


@runtime_checkable
class MediaCacheProtocol(Protocol):
    """Protocol for record caches."""

    def insert(self, media: Media, parent: Optional[str] = None) -> None:
        """Insert or replace a record."""
        ...

    def get(self, media_id: str) -> Media:
        """Get record by id."""
        ...

    def get_entry(self, media_id: str) -> CacheEntry:
        """Get record by id with its row metadata."""
        ...

    def search(self, condition: Optional[str] = None,
               params: Sequence[Any] = ()) -> List[Media]:
        """Records matching an SQL condition."""
        ...

    def remove(self, condition: Optional[str] = None,
               params: Sequence[Any] = ()) -> None:
        """Delete records matching an SQL condition."""
        ...

    def count(self, condition: Optional[str] = None,
              params: Sequence[Any] = ()) -> int:
        """Number of records matching an SQL condition."""
        ...

    def close(self) -> None:
        """Flush and release the cache."""
        ...
