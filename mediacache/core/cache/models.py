"""Cache row model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..data import Media


@dataclass
class CacheEntry:
    """A cached record with its row metadata."""
    media: Media
    parent: Optional[str] = None
    updated: Optional[datetime] = None

    @property
    def media_id(self) -> Optional[str]:
        return self.media.id
