"""Snapshot of one relation group's values."""

from typing import Any, Mapping, Optional

from ..registry import MetadataKey
from .attributes import AttributeStore


class RelatedKeys(AttributeStore):
    """
    Values for the keys of one relation group, taken together.

    Usage:
        snapshot = RelatedKeys({KEY_URL: "http://a/1.ogg", KEY_MIME: "audio/ogg"})
        media.add_related_keys(snapshot)
    """

    def __init__(self, values: Optional[Mapping[MetadataKey, Any]] = None):
        super().__init__()
        if values:
            for key, value in values.items():
                self.set(key, value)

    def first_key(self) -> Optional[MetadataKey]:
        """First key written to the snapshot, used to find its group."""
        keys = self.get_keys()
        return keys[0] if keys else None

    def dup(self) -> 'RelatedKeys':
        """Independent copy."""
        return RelatedKeys(dict(self._data))
