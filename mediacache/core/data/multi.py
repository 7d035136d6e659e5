"""
Multi-valued attribute storage.

A record may carry N >= 0 values for one relation group (several URLs, each
with its own mime-type and bitrate). Values are addressed by position:

- position 0 lives directly in the record's attributes, so single-valued
  access costs nothing extra;
- positions 1..N-1 live in an ordered list of RelatedKeys snapshots, keyed
  by the group's representative key.

Positions are dense: removing position 0 promotes position 1, and removing
any list entry shifts the ones after it.
"""

from typing import Any, Dict, List, Optional

from mediacache.common.logging import get_logger
from ..registry import KeyRegistry, MetadataKey, get_registry
from .attributes import AttributeStore
from .related import RelatedKeys

logger = get_logger(__name__)


class MultiValueStore(AttributeStore):
    """
    AttributeStore with positional, multi-valued relation groups.

    Usage:
        store.add_related_keys(RelatedKeys({KEY_URL: "http://a", KEY_MIME: "audio/ogg"}))
        store.add_related_keys(RelatedKeys({KEY_URL: "http://b", KEY_MIME: "audio/mpeg"}))
        store.length(KEY_MIME)                       # 2
        store.get_related_keys(KEY_URL, 1).get(KEY_URL)  # "http://b"
        store.remove_related_keys(KEY_URL, 0)        # "http://b" moves to position 0
    """

    def __init__(self, registry: Optional[KeyRegistry] = None):
        super().__init__()
        self._registry = registry or get_registry()
        self._extended: Dict[MetadataKey, List[RelatedKeys]] = {}

    @property
    def registry(self) -> KeyRegistry:
        return self._registry

    def _group(self, key: MetadataKey):
        group = self._registry.relation(key)
        return group[0], group

    @staticmethod
    def _restrict(snapshot: RelatedKeys, group) -> RelatedKeys:
        """Members of group in snapshot; other keys are dropped."""
        kept = RelatedKeys({k: v for k, v in snapshot.items() if k in group})
        if len(kept) != len(snapshot):
            logger.warning("Keys outside the relation group dropped",
                           data={"dropped": [k.name for k in snapshot.get_keys() if k not in group]})
        return kept

    def _promote_head(self, representative: MetadataKey) -> None:
        values = self._extended.get(representative)
        if not values:
            return
        head = values.pop(0)
        for key, value in head.items():
            self._data[key] = value
        if not values:
            del self._extended[representative]

    # ============== Positional access ==============

    def add_related_keys(self, snapshot: RelatedKeys) -> None:
        """
        Append a group snapshot at the next free position.

        The first snapshot of a group is written inline (position 0); later
        ones go to the auxiliary list.
        """
        first = snapshot.first_key()
        if first is None:
            logger.warning("Empty related keys, nothing added")
            return

        representative, group = self._group(first)
        snapshot = self._restrict(snapshot, group)
        if self.length(representative) == 0:
            for key, value in snapshot.items():
                self._data[key] = value
        else:
            self._extended.setdefault(representative, []).append(snapshot)

    def length(self, key: MetadataKey) -> int:
        """Number of positions holding a value for key's group."""
        representative, group = self._group(key)
        values = self._extended.get(representative)
        if values:
            return len(values) + 1

        # Only position 0 can hold data. Group members set on their own
        # count as one position between them.
        return 1 if any(member in self._data for member in group) else 0

    def get_related_keys(self, key: MetadataKey, pos: int = 0) -> Optional[RelatedKeys]:
        """
        Copy of the group snapshot at pos, or None if pos is out of range.
        """
        representative, group = self._group(key)
        if pos < 0 or pos >= self.length(representative):
            logger.warning(f"Position {pos} out of range for '{key}'",
                           data={"key": key.name, "pos": pos})
            return None

        if pos == 0:
            return RelatedKeys({member: self._data[member]
                                for member in group if member in self._data})

        return self._extended[representative][pos - 1].dup()

    def get_all_values(self, key: MetadataKey) -> List[Any]:
        """Every value of key (not its whole group) across all positions."""
        representative, _ = self._group(key)
        values = []
        if key in self._data:
            values.append(self._data[key])
        for snapshot in self._extended.get(representative, ()):
            value = snapshot.get(key)
            if value is not None:
                values.append(value)
        return values

    def get_all_string_values(self, key: MetadataKey) -> List[str]:
        """Like get_all_values, keeping only strings."""
        return [v for v in self.get_all_values(key) if isinstance(v, str)]

    def remove_related_keys(self, key: MetadataKey, pos: int = 0) -> None:
        """Remove the group snapshot at pos; later positions shift down."""
        representative, group = self._group(key)
        if pos < 0 or pos >= self.length(representative):
            logger.debug(f"Nothing to remove at position {pos} for '{key}'")
            return

        if pos == 0:
            for member in group:
                self._data.pop(member, None)
            self._promote_head(representative)
            return

        values = self._extended[representative]
        del values[pos - 1]
        if not values:
            del self._extended[representative]

    def update_related_keys(self, key: MetadataKey, snapshot: RelatedKeys, pos: int = 0) -> None:
        """
        Replace the group snapshot at pos.

        Group members missing from snapshot are cleared at that position.
        """
        representative, group = self._group(key)
        snapshot = self._restrict(snapshot, group)
        if len(snapshot) == 0:
            logger.warning(f"No keys of the '{key}' group, position {pos} not updated")
            return
        if pos < 0 or pos >= self.length(representative):
            logger.warning(f"Position {pos} out of range for '{key}', update discarded",
                           data={"key": key.name, "pos": pos})
            return

        if pos == 0:
            for member in group:
                self._data.pop(member, None)
            for k, value in snapshot.items():
                self._data[k] = value
        else:
            self._extended[representative][pos - 1] = snapshot

    def set_related_keys(self, snapshot: RelatedKeys, pos: int = 0) -> None:
        """Update pos, or add when setting position 0 of an empty group."""
        first = snapshot.first_key()
        if first is None:
            logger.warning("Empty related keys, nothing set")
            return
        if pos == 0 and self.length(first) == 0:
            self.add_related_keys(snapshot)
        else:
            self.update_related_keys(first, snapshot, pos)

    # ============== Single-key conveniences ==============

    def add_value(self, key: MetadataKey, value: Any) -> bool:
        """Append value for key at the next free position of its group."""
        snapshot = RelatedKeys()
        if not snapshot.set(key, value) or value is None:
            return False
        self.add_related_keys(snapshot)
        return True

    def set_value(self, key: MetadataKey, value: Any, pos: int = 0) -> bool:
        """Set key inside the group snapshot at pos, keeping its other members."""
        if pos == 0 and self.length(key) == 0:
            return self.add_value(key, value)

        snapshot = self.get_related_keys(key, pos)
        if snapshot is None or not snapshot.set(key, value):
            return False
        if len(snapshot) == 0:
            self.remove_related_keys(key, pos)
        else:
            self.update_related_keys(key, snapshot, pos)
        return True

    def get_value(self, key: MetadataKey, pos: int = 0) -> Any:
        """Value of key at pos, or None."""
        if pos == 0:
            return self.get(key)
        representative, _ = self._group(key)
        values = self._extended.get(representative, ())
        if 0 < pos <= len(values):
            return values[pos - 1].get(key)
        return None

    # ============== AttributeStore overrides ==============

    def remove(self, key: MetadataKey) -> None:
        """Remove key at position 0, promoting position 1 if the group empties."""
        super().remove(key)
        if not self._registry.is_registered(key):
            return
        representative, group = self._group(key)
        if not any(member in self._data for member in group):
            self._promote_head(representative)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultiValueStore):
            return NotImplemented
        return self._data == other._data and self._extended == other._extended
