"""
Metadata key registry.

Every attribute a record can carry is a registered MetadataKey with a
declared scalar type. Keys that only make sense together (a URL and its
mime-type, bitrate, ...) are registered as one relation group; the first
key of a group is its representative.

Usage:
    from mediacache.core.registry import get_registry, KEY_URL

    registry = get_registry()
    registry.relation(KEY_URL)          # (url, mime, bitrate, framerate, width, height)
    registry.lookup("title")            # MetadataKey('title', STRING)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from mediacache.common.logging import get_logger
from ..errors import ValidationError

logger = get_logger(__name__)

_KEY_NAME_RE = re.compile(r'^[a-z][a-z0-9_]*$')


class KeyType(Enum):
    """Declared scalar type of a metadata key."""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BINARY = "binary"

    @property
    def python_type(self) -> type:
        return _PYTHON_TYPES[self]

    def accepts(self, value) -> bool:
        """Check that value's runtime type is exactly this key type."""
        if isinstance(value, bool):
            return False
        return type(value) is self.python_type


_PYTHON_TYPES = {
    KeyType.STRING: str,
    KeyType.INT: int,
    KeyType.FLOAT: float,
    KeyType.BINARY: bytes,
}


@dataclass(frozen=True)
class MetadataKey:
    """A registered attribute key."""
    name: str
    type: KeyType
    description: str = ""

    def __str__(self) -> str:
        return self.name


class KeyRegistry:
    """
    Registry of metadata keys and their relation groups.

    Keys are kept in registration order; that order is the attribute
    order used by full serialization.
    """

    def __init__(self):
        self._keys: Dict[str, MetadataKey] = {}
        self._relations: Dict[MetadataKey, Tuple[MetadataKey, ...]] = {}

    def register(
        self,
        key: MetadataKey,
        related: Optional[Sequence[MetadataKey]] = None,
    ) -> MetadataKey:
        """
        Register a key, optionally as part of a relation group.

        Args:
            key: Key to register
            related: Ordered group the key belongs to. Every member of the
                group is (re)mapped to it; the first member is the
                representative.

        Returns:
            The registered key (the existing one if already registered)

        Raises:
            ValidationError: Invalid name, or name registered with another type
        """
        if not _KEY_NAME_RE.match(key.name):
            raise ValidationError(
                f"Invalid metadata key name '{key.name}'",
                data={"key": key.name},
            )

        existing = self._keys.get(key.name)
        if existing is not None and existing.type != key.type:
            raise ValidationError(
                f"Metadata key '{key.name}' already registered as {existing.type.value}",
                data={"key": key.name, "type": key.type.value},
            )

        if existing is None:
            self._keys[key.name] = key
            self._relations.setdefault(key, (key,))
            existing = key

        if related:
            group = tuple(related)
            if existing not in group:
                group = group + (existing,)
            for member in group:
                if member.name not in self._keys:
                    self._keys[member.name] = member
                self._relations[member] = group

        return existing

    def lookup(self, name: str) -> Optional[MetadataKey]:
        """Find a key by name."""
        return self._keys.get(name)

    def is_registered(self, key: MetadataKey) -> bool:
        return self._keys.get(key.name) == key

    def get_keys(self) -> List[MetadataKey]:
        """All keys, in registration order."""
        return list(self._keys.values())

    def relation(self, key: MetadataKey) -> Tuple[MetadataKey, ...]:
        """
        Ordered relation group of key.

        Raises:
            ValidationError: key is not registered
        """
        group = self._relations.get(key)
        if group is None:
            raise ValidationError(
                f"Metadata key '{key}' is not registered",
                data={"key": str(key)},
            )
        return group

    def representative(self, key: MetadataKey) -> MetadataKey:
        """First key of key's relation group."""
        return self.relation(key)[0]

    def copy(self) -> 'KeyRegistry':
        """Independent registry with the same keys and groups."""
        clone = KeyRegistry()
        clone._keys = dict(self._keys)
        clone._relations = dict(self._relations)
        return clone

    @classmethod
    def default(cls) -> 'KeyRegistry':
        """New registry pre-loaded with the system keys."""
        registry = cls()
        for key in SYSTEM_KEYS:
            registry.register(key)
        registry.register(KEY_URL, related=URL_GROUP)
        return registry


# =============================================================================
# System keys
# =============================================================================

KEY_TITLE = MetadataKey("title", KeyType.STRING, "Title of the media")
KEY_URL = MetadataKey("url", KeyType.STRING, "Media URL")
KEY_ARTIST = MetadataKey("artist", KeyType.STRING, "Main artist")
KEY_ALBUM = MetadataKey("album", KeyType.STRING, "Album the media belongs to")
KEY_GENRE = MetadataKey("genre", KeyType.STRING, "Genre of the media")
KEY_THUMBNAIL = MetadataKey("thumbnail", KeyType.STRING, "Thumbnail image URL")
KEY_THUMBNAIL_BINARY = MetadataKey("thumbnail_binary", KeyType.BINARY, "Thumbnail image data")
KEY_AUTHOR = MetadataKey("author", KeyType.STRING, "Creator of the media")
KEY_DESCRIPTION = MetadataKey("description", KeyType.STRING, "Description of the media")
KEY_LYRICS = MetadataKey("lyrics", KeyType.STRING, "Song lyrics")
KEY_SITE = MetadataKey("site", KeyType.STRING, "Site where the media is published")
KEY_DATE = MetadataKey("date", KeyType.STRING, "Publication date")
KEY_MIME = MetadataKey("mime", KeyType.STRING, "Mime-type of the URL")
KEY_LAST_PLAYED = MetadataKey("last_played", KeyType.STRING, "Last time the media was played")
KEY_DURATION = MetadataKey("duration", KeyType.INT, "Duration in seconds")
KEY_CHILDCOUNT = MetadataKey("childcount", KeyType.INT, "Number of items in a box")
KEY_WIDTH = MetadataKey("width", KeyType.INT, "Width in pixels")
KEY_HEIGHT = MetadataKey("height", KeyType.INT, "Height in pixels")
KEY_BITRATE = MetadataKey("bitrate", KeyType.INT, "Bitrate in kbps")
KEY_PLAY_COUNT = MetadataKey("play_count", KeyType.INT, "How many times the media was played")
KEY_LAST_POSITION = MetadataKey("last_position", KeyType.INT, "Resume position in seconds")
KEY_FRAMERATE = MetadataKey("framerate", KeyType.FLOAT, "Frames per second")
KEY_RATING = MetadataKey("rating", KeyType.FLOAT, "Rating, normalized to 0..5")
KEY_STUDIO = MetadataKey("studio", KeyType.STRING, "Studio that produced the media")
KEY_CERTIFICATE = MetadataKey("certificate", KeyType.STRING, "Content rating certificate")
KEY_LICENSE = MetadataKey("license", KeyType.STRING, "License of the media")
KEY_SEASON = MetadataKey("season", KeyType.INT, "Season number of a show")
KEY_EPISODE = MetadataKey("episode", KeyType.INT, "Episode number within a season")
KEY_SHOW = MetadataKey("show", KeyType.STRING, "Name of the show")
KEY_CREATION_DATE = MetadataKey("creation_date", KeyType.STRING, "Date the media was created")
KEY_KEYWORD = MetadataKey("keyword", KeyType.STRING, "Keyword describing the media")

SYSTEM_KEYS: Tuple[MetadataKey, ...] = (
    KEY_TITLE,
    KEY_URL,
    KEY_ARTIST,
    KEY_ALBUM,
    KEY_GENRE,
    KEY_THUMBNAIL,
    KEY_THUMBNAIL_BINARY,
    KEY_AUTHOR,
    KEY_DESCRIPTION,
    KEY_LYRICS,
    KEY_SITE,
    KEY_DATE,
    KEY_MIME,
    KEY_LAST_PLAYED,
    KEY_DURATION,
    KEY_CHILDCOUNT,
    KEY_WIDTH,
    KEY_HEIGHT,
    KEY_BITRATE,
    KEY_PLAY_COUNT,
    KEY_LAST_POSITION,
    KEY_FRAMERATE,
    KEY_RATING,
    KEY_STUDIO,
    KEY_CERTIFICATE,
    KEY_LICENSE,
    KEY_SEASON,
    KEY_EPISODE,
    KEY_SHOW,
    KEY_CREATION_DATE,
    KEY_KEYWORD,
)

URL_GROUP: Tuple[MetadataKey, ...] = (
    KEY_URL,
    KEY_MIME,
    KEY_BITRATE,
    KEY_FRAMERATE,
    KEY_WIDTH,
    KEY_HEIGHT,
)


# Singleton instance
_registry: Optional[KeyRegistry] = None


def get_registry() -> KeyRegistry:
    """Get the process-wide default registry."""
    global _registry
    if _registry is None:
        _registry = KeyRegistry.default()
    return _registry
