"""
Text codec for media records.

A record serializes to a URI-like string:

    mediaaudio://jamendo/1234?title=Blue%20Monday&duration=443&rating=4.500000

- scheme: "media" + lower-cased subtype suffix ("media", "mediaaudio", ...)
- authority: percent-escaped source
- path: percent-escaped id (omitted when the record has no id)
- query: position-0 attribute values, depending on SerializeMode
"""

import re
from enum import Enum
from typing import Any, Iterable, List, Optional
from urllib.parse import quote, unquote, unquote_to_bytes

from mediacache.common.logging import get_logger
from ..data import Media, media_class_for_name
from ..errors import SerializationError
from ..registry import KeyRegistry, KeyType, MetadataKey, get_registry

logger = get_logger(__name__)

SCHEME_PREFIX = "media"

_MEDIA_URI_RE = re.compile(
    r'^(media[a-z]*)://([^/?]+)(?:/([^?]*))?(?:\?(.*))?$',
    re.IGNORECASE | re.DOTALL,
)
_INT_PREFIX_RE = re.compile(r'^\s*[+-]?\d+')
_FLOAT_PREFIX_RE = re.compile(
    r'^\s*[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)',
    re.IGNORECASE,
)


class SerializeMode(Enum):
    """How much of a record goes into the query string."""
    BASIC = "basic"      # source and id only
    PARTIAL = "partial"  # caller-supplied keys
    FULL = "full"        # every registered key


def parse_int(text: str) -> int:
    """Leading-integer parse; non-numeric input gives 0."""
    match = _INT_PREFIX_RE.match(text)
    return int(match.group(0)) if match else 0


def parse_float(text: str) -> float:
    """Leading-float parse; non-numeric input gives 0.0."""
    match = _FLOAT_PREFIX_RE.match(text)
    return float(match.group(0)) if match else 0.0


def scheme_for(media: Media) -> str:
    """URI scheme of a record's concrete subtype."""
    name = type(media).__name__
    suffix = name[len("Media"):] if name.startswith("Media") else name
    return SCHEME_PREFIX + suffix.lower()


def class_name_for_scheme(scheme: str) -> str:
    """Subtype class name for a URI scheme ("mediaaudio" -> "MediaAudio")."""
    suffix = scheme[len(SCHEME_PREFIX):]
    return "Media" + suffix[:1].upper() + suffix[1:].lower()


class MediaCodec:
    """
    Serializes records to and from their text form.

    Usage:
        codec = MediaCodec()
        text = codec.serialize(song)
        copy = codec.deserialize(text)
    """

    def __init__(self, registry: Optional[KeyRegistry] = None):
        self.registry = registry or get_registry()

    # ============== Encoding ==============

    @staticmethod
    def encode_value(key: MetadataKey, value: Any) -> str:
        """Render one attribute value for the query string."""
        if key.type is KeyType.STRING:
            return quote(value, safe='')
        if key.type is KeyType.INT:
            return str(value)
        if key.type is KeyType.FLOAT:
            return format(value, 'f')
        return quote(value, safe='')

    def serialize(
        self,
        media: Media,
        mode: SerializeMode = SerializeMode.FULL,
        keys: Optional[Iterable[MetadataKey]] = None,
    ) -> str:
        """
        Serialize a record.

        Args:
            media: Record to serialize
            mode: Amount of attributes to include
            keys: Keys to emit in PARTIAL mode

        Raises:
            SerializationError: The record has no source
        """
        if not media.source:
            raise SerializationError(
                "Cannot serialize media without a source",
                data={"media_id": media.id, "type": type(media).__name__},
            )

        text = f"{scheme_for(media)}://{quote(media.source, safe='')}"
        if media.id is not None:
            text += "/" + quote(media.id, safe='')

        if mode is SerializeMode.BASIC:
            return text
        if mode is SerializeMode.PARTIAL:
            selected = list(keys or ())
        else:
            selected = self.registry.get_keys()

        pairs: List[str] = []
        for key in selected:
            value = media.get(key)
            if value is None:
                continue
            pairs.append(f"{key.name}={self.encode_value(key, value)}")

        if pairs:
            text += "?" + "&".join(pairs)
        return text

    # ============== Decoding ==============

    @staticmethod
    def decode_value(key: MetadataKey, raw: str) -> Any:
        """Coerce a query value to key's declared type."""
        if key.type is KeyType.BINARY:
            return unquote_to_bytes(raw)
        text = unquote(raw)
        if key.type is KeyType.INT:
            return parse_int(text)
        if key.type is KeyType.FLOAT:
            return parse_float(text)
        return text

    def deserialize(self, text: str) -> Media:
        """
        Rebuild a record from its serialized form.

        Unknown attribute names are skipped.

        Raises:
            SerializationError: Malformed text or unknown subtype
        """
        match = _MEDIA_URI_RE.match(text)
        if match is None:
            raise SerializationError(
                "Malformed serialized media",
                data={"text": text[:200]},
            )
        scheme, authority, path, query = match.groups()

        cls = media_class_for_name(class_name_for_scheme(scheme))
        if cls is None:
            raise SerializationError(
                f"Unknown media type in scheme '{scheme}'",
                data={"scheme": scheme},
            )

        media = cls(registry=self.registry)
        media.source = unquote(authority)
        media.id = unquote(path) if path else None

        if query:
            for pair in query.split("&"):
                name, sep, raw = pair.partition("=")
                if not sep:
                    continue
                key = self.registry.lookup(unquote(name))
                if key is None:
                    logger.debug(f"Skipping unknown key '{name}'")
                    continue
                media.set(key, self.decode_value(key, raw))

        return media


def serialize(media: Media,
              mode: SerializeMode = SerializeMode.FULL,
              keys: Optional[Iterable[MetadataKey]] = None) -> str:
    """Serialize with a codec over the record's own registry."""
    return MediaCodec(media.registry).serialize(media, mode, keys)


def deserialize(text: str, registry: Optional[KeyRegistry] = None) -> Media:
    """Deserialize with the given (or default) registry."""
    return MediaCodec(registry).deserialize(text)
