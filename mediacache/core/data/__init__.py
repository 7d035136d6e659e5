"""
Record data model.

- attributes.py: typed key/value store
- related.py: relation group snapshots
- multi.py: positional multi-valued groups
- media.py: record subtypes
"""

from .attributes import AttributeStore
from .related import RelatedKeys
from .multi import MultiValueStore
from .media import (
    Media,
    MediaAudio,
    MediaVideo,
    MediaImage,
    MediaBox,
    MediaType,
    MEDIA_TYPES,
    RATING_MAX,
    create_media,
    media_class_for_name,
    register_media_type,
)

__all__ = [
    'AttributeStore',
    'RelatedKeys',
    'MultiValueStore',
    'Media',
    'MediaAudio',
    'MediaVideo',
    'MediaImage',
    'MediaBox',
    'MediaType',
    'MEDIA_TYPES',
    'RATING_MAX',
    'create_media',
    'media_class_for_name',
    'register_media_type',
]
