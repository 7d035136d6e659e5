"""Metadata key and relation-group registry."""

from .keys import (
    KeyType,
    MetadataKey,
    KeyRegistry,
    get_registry,
    SYSTEM_KEYS,
    URL_GROUP,
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

__all__ = [
    'KeyType',
    'MetadataKey',
    'KeyRegistry',
    'get_registry',
    'SYSTEM_KEYS',
    'URL_GROUP',
    'KEY_TITLE',
    'KEY_URL',
    'KEY_ARTIST',
    'KEY_ALBUM',
    'KEY_GENRE',
    'KEY_THUMBNAIL',
    'KEY_THUMBNAIL_BINARY',
    'KEY_AUTHOR',
    'KEY_DESCRIPTION',
    'KEY_LYRICS',
    'KEY_SITE',
    'KEY_DATE',
    'KEY_MIME',
    'KEY_LAST_PLAYED',
    'KEY_DURATION',
    'KEY_CHILDCOUNT',
    'KEY_WIDTH',
    'KEY_HEIGHT',
    'KEY_BITRATE',
    'KEY_PLAY_COUNT',
    'KEY_LAST_POSITION',
    'KEY_FRAMERATE',
    'KEY_RATING',
    'KEY_STUDIO',
    'KEY_CERTIFICATE',
    'KEY_LICENSE',
    'KEY_SEASON',
    'KEY_EPISODE',
    'KEY_SHOW',
    'KEY_CREATION_DATE',
    'KEY_KEYWORD',
]
