"""
Media records.

A record is identified by (subtype, source, id) and carries typed,
possibly multi-valued attributes. Subtypes form a closed set registered in
MEDIA_TYPES; the codec maps each one to a URI scheme.

Subtypes:
- Media: generic record
- MediaAudio: songs, podcasts (artist, album, genre, lyrics, bitrate)
- MediaVideo: movies, episodes (width, height, framerate, show)
- MediaImage: pictures (width, height)
- MediaBox: containers of other media (childcount)
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple, Type

from mediacache.common.logging import get_logger
from ..registry import (
    KeyRegistry,
    KEY_TITLE,
    KEY_URL,
    KEY_ARTIST,
    KEY_ALBUM,
    KEY_GENRE,
    KEY_THUMBNAIL,
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
    KEY_SEASON,
    KEY_EPISODE,
    KEY_SHOW,
    KEY_KEYWORD,
)
from .multi import MultiValueStore
from .related import RelatedKeys

logger = get_logger(__name__)

RATING_MAX = 5.0


class MediaType(str, Enum):
    """Closed set of record subtypes; the value is the scheme tag."""
    MEDIA = ""
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    BOX = "box"


# Subtype registration table, filled by @register_media_type
MEDIA_TYPES: Dict[MediaType, Type['Media']] = {}


def register_media_type(cls: Type['Media']) -> Type['Media']:
    """Class decorator adding a subtype to MEDIA_TYPES."""
    MEDIA_TYPES[cls.media_type] = cls
    return cls


def media_class_for_name(type_name: str) -> Optional[Type['Media']]:
    """Find a registered subtype by class name (e.g. 'MediaAudio')."""
    for cls in MEDIA_TYPES.values():
        if cls.__name__ == type_name:
            return cls
    return None


def create_media(media_type: MediaType,
                 registry: Optional[KeyRegistry] = None) -> 'Media':
    """Instantiate an empty record of the given subtype."""
    return MEDIA_TYPES[media_type](registry=registry)


@register_media_type
class Media(MultiValueStore):
    """Generic media record."""

    media_type = MediaType.MEDIA

    def __init__(self,
                 media_id: Optional[str] = None,
                 source: Optional[str] = None,
                 registry: Optional[KeyRegistry] = None):
        super().__init__(registry=registry)
        self.id = media_id
        self.source = source

    # ============== Identity ==============

    @property
    def type_tag(self) -> str:
        return self.media_type.value

    # ============== Common attributes ==============

    def set_title(self, title: Optional[str]) -> bool:
        return self.set_string(KEY_TITLE, title)

    def get_title(self) -> Optional[str]:
        return self.get_string(KEY_TITLE)

    def set_url(self, url: Optional[str]) -> bool:
        return self.set_string(KEY_URL, url)

    def get_url(self) -> Optional[str]:
        return self.get_string(KEY_URL)

    def set_url_data(self, url: str, mime: Optional[str] = None) -> None:
        """Set the URL at position 0 together with its mime-type."""
        self.set_related_keys(RelatedKeys({KEY_URL: url, KEY_MIME: mime}), 0)

    def add_url_data(self, url: str, mime: Optional[str] = None) -> None:
        """Add an alternative URL with its mime-type."""
        self.add_related_keys(RelatedKeys({KEY_URL: url, KEY_MIME: mime}))

    def get_url_data_nth(self, index: int) -> Optional[Tuple[str, Optional[str]]]:
        """(url, mime) at index, or None."""
        related = self.get_related_keys(KEY_URL, index)
        if related is None:
            return None
        return related.get_string(KEY_URL), related.get_string(KEY_MIME)

    def get_urls(self) -> List[str]:
        return self.get_all_string_values(KEY_URL)

    def set_mime(self, mime: Optional[str]) -> bool:
        return self.set_string(KEY_MIME, mime)

    def get_mime(self) -> Optional[str]:
        return self.get_string(KEY_MIME)

    def set_author(self, author: Optional[str]) -> bool:
        return self.set_string(KEY_AUTHOR, author)

    def add_author(self, author: str) -> bool:
        return self.add_value(KEY_AUTHOR, author)

    def get_author(self) -> Optional[str]:
        return self.get_string(KEY_AUTHOR)

    def set_description(self, description: Optional[str]) -> bool:
        return self.set_string(KEY_DESCRIPTION, description)

    def get_description(self) -> Optional[str]:
        return self.get_string(KEY_DESCRIPTION)

    def set_thumbnail(self, thumbnail: Optional[str]) -> bool:
        return self.set_string(KEY_THUMBNAIL, thumbnail)

    def add_thumbnail(self, thumbnail: str) -> bool:
        return self.add_value(KEY_THUMBNAIL, thumbnail)

    def get_thumbnail(self) -> Optional[str]:
        return self.get_string(KEY_THUMBNAIL)

    def set_site(self, site: Optional[str]) -> bool:
        return self.set_string(KEY_SITE, site)

    def get_site(self) -> Optional[str]:
        return self.get_string(KEY_SITE)

    def set_date(self, date: Optional[str]) -> bool:
        return self.set_string(KEY_DATE, date)

    def get_date(self) -> Optional[str]:
        return self.get_string(KEY_DATE)

    def set_duration(self, duration: Optional[int]) -> bool:
        return self.set_int(KEY_DURATION, duration)

    def get_duration(self) -> Optional[int]:
        return self.get_int(KEY_DURATION)

    def set_rating(self, rating: float, max_rating: float) -> bool:
        """Store rating normalized to the 0..RATING_MAX scale."""
        if max_rating <= 0:
            logger.warning(f"Rating scale must be positive, got {max_rating}",
                           data={"media_id": self.id, "rating": rating})
            return False
        return self.set_float(KEY_RATING, (rating * RATING_MAX) / max_rating)

    def get_rating(self) -> Optional[float]:
        return self.get_float(KEY_RATING)

    def set_play_count(self, play_count: Optional[int]) -> bool:
        return self.set_int(KEY_PLAY_COUNT, play_count)

    def get_play_count(self) -> Optional[int]:
        return self.get_int(KEY_PLAY_COUNT)

    def set_last_played(self, last_played: Optional[str]) -> bool:
        return self.set_string(KEY_LAST_PLAYED, last_played)

    def get_last_played(self) -> Optional[str]:
        return self.get_string(KEY_LAST_PLAYED)

    def set_last_position(self, last_position: Optional[int]) -> bool:
        return self.set_int(KEY_LAST_POSITION, last_position)

    def get_last_position(self) -> Optional[int]:
        return self.get_int(KEY_LAST_POSITION)

    def add_keyword(self, keyword: str) -> bool:
        return self.add_value(KEY_KEYWORD, keyword)

    def get_keywords(self) -> List[str]:
        return self.get_all_string_values(KEY_KEYWORD)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Media):
            return NotImplemented
        return (type(self) is type(other)
                and self.id == other.id
                and self.source == other.source
                and super().__eq__(other))

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(id={self.id!r}, source={self.source!r}, "
                f"title={self.get_title()!r})")


@register_media_type
class MediaAudio(Media):
    """Audio record."""

    media_type = MediaType.AUDIO

    def set_artist(self, artist: Optional[str]) -> bool:
        return self.set_string(KEY_ARTIST, artist)

    def add_artist(self, artist: str) -> bool:
        return self.add_value(KEY_ARTIST, artist)

    def get_artist(self) -> Optional[str]:
        return self.get_string(KEY_ARTIST)

    def get_artist_nth(self, index: int) -> Optional[str]:
        return self.get_value(KEY_ARTIST, index)

    def get_artists(self) -> List[str]:
        return self.get_all_string_values(KEY_ARTIST)

    def set_album(self, album: Optional[str]) -> bool:
        return self.set_string(KEY_ALBUM, album)

    def get_album(self) -> Optional[str]:
        return self.get_string(KEY_ALBUM)

    def set_genre(self, genre: Optional[str]) -> bool:
        return self.set_string(KEY_GENRE, genre)

    def add_genre(self, genre: str) -> bool:
        return self.add_value(KEY_GENRE, genre)

    def get_genre(self) -> Optional[str]:
        return self.get_string(KEY_GENRE)

    def get_genres(self) -> List[str]:
        return self.get_all_string_values(KEY_GENRE)

    def set_lyrics(self, lyrics: Optional[str]) -> bool:
        return self.set_string(KEY_LYRICS, lyrics)

    def add_lyrics(self, lyrics: str) -> bool:
        return self.add_value(KEY_LYRICS, lyrics)

    def get_lyrics(self) -> Optional[str]:
        return self.get_string(KEY_LYRICS)

    def set_bitrate(self, bitrate: Optional[int]) -> bool:
        return self.set_int(KEY_BITRATE, bitrate)

    def get_bitrate(self) -> Optional[int]:
        return self.get_int(KEY_BITRATE)

    def _url_snapshot(self, url: str, mime: Optional[str], bitrate: int) -> RelatedKeys:
        snapshot = RelatedKeys({KEY_URL: url, KEY_MIME: mime})
        if bitrate >= 0:
            snapshot.set_int(KEY_BITRATE, bitrate)
        return snapshot

    def set_url_data(self, url: str, mime: Optional[str] = None, bitrate: int = -1) -> None:
        """Set the URL at position 0 with its mime-type and bitrate (-1 to ignore)."""
        self.set_related_keys(self._url_snapshot(url, mime, bitrate), 0)

    def add_url_data(self, url: str, mime: Optional[str] = None, bitrate: int = -1) -> None:
        """Add an alternative URL with its mime-type and bitrate (-1 to ignore)."""
        self.add_related_keys(self._url_snapshot(url, mime, bitrate))

    def get_url_data_nth(self, index: int) -> Optional[Tuple[str, Optional[str], Optional[int]]]:
        """(url, mime, bitrate) at index, or None."""
        related = self.get_related_keys(KEY_URL, index)
        if related is None:
            return None
        return (related.get_string(KEY_URL),
                related.get_string(KEY_MIME),
                related.get_int(KEY_BITRATE))


class _SizedMedia(Media):
    """Shared width/height accessors for visual media."""

    def set_width(self, width: Optional[int]) -> bool:
        return self.set_int(KEY_WIDTH, width)

    def get_width(self) -> Optional[int]:
        return self.get_int(KEY_WIDTH)

    def set_height(self, height: Optional[int]) -> bool:
        return self.set_int(KEY_HEIGHT, height)

    def get_height(self) -> Optional[int]:
        return self.get_int(KEY_HEIGHT)

    def set_size(self, width: int, height: int) -> None:
        self.set_width(width)
        self.set_height(height)


@register_media_type
class MediaVideo(_SizedMedia):
    """Video record."""

    media_type = MediaType.VIDEO

    def set_framerate(self, framerate: Optional[float]) -> bool:
        return self.set_float(KEY_FRAMERATE, framerate)

    def get_framerate(self) -> Optional[float]:
        return self.get_float(KEY_FRAMERATE)

    def set_show(self, show: Optional[str]) -> bool:
        return self.set_string(KEY_SHOW, show)

    def get_show(self) -> Optional[str]:
        return self.get_string(KEY_SHOW)

    def set_season(self, season: Optional[int]) -> bool:
        return self.set_int(KEY_SEASON, season)

    def get_season(self) -> Optional[int]:
        return self.get_int(KEY_SEASON)

    def set_episode(self, episode: Optional[int]) -> bool:
        return self.set_int(KEY_EPISODE, episode)

    def get_episode(self) -> Optional[int]:
        return self.get_int(KEY_EPISODE)

    def _url_snapshot(self, url, mime, framerate, width, height) -> RelatedKeys:
        snapshot = RelatedKeys({KEY_URL: url, KEY_MIME: mime})
        if framerate >= 0:
            snapshot.set_float(KEY_FRAMERATE, float(framerate))
        if width >= 0:
            snapshot.set_int(KEY_WIDTH, width)
        if height >= 0:
            snapshot.set_int(KEY_HEIGHT, height)
        return snapshot

    def set_url_data(self, url: str, mime: Optional[str] = None,
                     framerate: float = -1, width: int = -1, height: int = -1) -> None:
        """Set the URL at position 0 with its stream properties (-1 to ignore)."""
        self.set_related_keys(self._url_snapshot(url, mime, framerate, width, height), 0)

    def add_url_data(self, url: str, mime: Optional[str] = None,
                     framerate: float = -1, width: int = -1, height: int = -1) -> None:
        """Add an alternative URL with its stream properties (-1 to ignore)."""
        self.add_related_keys(self._url_snapshot(url, mime, framerate, width, height))

    def get_url_data_nth(self, index: int):
        """(url, mime, framerate, width, height) at index, or None."""
        related = self.get_related_keys(KEY_URL, index)
        if related is None:
            return None
        return (related.get_string(KEY_URL),
                related.get_string(KEY_MIME),
                related.get_float(KEY_FRAMERATE),
                related.get_int(KEY_WIDTH),
                related.get_int(KEY_HEIGHT))


@register_media_type
class MediaImage(_SizedMedia):
    """Image record."""

    media_type = MediaType.IMAGE

    def set_url_data(self, url: str, mime: Optional[str] = None,
                     width: int = -1, height: int = -1) -> None:
        snapshot = RelatedKeys({KEY_URL: url, KEY_MIME: mime})
        if width >= 0:
            snapshot.set_int(KEY_WIDTH, width)
        if height >= 0:
            snapshot.set_int(KEY_HEIGHT, height)
        self.set_related_keys(snapshot, 0)


@register_media_type
class MediaBox(Media):
    """Container of other media (folder, album, playlist)."""

    media_type = MediaType.BOX

    def set_childcount(self, childcount: Optional[int]) -> bool:
        return self.set_int(KEY_CHILDCOUNT, childcount)

    def get_childcount(self) -> Optional[int]:
        return self.get_int(KEY_CHILDCOUNT)
