"""Read audio file tags into media records."""

from pathlib import Path
from typing import List, Optional

from mutagen import File, MutagenError

from mediacache.common.logging import get_logger
from ..core.data import MediaAudio
from ..core.errors import MetadataError
from ..core.registry import KeyRegistry

logger = get_logger(__name__)


class TagReader:
    """Builds MediaAudio records from local audio files."""

    def __init__(self, registry: Optional[KeyRegistry] = None):
        self.registry = registry

    @staticmethod
    def _tag_values(audio, name: str) -> List[str]:
        values = audio.get(name)
        if not values:
            return []
        return [str(v) for v in values if str(v)]

    def read(self, file_path: str, source: str = "local") -> MediaAudio:
        """
        Read tags from an audio file.

        Args:
            file_path: Path to audio file
            source: Source name for the record

        Returns:
            MediaAudio with id set to the absolute path

        Raises:
            MetadataError: File missing, unsupported or unreadable
        """
        path = Path(file_path).absolute()

        if not path.exists():
            raise MetadataError(f"File not found: {path}", data={"file_path": str(path)})

        try:
            audio = File(str(path), easy=True)
        except MutagenError as e:
            raise MetadataError(
                f"Failed to read tags from {path}: {e}",
                data={"file_path": str(path)},
                cause=e,
            ) from e

        if audio is None:
            raise MetadataError(
                f"Unsupported audio format: {path.suffix}",
                data={"file_path": str(path)},
            )

        media = MediaAudio(media_id=str(path), source=source, registry=self.registry)

        titles = self._tag_values(audio, 'title')
        if titles:
            media.set_title(titles[0])
        for artist in self._tag_values(audio, 'artist'):
            media.add_artist(artist)
        for genre in self._tag_values(audio, 'genre'):
            media.add_genre(genre)
        albums = self._tag_values(audio, 'album')
        if albums:
            media.set_album(albums[0])
        dates = self._tag_values(audio, 'date')
        if dates:
            media.set_date(dates[0])

        info = getattr(audio, 'info', None)
        length = getattr(info, 'length', None)
        if length:
            media.set_duration(int(length))

        mimes = getattr(audio, 'mime', None) or []
        bitrate = getattr(info, 'bitrate', None)
        media.set_url_data(
            path.as_uri(),
            mimes[0] if mimes else None,
            int(bitrate) // 1000 if bitrate else -1,
        )

        logger.debug(f"Read tags from {path.name}",
                     data={"file_path": str(path), "title": media.get_title()})
        return media
