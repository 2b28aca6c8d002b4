"""
Filesystem-backed genre library.

Content layout under the radio root:

    <root>/music/<genre>/*.mp3   tracks (required per genre)
    <root>/voice/<genre>/*.mp3   voice lines (optional per genre)

No selection or shuffling happens here; the library only lists files.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

from umeradio.app.constants import DEFAULT_AUDIO_EXTENSION, MUSIC_DIRNAME, VOICE_DIRNAME

logger = logging.getLogger(__name__)


class GenreUnavailable(Exception):
    """A genre has nothing to play this cycle."""

    def __init__(self, genre: "Genre", message: str):
        super().__init__(message)
        self.genre = genre


class DirectoryMissing(GenreUnavailable):
    """The genre's track directory does not exist."""


class EmptyListing(GenreUnavailable):
    """The genre's track directory exists but holds no playable files."""


@dataclass(frozen=True)
class Genre:
    """A named category with its track folder and optional voice-line folder."""

    name: str
    track_dir: Path
    voice_dir: Path

    def __str__(self) -> str:
        return self.name


class MediaLibrary:
    """Lists tracks and voice lines per genre from a content root."""

    def __init__(self, root: Path, genre_names: Iterable[str], extension: str = DEFAULT_AUDIO_EXTENSION):
        """
        Args:
            root: Content root holding music/ and voice/ trees
            genre_names: The fixed genre set, in configuration order
            extension: Supported audio extension (matched case-insensitively)
        """
        self.root = Path(root).expanduser().resolve()
        self.extension = extension.lower()
        self._genres: Tuple[Genre, ...] = tuple(
            Genre(
                name=name,
                track_dir=self.root / MUSIC_DIRNAME / name,
                voice_dir=self.root / VOICE_DIRNAME / name,
            )
            for name in genre_names
        )
        if not self._genres:
            raise ValueError("MediaLibrary needs at least one genre")

        logger.info(
            f"[LIBRARY] Content root {self.root} with genres: "
            f"{', '.join(g.name for g in self._genres)}"
        )

    @property
    def genres(self) -> Tuple[Genre, ...]:
        return self._genres

    def get_genre(self, name: str) -> Genre:
        for genre in self._genres:
            if genre.name == name:
                return genre
        raise KeyError(f"Unknown genre: {name!r}")

    def _list_audio_files(self, directory: Path) -> List[str]:
        files = [
            str(directory / entry)
            for entry in os.listdir(directory)
            if entry.lower().endswith(self.extension) and (directory / entry).is_file()
        ]
        files.sort()
        return files

    def list_tracks(self, genre: Genre) -> List[str]:
        """
        List absolute track paths for a genre.

        Raises:
            DirectoryMissing: If the genre's track directory does not exist
        """
        if not genre.track_dir.is_dir():
            raise DirectoryMissing(genre, f"Track directory missing for genre {genre.name}: {genre.track_dir}")
        tracks = self._list_audio_files(genre.track_dir)
        logger.debug(f"[LIBRARY] {genre.name}: {len(tracks)} track(s) in {genre.track_dir}")
        return tracks

    def list_voice_lines(self, genre: Genre) -> List[str]:
        """List absolute voice-line paths for a genre; empty if the folder is absent."""
        if not genre.voice_dir.is_dir():
            return []
        try:
            return self._list_audio_files(genre.voice_dir)
        except OSError as e:
            logger.warning(f"[LIBRARY] Could not read voice lines for {genre.name}: {e}")
            return []
