"""
Per-genre track queue construction.

A queue is built by shuffling a genre's track listing once and sampling it
modulo its length, so a short listing repeats with period len(listing).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from umeradio.app.constants import QUEUE_MAX_LENGTH, QUEUE_MIN_LENGTH
from umeradio.music_logic.media_library import EmptyListing, Genre, MediaLibrary
from umeradio.music_logic.shuffler import Shuffler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenreCycle:
    """Everything one genre's turn will play."""

    genre: Genre
    queue: Tuple[str, ...]
    voice_line: Optional[str] = None

    def __len__(self) -> int:
        return len(self.queue)


class TrackQueueBuilder:
    """Builds a GenreCycle for a genre from the media library."""

    def __init__(
        self,
        library: MediaLibrary,
        shuffler: Optional[Shuffler] = None,
        min_length: int = QUEUE_MIN_LENGTH,
        max_length: int = QUEUE_MAX_LENGTH,
    ):
        if min_length < 1 or max_length < min_length:
            raise ValueError(f"Invalid queue length bounds: [{min_length}, {max_length}]")
        self._library = library
        self._shuffler = shuffler or Shuffler()
        self.min_length = min_length
        self.max_length = max_length

    def build(self, genre: Genre) -> GenreCycle:
        """
        Build the queue and pick the interstitial voice line for a genre.

        Raises:
            DirectoryMissing: If the genre's track directory is absent
            EmptyListing: If the directory holds no playable tracks
        """
        tracks = self._library.list_tracks(genre)
        if not tracks:
            raise EmptyListing(genre, f"No tracks found for genre {genre.name} in {genre.track_dir}")

        shuffled = self._shuffler.shuffle(list(tracks))
        count = self._shuffler.randint(self.min_length, self.max_length)
        queue = tuple(shuffled[i % len(shuffled)] for i in range(count))

        voice_lines = self._library.list_voice_lines(genre)
        voice_line = self._shuffler.choice(voice_lines) if voice_lines else None

        logger.info(
            f"[QUEUE] {genre.name}: {count} track(s) from {len(shuffled)} file(s), "
            f"voice line: {voice_line or 'none'}"
        )
        return GenreCycle(genre=genre, queue=queue, voice_line=voice_line)
