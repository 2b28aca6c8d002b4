"""
Now Playing State Manager

Tracks the current track reference (the last *track* started, never a voice
line) and renders the "now playing" announcement for chat queries.

The scheduler thread is the only writer; chat commands only read.
"""

import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from umeradio.music_logic.metadata import TrackMetadata, read_track_metadata

logger = logging.getLogger(__name__)

ANNOUNCEMENT_TEMPLATES = (
    "🎶 Currently spinning: **{title}** by **{artist}**~ yuh!",
    "☁️ Now playing: **{title}** by **{artist}**~",
    "🌸 You're listening to: **{title}** by **{artist}**!",
    "🎧 This track is by **{artist}**... it's called **{title}**!",
    "🍡 Ume's choice: **{title}** by **{artist}**!",
    "💫 Floating to the tune of **{title}** by **{artist}**!",
    "🐾 Wow! It's **{title}** by **{artist}** playing now~",
    "✨ You're vibing with **{title}** by **{artist}**",
    "🎀 Playing: **{title}** by the lovely **{artist}**",
    "🎵 Melody on deck: **{title}** by **{artist}**",
)

MetadataReader = Callable[[str], TrackMetadata]


class NothingPlaying(Exception):
    """No track has started yet."""


@dataclass(frozen=True)
class NowPlayingAnnouncement:
    message: str
    title: str
    artist: str
    cover: Optional[bytes] = None
    path: Optional[str] = None


class NowPlayingStateManager:
    """Holds the current track reference and answers now-playing queries."""

    def __init__(self, metadata_reader: Optional[MetadataReader] = None, rng: Optional[random.Random] = None):
        """
        Args:
            metadata_reader: path -> TrackMetadata; raises MetadataUnavailable
            rng: Random source for template selection
        """
        self._metadata_reader = metadata_reader or read_track_metadata
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._current_track_path: Optional[str] = None

    @property
    def current_track_path(self) -> Optional[str]:
        with self._lock:
            return self._current_track_path

    def on_track_started(self, path: str) -> None:
        """Record the track about to play. Voice lines never come through here."""
        with self._lock:
            self._current_track_path = path
        logger.debug(f"[NOW_PLAYING] Current track: {path}")

    def describe(self) -> NowPlayingAnnouncement:
        """
        Render the now-playing announcement for the current track.

        Template wording varies between calls; title and artist do not
        unless the track changed.

        Raises:
            NothingPlaying: If no track has started
            MetadataUnavailable: If the track's metadata cannot be read
        """
        path = self.current_track_path
        if path is None:
            raise NothingPlaying("No track has started yet")

        meta = self._metadata_reader(path)
        template = self._rng.choice(ANNOUNCEMENT_TEMPLATES)
        return NowPlayingAnnouncement(
            message=template.format(title=meta.title, artist=meta.artist),
            title=meta.title,
            artist=meta.artist,
            cover=meta.cover,
            path=path,
        )
