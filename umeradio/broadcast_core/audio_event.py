"""
Audio Event model.

One AudioEvent is one item the scheduler hands to the audio pipeline: a
genre's interstitial voice line or one entry of its track queue.
"""

from dataclasses import dataclass
from typing import Literal

from umeradio.app.constants import TRACK_FADE_SECONDS, VOICE_LINE_FADE_SECONDS

EventType = Literal["track", "voice_line"]


@dataclass(frozen=True)
class AudioEvent:
    """
    A single playable item.

    Attributes:
        path: Absolute path to the audio file
        type: "track" or "voice_line"
        genre: Name of the genre this item belongs to
        fade_seconds: Fade-in and fade-out duration applied by the pipeline
        position: Queue position for tracks, -1 for voice lines
    """
    path: str
    type: EventType
    genre: str
    fade_seconds: float
    position: int = -1

    @classmethod
    def track(cls, path: str, genre: str, position: int) -> "AudioEvent":
        return cls(path=path, type="track", genre=genre, fade_seconds=TRACK_FADE_SECONDS, position=position)

    @classmethod
    def voice_line(cls, path: str, genre: str) -> "AudioEvent":
        return cls(path=path, type="voice_line", genre=genre, fade_seconds=VOICE_LINE_FADE_SECONDS)
