"""
Audio pipeline adapter.

Turns a file path and a fade duration into a readable PCM stream: checks the
file, probes its duration to place the fade-out, then starts a decoder with
fade filters applied. The decoder is injected so tests can swap ffmpeg for a
fake that returns canned PCM.
"""

import functools
import logging
import os
from typing import Callable, Optional, Protocol

from umeradio.broadcast_core.ffmpeg_decoder import FFmpegDecoder
from umeradio.music_logic import metadata
from umeradio.music_logic.metadata import MetadataUnavailable

logger = logging.getLogger(__name__)


class PlaybackItemError(Exception):
    """An item could not be played; the scheduler skips it."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class FileMissing(PlaybackItemError):
    """The queued file no longer exists."""


class ProbeFailure(PlaybackItemError):
    """The file's duration could not be determined."""


class PipelineFailure(PlaybackItemError):
    """The decode/filter process could not be started."""


class PCMStream(Protocol):
    """Byte stream of s16le stereo 48 kHz PCM."""

    def read(self, size: int) -> bytes:
        ...

    def close(self) -> None:
        ...


DurationProbe = Callable[[str], float]
DecoderFactory = Callable[[str, float, float], PCMStream]


def fade_out_start(duration: float, fade_seconds: float) -> float:
    """Offset where the fade-out begins, never before the start of the file."""
    return max(0.0, duration - fade_seconds)


class AudioPipeline:
    """Probe + decode with fades, producing one PCM stream per item."""

    def __init__(
        self,
        probe_duration: Optional[DurationProbe] = None,
        decoder_factory: Optional[DecoderFactory] = None,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
    ):
        """
        Args:
            probe_duration: path -> seconds; raises MetadataUnavailable on failure
            decoder_factory: (path, fade_seconds, fade_out_start) -> PCMStream
            ffmpeg_path: ffmpeg binary for the default decoder factory
            ffprobe_path: ffprobe binary for the default duration probe
        """
        self._probe_duration = probe_duration or functools.partial(
            metadata.probe_duration, ffprobe_path=ffprobe_path
        )
        self._decoder_factory = decoder_factory or functools.partial(
            FFmpegDecoder, ffmpeg_path=ffmpeg_path
        )

    def play(self, path: str, fade_seconds: float) -> PCMStream:
        """
        Start decoding one file.

        Raises:
            FileMissing: If path is not an existing file (checked before any process starts)
            ProbeFailure: If the duration probe fails
            PipelineFailure: If the decoder cannot be started
        """
        if not os.path.isfile(path):
            raise FileMissing(path, f"Missing file: {path}")

        try:
            duration = self._probe_duration(path)
        except MetadataUnavailable as e:
            raise ProbeFailure(path, f"Could not probe duration of {path}: {e}") from e

        start = fade_out_start(duration, fade_seconds)
        logger.info(
            f"[PIPELINE] {os.path.basename(path)}: duration={duration:.2f}s, "
            f"fade={fade_seconds:g}s, fade_out_start={start:.2f}s"
        )

        try:
            return self._decoder_factory(path, fade_seconds, start)
        except OSError as e:
            raise PipelineFailure(path, f"Could not start decoder for {path}: {e}") from e
