"""
Track metadata via ffprobe.

Used by the audio pipeline (duration, for fade-out timing) and by the
now-playing command (title, artist, cover art).
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"

PROBE_TIMEOUT_SECONDS = 5.0
COVER_TIMEOUT_SECONDS = 5.0


class MetadataUnavailable(Exception):
    """Metadata could not be read for a file."""


@dataclass(frozen=True)
class TrackMetadata:
    title: str
    artist: str
    duration: Optional[float] = None
    cover: Optional[bytes] = None


def _run_ffprobe(args: list, file_path: str, ffprobe_path: str, timeout: float) -> str:
    cmd = [ffprobe_path, "-v", "error", *args, file_path]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise MetadataUnavailable(f"ffprobe timed out after {timeout}s: {file_path}") from None
    except OSError as e:
        raise MetadataUnavailable(f"ffprobe could not start ({ffprobe_path}): {e}") from e
    if result.returncode != 0:
        raise MetadataUnavailable(
            f"ffprobe exited with {result.returncode} for {file_path}: {result.stderr.strip()}"
        )
    return result.stdout


def probe_duration(file_path: str, ffprobe_path: str = "ffprobe", timeout: float = PROBE_TIMEOUT_SECONDS) -> float:
    """
    Get the duration of an audio file in seconds.

    Raises:
        MetadataUnavailable: If ffprobe fails or reports no usable duration
    """
    output = _run_ffprobe(
        ["-show_entries", "format=duration", "-of", "default=noprint_wrappers=1:nokey=1"],
        file_path,
        ffprobe_path,
        timeout,
    ).strip()
    try:
        duration = float(output)
    except ValueError:
        raise MetadataUnavailable(f"ffprobe returned no duration for {file_path}: {output!r}") from None
    if duration < 0:
        raise MetadataUnavailable(f"ffprobe returned negative duration for {file_path}: {duration}")
    return duration


def extract_cover(file_path: str, ffmpeg_path: str = "ffmpeg", timeout: float = COVER_TIMEOUT_SECONDS) -> Optional[bytes]:
    """
    Extract the first attached picture as raw image bytes.

    Cover art is optional, so every failure returns None.
    """
    cmd = [
        ffmpeg_path,
        "-v", "error",
        "-nostdin",
        "-i", file_path,
        "-an",
        "-map", "0:v:0",
        "-c:v", "copy",
        "-frames:v", "1",
        "-f", "image2pipe",
        "-",
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, timeout=timeout)
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"Cover extraction failed for {file_path}: {e}")
        return None
    if result.returncode != 0 or not result.stdout:
        return None
    return result.stdout


def read_track_metadata(
    file_path: str,
    ffprobe_path: str = "ffprobe",
    ffmpeg_path: str = "ffmpeg",
    include_cover: bool = True,
) -> TrackMetadata:
    """
    Read title, artist, duration and cover art in one ffprobe call plus an
    optional cover extraction.

    Missing title falls back to the file name, missing artist to
    "Unknown Artist".

    Raises:
        MetadataUnavailable: If the file is missing or ffprobe output is unusable
    """
    if not os.path.isfile(file_path):
        raise MetadataUnavailable(f"File not found: {file_path}")

    output = _run_ffprobe(
        [
            "-show_entries", "format=duration:format_tags=title,artist",
            "-of", "json",
        ],
        file_path,
        ffprobe_path,
        PROBE_TIMEOUT_SECONDS,
    )
    try:
        format_info = json.loads(output).get("format", {})
    except (json.JSONDecodeError, AttributeError) as e:
        raise MetadataUnavailable(f"Unreadable ffprobe output for {file_path}: {e}") from e

    # Tag keys are case-insensitive in practice (ID3 vs Vorbis comments)
    tags = {str(k).lower(): v for k, v in (format_info.get("tags") or {}).items()}

    duration = None
    if format_info.get("duration"):
        try:
            duration = float(format_info["duration"])
        except (TypeError, ValueError):
            pass

    return TrackMetadata(
        title=tags.get("title") or os.path.basename(file_path),
        artist=tags.get("artist") or UNKNOWN_ARTIST,
        duration=duration,
        cover=extract_cover(file_path, ffmpeg_path) if include_cover else None,
    )
