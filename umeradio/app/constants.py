"""Configuration constants for the radio scheduler."""

from typing import Final, Tuple

# Genre set and content layout
DEFAULT_GENRES: Final[Tuple[str, ...]] = ("bossa", "jazz", "underground", "city")
MUSIC_DIRNAME: Final[str] = "music"
VOICE_DIRNAME: Final[str] = "voice"
DEFAULT_AUDIO_EXTENSION: Final[str] = ".mp3"

# Queue sizing (inclusive bounds)
QUEUE_MIN_LENGTH: Final[int] = 10
QUEUE_MAX_LENGTH: Final[int] = 18

# Fade durations in seconds
VOICE_LINE_FADE_SECONDS: Final[float] = 1.0  # Voice lines are short
TRACK_FADE_SECONDS: Final[float] = 6.0

# Linear gain applied to every new item (0.0 - 1.0)
DEFAULT_VOLUME: Final[float] = 0.4

# PCM output format
SAMPLE_RATE: Final[int] = 48000
CHANNELS: Final[int] = 2
SAMPLE_WIDTH: Final[int] = 2  # s16le
FRAME_DURATION_MS: Final[int] = 20
FRAME_BYTES: Final[int] = SAMPLE_RATE * FRAME_DURATION_MS // 1000 * CHANNELS * SAMPLE_WIDTH  # 3840

# Chat commands
DEFAULT_COMMAND_PREFIX: Final[str] = "*"
DEFAULT_ADMIN_ROLE_NAME: Final[str] = "Directors"

# Wait after a full rotation in which every genre was skipped
EMPTY_ROTATION_BACKOFF_SECONDS: Final[float] = 5.0
