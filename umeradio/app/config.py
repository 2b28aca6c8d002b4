"""
Station configuration.

Values come from the process environment, optionally seeded from a .env
file (python-dotenv). The .env file is looked up at UMERADIO_ENV_FILE, then
at the project root. Variables already present in the environment win.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from umeradio.app.constants import (
    DEFAULT_ADMIN_ROLE_NAME,
    DEFAULT_AUDIO_EXTENSION,
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_GENRES,
    DEFAULT_VOLUME,
    EMPTY_ROTATION_BACKOFF_SECONDS,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

SINK_MODES = ("discord", "null")


def load_env_file(env_path: Optional[str] = None) -> Optional[Path]:
    """
    Load a .env file into os.environ without overriding existing values.

    Returns:
        Path of the loaded file, or None if no file was found
    """
    candidates = []
    if env_path:
        candidates.append(Path(env_path))
    elif os.getenv("UMERADIO_ENV_FILE"):
        candidates.append(Path(os.environ["UMERADIO_ENV_FILE"]))
    candidates.append(PROJECT_ROOT / ".env")

    for candidate in candidates:
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            logger.debug(f"Loaded environment variables from {candidate}")
            return candidate
    return None


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _get_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _parse_genres(raw: str) -> Tuple[str, ...]:
    genres = tuple(g.strip() for g in raw.split(",") if g.strip())
    if not genres:
        raise ValueError("RADIO_GENRES must name at least one genre")
    if len(set(genres)) != len(genres):
        raise ValueError(f"RADIO_GENRES contains duplicates: {raw!r}")
    return genres


@dataclass(frozen=True)
class StationConfig:
    """Immutable runtime configuration for one station process."""

    radio_path: Path
    genres: Tuple[str, ...] = DEFAULT_GENRES
    audio_extension: str = DEFAULT_AUDIO_EXTENSION
    discord_token: Optional[str] = None
    guild_id: Optional[int] = None
    voice_channel_id: Optional[int] = None
    admin_role_name: str = DEFAULT_ADMIN_ROLE_NAME
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    default_volume: float = DEFAULT_VOLUME
    sink_mode: str = "discord"
    seed: Optional[int] = None
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    empty_rotation_backoff_seconds: float = EMPTY_ROTATION_BACKOFF_SECONDS
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "StationConfig":
        """
        Build a config from the environment (after loading .env).

        Raises:
            ValueError: If a variable is present but malformed
        """
        load_env_file(env_path)

        radio_path = Path(os.getenv("RADIO_PATH") or PROJECT_ROOT / "radio").expanduser()

        extension = os.getenv("RADIO_AUDIO_EXTENSION", DEFAULT_AUDIO_EXTENSION).strip()
        if not extension.startswith("."):
            extension = "." + extension

        default_volume = _get_float("DEFAULT_VOLUME", DEFAULT_VOLUME)
        if not 0.0 <= default_volume <= 1.0:
            raise ValueError(f"DEFAULT_VOLUME must be between 0.0 and 1.0, got {default_volume}")

        sink_mode = os.getenv("OUTPUT_SINK_MODE", "discord").strip().lower()
        if sink_mode not in SINK_MODES:
            raise ValueError(f"OUTPUT_SINK_MODE must be one of {SINK_MODES}, got {sink_mode!r}")

        log_file = os.getenv("LOG_FILE", "").strip()

        return cls(
            radio_path=radio_path,
            genres=_parse_genres(os.getenv("RADIO_GENRES", ",".join(DEFAULT_GENRES))),
            audio_extension=extension.lower(),
            discord_token=os.getenv("DISCORD_TOKEN", "").strip() or None,
            guild_id=_get_int("GUILD_ID"),
            voice_channel_id=_get_int("VOICE_CHANNEL_ID"),
            admin_role_name=os.getenv("ADMIN_ROLE_NAME", DEFAULT_ADMIN_ROLE_NAME).strip(),
            command_prefix=os.getenv("COMMAND_PREFIX", DEFAULT_COMMAND_PREFIX).strip() or DEFAULT_COMMAND_PREFIX,
            default_volume=default_volume,
            sink_mode=sink_mode,
            seed=_get_int("RADIO_SEED"),
            ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg").strip() or "ffmpeg",
            ffprobe_path=os.getenv("FFPROBE_PATH", "ffprobe").strip() or "ffprobe",
            empty_rotation_backoff_seconds=_get_float(
                "EMPTY_ROTATION_BACKOFF_SECONDS", EMPTY_ROTATION_BACKOFF_SECONDS
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            log_file=Path(log_file).expanduser() if log_file else None,
        )

    def validate_for_discord(self) -> None:
        """
        Check the settings needed to bind the Discord voice sink.

        Raises:
            ValueError: If the token, guild or channel id is missing
        """
        missing = [
            name
            for name, value in (
                ("DISCORD_TOKEN", self.discord_token),
                ("GUILD_ID", self.guild_id),
                ("VOICE_CHANNEL_ID", self.voice_channel_id),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"Missing required setting(s) for discord mode: {', '.join(missing)}")
