"""
Chat commands.

    *song            now-playing announcement (with cover art when present)
    *volume <level>  set the live volume, admin role only, level in [0.0, 1.0]

CommandHandler is transport-agnostic: it takes message text and the
author's role names and returns a CommandReply for the client to send.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from umeradio.app.constants import DEFAULT_ADMIN_ROLE_NAME, DEFAULT_COMMAND_PREFIX
from umeradio.music_logic.metadata import MetadataUnavailable
from umeradio.state.now_playing_state import NothingPlaying, NowPlayingStateManager
from umeradio.state.playback_session import NoActiveResource, PlaybackSession

logger = logging.getLogger(__name__)

METADATA_APOLOGY = "Couldn't read song metadata. Ume is sad"
NO_TRACK_PLAYING = "⚠️ No track is currently playing."


class InvalidVolume(ValueError):
    """Volume argument missing, non-numeric, or outside [0.0, 1.0]."""


def parse_volume(raw: Optional[str]) -> float:
    """
    Parse a volume argument.

    Raises:
        InvalidVolume: If raw is not a finite decimal in [0.0, 1.0]
    """
    if raw is None or not raw.strip():
        raise InvalidVolume("No volume given")
    try:
        level = float(raw)
    except ValueError:
        raise InvalidVolume(f"Not a number: {raw!r}") from None
    if math.isnan(level) or not 0.0 <= level <= 1.0:
        raise InvalidVolume(f"Out of range: {raw!r}")
    return level


@dataclass(frozen=True)
class CommandReply:
    """
    Attributes:
        content: Message text
        attachment: Optional file bytes (cover art)
        attachment_name: File name for the attachment
        as_reply: Reply to the author instead of posting to the channel
    """
    content: str
    attachment: Optional[bytes] = None
    attachment_name: str = "cover.jpg"
    as_reply: bool = False


class CommandHandler:
    """Parses and executes chat commands against the now-playing state and the session."""

    def __init__(
        self,
        now_playing: NowPlayingStateManager,
        session: PlaybackSession,
        admin_role_name: str = DEFAULT_ADMIN_ROLE_NAME,
        prefix: str = DEFAULT_COMMAND_PREFIX,
    ):
        self.now_playing = now_playing
        self.session = session
        self.admin_role_name = admin_role_name
        self.prefix = prefix

    @property
    def song_command(self) -> str:
        return f"{self.prefix}song"

    @property
    def volume_command(self) -> str:
        return f"{self.prefix}volume"

    def is_command(self, content: str) -> bool:
        parts = content.split()
        return bool(parts) and parts[0] in (self.song_command, self.volume_command)

    def handle(self, content: str, role_names: Iterable[str] = ()) -> Optional[CommandReply]:
        """
        Dispatch one message.

        Returns:
            The reply to send, or None if the message needs no answer
        """
        parts = content.split()
        if not parts:
            return None
        if content.strip() == self.song_command:
            return self.handle_song()
        if parts[0] == self.volume_command:
            return self.handle_volume(parts[1] if len(parts) > 1 else None, role_names)
        return None

    def handle_song(self) -> Optional[CommandReply]:
        try:
            announcement = self.now_playing.describe()
        except NothingPlaying:
            return None
        except MetadataUnavailable as e:
            logger.warning(f"[COMMANDS] Metadata unavailable: {e}")
            return CommandReply(content=METADATA_APOLOGY)

        logger.info(f"[COMMANDS] Now playing: {announcement.title} by {announcement.artist}")
        return CommandReply(content=announcement.message, attachment=announcement.cover)

    def handle_volume(self, raw_level: Optional[str], role_names: Iterable[str]) -> CommandReply:
        if self.admin_role_name not in set(role_names):
            return CommandReply(
                content=f"⛔ Only users with the {self.admin_role_name} role can adjust Ume's volume!",
                as_reply=True,
            )

        try:
            level = parse_volume(raw_level)
        except InvalidVolume as e:
            logger.debug(f"[COMMANDS] Rejected volume: {e}")
            return CommandReply(
                content=f"❗ Please provide a volume between `0.0` and `1.0`. Example: `{self.volume_command} 0.3`",
                as_reply=True,
            )

        try:
            self.session.set_volume(level)
        except NoActiveResource:
            return CommandReply(content=NO_TRACK_PLAYING, as_reply=True)

        return CommandReply(content=f"🔊 Volume updated to **{level:g}**!", as_reply=True)
