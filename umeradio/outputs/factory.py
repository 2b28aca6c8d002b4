from typing import Optional

from .base_sink import BaseSink
from .null_sink import NullSink


def create_output_sink(mode: str, voice_client=None, realtime: bool = True) -> BaseSink:
    """
    Create an output sink for the configured mode.

    Args:
        mode: "discord" | "null"
        voice_client: Connected discord.VoiceClient (required for "discord")
        realtime: Pace NullSink consumption at playback speed

    Returns:
        BaseSink instance
    """
    mode = mode.lower()

    if mode == "discord":
        if voice_client is None:
            raise ValueError("discord sink requires a connected voice client")
        # Imported lazily so headless mode never loads the voice stack
        from .discord_sink import DiscordVoiceSink
        return DiscordVoiceSink(voice_client)

    if mode == "null":
        return NullSink(realtime=realtime)

    raise ValueError(f"Unknown output sink mode: {mode!r}")
