"""
Discord voice channel sink.

discord.py's voice client pulls one 20 ms PCM frame at a time from an
AudioSource on its own player thread and runs the `after` callback on that
thread once the source is exhausted.
"""

import logging

import discord

from umeradio.app.constants import FRAME_BYTES
from umeradio.outputs.base_sink import AfterCallback, BaseSink

logger = logging.getLogger(__name__)


class ResourceAudioSource(discord.AudioSource):
    """Adapts a PlaybackResource to discord.py's raw PCM AudioSource."""

    def __init__(self, resource):
        self._resource = resource

    def read(self) -> bytes:
        data = self._resource.read(FRAME_BYTES)
        if not data:
            return b""
        if len(data) < FRAME_BYTES:
            # The encoder needs whole frames; pad the tail with silence
            data += b"\x00" * (FRAME_BYTES - len(data))
        return data

    def is_opus(self) -> bool:
        return False

    def cleanup(self) -> None:
        self._resource.cleanup()


class DiscordVoiceSink(BaseSink):
    """Plays resources into a connected discord.VoiceClient."""

    def __init__(self, voice_client: discord.VoiceClient):
        self._voice_client = voice_client

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._voice_client

    def play(self, resource, after: AfterCallback) -> None:
        if self._voice_client.is_playing() or self._voice_client.is_paused():
            # The previous source's after() still fires; its resource is discarded
            self._voice_client.stop()
        try:
            self._voice_client.play(ResourceAudioSource(resource), after=after)
        except discord.ClientException as e:
            logger.error(f"[SINK] Voice client rejected playback: {e}")
            resource.cleanup()
            after(e)

    def close(self) -> None:
        if self._voice_client.is_playing() or self._voice_client.is_paused():
            self._voice_client.stop()
