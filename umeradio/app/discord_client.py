"""
Discord client.

Joins the configured voice channel once the gateway is ready, binds it as the
station's output sink and starts the playout engine; forwards chat commands
to the CommandHandler.
"""

import asyncio
import io
import logging
from typing import TYPE_CHECKING, Optional

import discord

from umeradio.outputs.factory import create_output_sink

if TYPE_CHECKING:
    from umeradio.app.station import Station

logger = logging.getLogger(__name__)


class SinkBindError(RuntimeError):
    """The configured guild/voice channel could not be joined."""


def default_intents() -> discord.Intents:
    intents = discord.Intents.none()
    intents.guilds = True
    intents.voice_states = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


class RadioClient(discord.Client):
    """discord.py client that owns the voice connection for one Station."""

    def __init__(self, station: "Station", intents: Optional[discord.Intents] = None):
        super().__init__(intents=intents or default_intents())
        self.station = station
        self.startup_error: Optional[Exception] = None
        self._voice_client: Optional[discord.VoiceClient] = None

    async def on_ready(self) -> None:
        logger.info(f"[STATION] Logged in as {self.user}")
        if self._voice_client is not None:
            # on_ready fires again after gateway reconnects
            return

        try:
            self._voice_client = await self.bind_voice_channel()
        except SinkBindError as e:
            logger.error(f"[STATION] {e}")
            self.startup_error = e
            await self.close()
            return

        self.station.attach_sink(create_output_sink("discord", voice_client=self._voice_client))
        self.station.start()

    async def bind_voice_channel(self) -> discord.VoiceClient:
        """
        Resolve the configured guild and voice channel and connect.

        Raises:
            SinkBindError: If the guild or channel is missing, not a voice
                channel, or the connection fails
        """
        config = self.station.config
        guild = self.get_guild(config.guild_id)
        if guild is None:
            try:
                guild = await self.fetch_guild(config.guild_id)
            except discord.HTTPException as e:
                raise SinkBindError(f"Guild not found: {config.guild_id} ({e})") from e

        channel = guild.get_channel(config.voice_channel_id)
        if channel is None:
            try:
                channel = await self.fetch_channel(config.voice_channel_id)
            except discord.HTTPException as e:
                raise SinkBindError(f"Voice channel not found: {config.voice_channel_id} ({e})") from e

        if not isinstance(channel, discord.VoiceChannel) or channel.guild.id != guild.id:
            raise SinkBindError(f"Channel {config.voice_channel_id} is not a voice channel in guild {guild.id}")

        try:
            voice_client = await channel.connect()
        except (asyncio.TimeoutError, discord.ClientException, discord.opus.OpusNotLoaded) as e:
            raise SinkBindError(f"Could not connect to voice channel {channel.name}: {e}") from e

        logger.info(f"[STATION] Connected to voice channel {channel.name} in {guild.name}")
        return voice_client

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        handler = self.station.commands
        if not handler.is_command(message.content):
            return

        role_names = [role.name for role in getattr(message.author, "roles", [])]
        # Metadata probing runs subprocesses; keep it off the event loop
        reply = await asyncio.to_thread(handler.handle, message.content, role_names)
        if reply is None:
            return

        if reply.as_reply:
            await message.reply(reply.content)
        elif reply.attachment:
            attachment = discord.File(io.BytesIO(reply.attachment), filename=reply.attachment_name)
            await message.channel.send(reply.content, file=attachment)
        else:
            await message.channel.send(reply.content)

    async def close(self) -> None:
        await asyncio.to_thread(self.station.stop)
        if self._voice_client is not None and self._voice_client.is_connected():
            await self._voice_client.disconnect(force=True)
        await super().close()
