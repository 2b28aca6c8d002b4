"""
Contract tests for RadioClient

No gateway connection: coroutines are driven with asyncio.run and the
discord objects around them are mocks.
"""

import asyncio
import threading
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import discord
import pytest

from umeradio.app.discord_client import RadioClient, SinkBindError, default_intents
from umeradio.tests.contracts.test_doubles import FakePCMStream


def make_message(content, roles=(), bot=False):
    message = Mock()
    message.content = content
    message.author = SimpleNamespace(bot=bot, roles=[SimpleNamespace(name=r) for r in roles])
    message.reply = AsyncMock()
    message.channel.send = AsyncMock()
    return message


@pytest.fixture
def client(station):
    return RadioClient(station)


class TestIntents:
    """Tests for gateway intents."""

    def test_message_content_and_voice(self):
        intents = default_intents()
        assert intents.message_content
        assert intents.voice_states
        assert intents.guilds


class TestMessages:
    """Tests for on_message."""

    def test_ignores_bots(self, client):
        message = make_message("*volume 0.3", roles=["Directors"], bot=True)
        asyncio.run(client.on_message(message))
        message.reply.assert_not_awaited()
        message.channel.send.assert_not_awaited()

    def test_ignores_chatter(self, client):
        message = make_message("good morning")
        asyncio.run(client.on_message(message))
        message.channel.send.assert_not_awaited()

    def test_volume_reply(self, client, station, stub_sink):
        station.attach_sink(stub_sink)
        station.session.bind(FakePCMStream())
        message = make_message("*volume 0.3", roles=["Directors"])

        asyncio.run(client.on_message(message))

        message.reply.assert_awaited_once_with("🔊 Volume updated to **0.3**!")
        assert station.session.volume == 0.3

    def test_song_posts_to_channel(self, client, station):
        station.now_playing.on_track_started("/radio/music/city/night.mp3")
        message = make_message("*song")

        asyncio.run(client.on_message(message))

        content = message.channel.send.await_args.args[0]
        assert "**night**" in content


class TestVoiceBinding:
    """Tests for joining the configured channel."""

    def test_unknown_guild(self, client):
        not_found = discord.NotFound(Mock(status=404, reason="Not Found"), "Unknown Guild")
        with patch.object(client, "get_guild", return_value=None), \
                patch.object(client, "fetch_guild", AsyncMock(side_effect=not_found)):
            with pytest.raises(SinkBindError):
                asyncio.run(client.bind_voice_channel())

    def test_text_channel_rejected(self, client):
        guild = Mock(id=1)
        guild.get_channel.return_value = Mock(spec=discord.TextChannel)
        with patch.object(client, "get_guild", return_value=guild):
            with pytest.raises(SinkBindError):
                asyncio.run(client.bind_voice_channel())

    def test_bind_failure_closes_client(self, client, station):
        with patch.object(client, "bind_voice_channel", AsyncMock(side_effect=SinkBindError("no channel"))), \
                patch.object(discord.Client, "close", AsyncMock()):
            asyncio.run(client.on_ready())

        assert isinstance(client.startup_error, SinkBindError)
        assert station.session.sink is None
        assert not station.running


class TestShutdown:
    """Tests for close()."""

    def test_station_stopped_off_the_event_loop(self, client, station):
        stopped_on = []
        with patch.object(station, "stop", side_effect=lambda: stopped_on.append(threading.current_thread())), \
                patch.object(discord.Client, "close", AsyncMock()):
            asyncio.run(client.close())

        assert len(stopped_on) == 1
        assert stopped_on[0] is not threading.main_thread()
