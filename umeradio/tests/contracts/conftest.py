"""
Shared pytest fixtures for Ume Radio contract tests.

Content trees are built under tmp_path; ffmpeg/ffprobe and Discord are
replaced by the fakes in test_doubles.
"""

import os
import random

import pytest

from umeradio.app.config import StationConfig
from umeradio.app.station import Station
from umeradio.broadcast_core.audio_pipeline import AudioPipeline
from umeradio.music_logic.media_library import MediaLibrary
from umeradio.music_logic.queue_builder import TrackQueueBuilder
from umeradio.music_logic.rotation import GenreRotation
from umeradio.music_logic.shuffler import Shuffler
from umeradio.state.now_playing_state import NowPlayingStateManager
from umeradio.tests.contracts.test_doubles import (
    FakeDecoderFactory,
    FakeDurationProbe,
    FakeMetadataReader,
    StubSink,
    build_radio_tree,
)

SEED = 1234

CONFIG_VARS = (
    "DISCORD_TOKEN",
    "GUILD_ID",
    "VOICE_CHANNEL_ID",
    "RADIO_PATH",
    "RADIO_GENRES",
    "RADIO_AUDIO_EXTENSION",
    "ADMIN_ROLE_NAME",
    "COMMAND_PREFIX",
    "DEFAULT_VOLUME",
    "OUTPUT_SINK_MODE",
    "RADIO_SEED",
    "FFMPEG_PATH",
    "FFPROBE_PATH",
    "EMPTY_ROTATION_BACKOFF_SECONDS",
    "LOG_LEVEL",
    "LOG_FILE",
    "UMERADIO_ENV_FILE",
)


@pytest.fixture
def rng():
    return random.Random(SEED)


@pytest.fixture
def shuffler():
    return Shuffler.seeded(SEED)


@pytest.fixture
def radio_root(tmp_path):
    """Four genres: jazz with voice lines, bossa without, city with one track, underground empty."""
    return build_radio_tree(
        tmp_path / "radio",
        tracks={"jazz": 3, "bossa": 20, "city": 1, "underground": 0},
        voice_lines={"jazz": 2},
    )


@pytest.fixture
def library(radio_root):
    return MediaLibrary(radio_root, ("bossa", "jazz", "underground", "city"))


@pytest.fixture
def rotation(library, shuffler):
    return GenreRotation(library.genres, shuffler)


@pytest.fixture
def queue_builder(library, shuffler):
    return TrackQueueBuilder(library, shuffler)


@pytest.fixture
def fake_metadata_reader():
    return FakeMetadataReader()


@pytest.fixture
def now_playing(fake_metadata_reader):
    return NowPlayingStateManager(fake_metadata_reader, rng=random.Random(SEED))


@pytest.fixture
def fake_decoder_factory():
    return FakeDecoderFactory()


@pytest.fixture
def fake_probe():
    return FakeDurationProbe(duration=30.0)


@pytest.fixture
def pipeline(fake_probe, fake_decoder_factory):
    return AudioPipeline(probe_duration=fake_probe, decoder_factory=fake_decoder_factory)


@pytest.fixture
def stub_sink():
    return StubSink()


@pytest.fixture
def auto_sink():
    return StubSink(auto_finish=True)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all station variables from the environment and restore it afterwards."""
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    saved = dict(os.environ)
    yield monkeypatch
    # load_dotenv writes straight into os.environ
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def station_config(radio_root):
    return StationConfig(
        radio_path=radio_root,
        genres=("bossa", "jazz", "underground", "city"),
        seed=SEED,
        empty_rotation_backoff_seconds=0.0,
    )


@pytest.fixture
def station(station_config, pipeline, fake_metadata_reader):
    station = Station(station_config, pipeline=pipeline, metadata_reader=fake_metadata_reader)
    yield station
    station.stop()
