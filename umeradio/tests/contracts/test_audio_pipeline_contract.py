"""
Contract tests for AudioPipeline

- Missing files fail before any process starts
- Fade-out placed at max(0, duration - fade)
- Probe and decoder failures surface as PlaybackItemError subclasses
"""

from unittest.mock import Mock

import pytest

from umeradio.broadcast_core.audio_pipeline import (
    AudioPipeline,
    FileMissing,
    PipelineFailure,
    PlaybackItemError,
    ProbeFailure,
    fade_out_start,
)
from umeradio.music_logic.metadata import MetadataUnavailable


@pytest.fixture
def track(tmp_path):
    path = tmp_path / "track.mp3"
    path.write_bytes(b"")
    return str(path)


class TestFadePlacement:
    """Tests for fade-out offset."""

    @pytest.mark.parametrize("duration,fade,expected", [
        (200.0, 6.0, 194.0),
        (6.0, 6.0, 0.0),
        (3.0, 6.0, 0.0),
        (10.0, 1.0, 9.0),
    ])
    def test_fade_out_start(self, duration, fade, expected):
        assert fade_out_start(duration, fade) == expected

    def test_decoder_gets_fade_parameters(self, track):
        factory = Mock()
        pipeline = AudioPipeline(probe_duration=lambda path: 200.0, decoder_factory=factory)

        stream = pipeline.play(track, 6.0)

        factory.assert_called_once_with(track, 6.0, 194.0)
        assert stream is factory.return_value

    def test_short_clip_fades_from_start(self, track):
        factory = Mock()
        pipeline = AudioPipeline(probe_duration=lambda path: 3.0, decoder_factory=factory)
        pipeline.play(track, 6.0)
        factory.assert_called_once_with(track, 6.0, 0.0)


class TestFailures:
    """Tests for per-item failures."""

    def test_missing_file_checked_first(self, tmp_path):
        probe = Mock()
        factory = Mock()
        pipeline = AudioPipeline(probe_duration=probe, decoder_factory=factory)
        missing = str(tmp_path / "gone.mp3")

        with pytest.raises(FileMissing) as excinfo:
            pipeline.play(missing, 6.0)

        assert excinfo.value.path == missing
        assert isinstance(excinfo.value, PlaybackItemError)
        probe.assert_not_called()
        factory.assert_not_called()

    def test_probe_failure(self, track):
        factory = Mock()
        pipeline = AudioPipeline(
            probe_duration=Mock(side_effect=MetadataUnavailable("bad header")),
            decoder_factory=factory,
        )
        with pytest.raises(ProbeFailure):
            pipeline.play(track, 6.0)
        factory.assert_not_called()

    def test_decoder_start_failure(self, track):
        pipeline = AudioPipeline(
            probe_duration=lambda path: 30.0,
            decoder_factory=Mock(side_effect=FileNotFoundError("ffmpeg")),
        )
        with pytest.raises(PipelineFailure):
            pipeline.play(track, 1.0)
