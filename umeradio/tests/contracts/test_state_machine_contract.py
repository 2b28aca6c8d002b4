"""
Contract tests for PlaybackStateMachine

- One genre turn: voice line (if any), every queued track, then advance
- Unavailable genres are skipped by advancing the rotation
- The current track reference moves before each track plays
"""

import pytest

from umeradio.app.constants import TRACK_FADE_SECONDS, VOICE_LINE_FADE_SECONDS
from umeradio.broadcast_core.state_machine import PlaybackPhase, PlaybackState, PlaybackStateMachine
from umeradio.music_logic.media_library import MediaLibrary
from umeradio.music_logic.queue_builder import TrackQueueBuilder
from umeradio.music_logic.rotation import GenreRotation
from umeradio.tests.contracts.test_doubles import build_radio_tree


@pytest.fixture
def jazz_machine(tmp_path, shuffler, now_playing):
    """Only jazz: three tracks, one voice line, ten-track queues."""
    root = build_radio_tree(tmp_path / "radio", tracks={"jazz": 3}, voice_lines={"jazz": 1})
    library = MediaLibrary(root, ("jazz",))
    rotation = GenreRotation(library.genres, shuffler)
    builder = TrackQueueBuilder(library, shuffler, min_length=10, max_length=10)
    return PlaybackStateMachine(rotation, builder, now_playing)


@pytest.fixture
def machine(rotation, queue_builder, now_playing):
    return PlaybackStateMachine(rotation, queue_builder, now_playing)


class TestGenreTurn:
    """Tests for a complete genre turn."""

    def test_start_is_cycle_start_for_current_genre(self, machine, rotation):
        state = machine.start()
        assert state.phase is PlaybackPhase.CYCLE_START
        assert state.genre == rotation.current()
        assert machine.item_for(state) is None

    def test_jazz_turn_end_to_end(self, jazz_machine, now_playing):
        state = jazz_machine.next(jazz_machine.start())

        assert state.phase is PlaybackPhase.VOICE_LINE
        voice_item = jazz_machine.item_for(state)
        assert voice_item.type == "voice_line"
        assert voice_item.fade_seconds == VOICE_LINE_FADE_SECONDS
        assert voice_item.path == state.cycle.voice_line
        # Voice lines never become the current track
        assert now_playing.current_track_path is None

        queue = state.cycle.queue
        assert len(queue) == 10
        played = []
        for cursor in range(10):
            state = jazz_machine.next(state)
            assert state.phase is PlaybackPhase.TRACK
            assert state.cursor == cursor
            assert state.voice_line_played
            item = jazz_machine.item_for(state)
            assert item.fade_seconds == TRACK_FADE_SECONDS
            assert item.position == cursor
            assert now_playing.current_track_path == item.path
            played.append(item.path)

        assert played == list(queue)
        assert all(played[i] == played[i % 3] for i in range(10))

        state = jazz_machine.next(state)
        assert state.phase is PlaybackPhase.GENRE_EXHAUSTED
        assert jazz_machine.item_for(state) is None

        state = jazz_machine.next(state)
        assert state.phase is PlaybackPhase.CYCLE_START
        assert state.genre.name == "jazz"
        assert jazz_machine.rotation.reshuffle_count == 1

    def test_no_voice_line_goes_straight_to_tracks(self, machine, library, now_playing):
        state = machine.next(PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=library.get_genre("bossa")))
        assert state.phase is PlaybackPhase.TRACK
        assert state.cursor == 0
        assert not state.voice_line_played
        assert now_playing.current_track_path == state.cycle.queue[0]

    def test_voice_line_plays_once_per_turn(self, jazz_machine):
        state = jazz_machine.next(jazz_machine.start())
        phases = [state.phase]
        while state.phase is not PlaybackPhase.GENRE_EXHAUSTED:
            state = jazz_machine.next(state)
            phases.append(state.phase)
        assert phases.count(PlaybackPhase.VOICE_LINE) == 1
        assert phases[0] is PlaybackPhase.VOICE_LINE


class TestUnavailableGenres:
    """Tests for skipping genres with nothing to play."""

    def test_empty_genre_skipped(self, machine, library, rotation):
        before = rotation.index
        state = machine.next(PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=library.get_genre("underground")))
        assert state.phase is PlaybackPhase.CYCLE_START
        assert state.skipped
        assert rotation.index == (before + 1) % len(rotation.genres)
        assert state.genre == rotation.current()

    def test_missing_genre_skipped(self, tmp_path, shuffler, now_playing):
        root = build_radio_tree(tmp_path / "radio", tracks={"jazz": 2})
        library = MediaLibrary(root, ("jazz", "ghost"))
        rotation = GenreRotation(library.genres, shuffler)
        machine = PlaybackStateMachine(rotation, TrackQueueBuilder(library, shuffler), now_playing)

        state = machine.next(PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=library.get_genre("ghost")))
        assert state.phase is PlaybackPhase.CYCLE_START
        assert state.skipped
        assert now_playing.current_track_path is None

    def test_long_run_reaches_every_playable_genre(self, machine):
        state = machine.start()
        genres_with_tracks = set()
        for _ in range(500):
            state = machine.next(state)
            if state.phase is PlaybackPhase.TRACK:
                genres_with_tracks.add(state.genre.name)
        assert genres_with_tracks == {"bossa", "jazz", "city"}
