"""
Playback state machine.

One genre turn: optional voice line, then each queued track, then the
rotation advances. next() is a plain transition function; the playout
engine calls it in a loop after each item finishes, so a long-running
station never grows the call stack.

    CYCLE_START --(voice line picked)--> VOICE_LINE --> TRACK(0)
    CYCLE_START --(no voice line)------> TRACK(0)
    CYCLE_START --(genre unavailable)--> advance --> CYCLE_START(next genre)
    TRACK(i) --> TRACK(i+1) ... TRACK(n-1) --> GENRE_EXHAUSTED
    GENRE_EXHAUSTED --> advance --> CYCLE_START(next genre)
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from umeradio.broadcast_core.audio_event import AudioEvent
from umeradio.music_logic.media_library import Genre, GenreUnavailable
from umeradio.music_logic.queue_builder import GenreCycle, TrackQueueBuilder
from umeradio.music_logic.rotation import GenreRotation
from umeradio.state.now_playing_state import NowPlayingStateManager

logger = logging.getLogger(__name__)


class PlaybackPhase(enum.Enum):
    CYCLE_START = "cycle_start"
    VOICE_LINE = "voice_line"
    TRACK = "track"
    GENRE_EXHAUSTED = "genre_exhausted"


@dataclass(frozen=True)
class PlaybackState:
    """
    Immutable snapshot of the scheduler position.

    Attributes:
        phase: Current phase
        genre: Genre whose turn this is
        cycle: Built queue and voice line (None at CYCLE_START)
        cursor: Position in cycle.queue (meaningful in TRACK)
        voice_line_played: Whether this cycle's voice-line phase has run
        skipped: True when the previous genre was skipped as unavailable
    """
    phase: PlaybackPhase
    genre: Genre
    cycle: Optional[GenreCycle] = None
    cursor: int = 0
    voice_line_played: bool = False
    skipped: bool = False


class PlaybackStateMachine:
    """Transition logic over the rotation, queue builder and now-playing state."""

    def __init__(
        self,
        rotation: GenreRotation,
        queue_builder: TrackQueueBuilder,
        now_playing: NowPlayingStateManager,
    ):
        self.rotation = rotation
        self.queue_builder = queue_builder
        self.now_playing = now_playing

    def start(self) -> PlaybackState:
        return PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=self.rotation.current())

    def next(self, state: PlaybackState) -> PlaybackState:
        """Compute the state that follows `state` once its item (if any) has finished."""
        if state.phase is PlaybackPhase.CYCLE_START:
            return self._begin_cycle(state.genre)

        if state.phase is PlaybackPhase.VOICE_LINE:
            return self._enter_track(state.cycle, 0, voice_line_played=True)

        if state.phase is PlaybackPhase.TRACK:
            following = state.cursor + 1
            if following < len(state.cycle.queue):
                return self._enter_track(state.cycle, following, state.voice_line_played)
            logger.info(f"[PLAYOUT] Genre {state.genre.name} exhausted after {len(state.cycle.queue)} track(s)")
            return PlaybackState(
                phase=PlaybackPhase.GENRE_EXHAUSTED,
                genre=state.genre,
                cycle=state.cycle,
                cursor=state.cursor,
                voice_line_played=state.voice_line_played,
            )

        if state.phase is PlaybackPhase.GENRE_EXHAUSTED:
            return PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=self.rotation.advance())

        raise ValueError(f"Unknown playback phase: {state.phase!r}")

    def _begin_cycle(self, genre: Genre) -> PlaybackState:
        try:
            cycle = self.queue_builder.build(genre)
        except GenreUnavailable as e:
            logger.warning(f"[PLAYOUT] {e}. Skipping genre...")
            return PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=self.rotation.advance(), skipped=True)
        except OSError as e:
            logger.warning(f"[PLAYOUT] Could not list genre {genre.name}: {e}. Skipping genre...")
            return PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=self.rotation.advance(), skipped=True)

        if cycle.voice_line is not None:
            return PlaybackState(phase=PlaybackPhase.VOICE_LINE, genre=genre, cycle=cycle)
        return self._enter_track(cycle, 0, voice_line_played=False)

    def _enter_track(self, cycle: GenreCycle, cursor: int, voice_line_played: bool) -> PlaybackState:
        # Current track reference moves before the track's playback begins
        self.now_playing.on_track_started(cycle.queue[cursor])
        return PlaybackState(
            phase=PlaybackPhase.TRACK,
            genre=cycle.genre,
            cycle=cycle,
            cursor=cursor,
            voice_line_played=voice_line_played,
        )

    @staticmethod
    def item_for(state: PlaybackState) -> Optional[AudioEvent]:
        """The item to play in `state`, or None for phases that play nothing."""
        if state.phase is PlaybackPhase.VOICE_LINE:
            return AudioEvent.voice_line(state.cycle.voice_line, state.genre.name)
        if state.phase is PlaybackPhase.TRACK:
            return AudioEvent.track(state.cycle.queue[state.cursor], state.genre.name, state.cursor)
        return None
