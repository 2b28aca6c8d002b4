"""
Playout Engine.

Drives the playback state machine on a single scheduler thread:

    state = machine.start()
    loop:
        play machine.item_for(state), wait until the sink reports idle
        state = machine.next(state)

Only this thread touches rotation, queue, cursor and the active resource
handle. Sink completion arrives on the sink's thread and only sets an
Event. Item failures (missing file, probe, decoder or sink errors) count as an
instantly finished item; nothing stops the rotation except stop(). A full
rotation of genre turns in which nothing reached the sink backs off before
the next attempt.
"""

import logging
import threading
import time
from typing import Optional

from umeradio.app.constants import EMPTY_ROTATION_BACKOFF_SECONDS
from umeradio.broadcast_core.audio_event import AudioEvent
from umeradio.broadcast_core.audio_pipeline import (
    AudioPipeline,
    FileMissing,
    PlaybackItemError,
)
from umeradio.broadcast_core.state_machine import (
    PlaybackPhase,
    PlaybackState,
    PlaybackStateMachine,
)
from umeradio.state.playback_session import NoActiveResource, PlaybackSession

logger = logging.getLogger(__name__)


class PlayoutEngine:
    """Runs the scheduler loop and bridges items to the pipeline and session."""

    def __init__(
        self,
        state_machine: PlaybackStateMachine,
        pipeline: AudioPipeline,
        session: PlaybackSession,
        empty_rotation_backoff_seconds: float = EMPTY_ROTATION_BACKOFF_SECONDS,
    ):
        """
        Args:
            state_machine: Transition logic for genre turns
            pipeline: Produces PCM streams for items
            session: Binds streams to the sink
            empty_rotation_backoff_seconds: Wait after a rotation in which no genre played anything
        """
        self.state_machine = state_machine
        self.pipeline = pipeline
        self.session = session
        self.empty_rotation_backoff_seconds = empty_rotation_backoff_seconds

        self._state: Optional[PlaybackState] = None
        self._current_item: Optional[AudioEvent] = None
        self._stop_event = threading.Event()
        self._item_finished = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dead_turns = 0
        self._turn_played = False

        self.items_started = 0
        self.items_failed = 0

    @property
    def state(self) -> Optional[PlaybackState]:
        return self._state

    @property
    def current_item(self) -> Optional[AudioEvent]:
        return self._current_item

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the scheduler thread. Calling start() twice is a no-op."""
        if self.is_running:
            logger.warning("[PLAYOUT] Engine already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._playout_loop, name="playout-engine", daemon=True)
        self._thread.start()
        logger.info("[PLAYOUT] Engine started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop, release the active resource and wait for the thread."""
        self._stop_event.set()
        self._item_finished.set()
        self.session.clear()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("[PLAYOUT] Engine thread did not exit within timeout")
        self._thread = None
        logger.info("[PLAYOUT] Engine stopped")

    def _playout_loop(self) -> None:
        logger.info("[PLAYOUT] Playout loop started")
        state = self.state_machine.start()
        while not self._stop_event.is_set():
            self._state = state
            try:
                item = self.state_machine.item_for(state)
                if item is not None:
                    self.play_item(item)
                state = self.step(state)
            except Exception as e:
                # The rotation must never stall; log and move on from this state
                logger.error(f"[PLAYOUT] Unexpected error in {state.phase.value} for {state.genre.name}: {e}", exc_info=True)
                state = self._recover(state)
        logger.info("[PLAYOUT] Playout loop exited")

    def step(self, state: PlaybackState) -> PlaybackState:
        """
        Advance the state machine once.

        A genre turn that ends (skipped, or exhausted) without any item
        reaching the sink is a dead turn; once a full rotation's worth of
        dead turns has passed in a row, wait before continuing.
        """
        following = self.state_machine.next(state)
        if following.phase is PlaybackPhase.CYCLE_START:
            self._end_turn()
        return following

    def _end_turn(self) -> None:
        if self._turn_played:
            self._dead_turns = 0
        else:
            self._dead_turns += 1
        self._turn_played = False

        if self._dead_turns >= len(self.state_machine.rotation.genres):
            logger.warning(
                f"[PLAYOUT] Nothing played for a full rotation, retrying in "
                f"{self.empty_rotation_backoff_seconds:g}s"
            )
            self._dead_turns = 0
            self._stop_event.wait(self.empty_rotation_backoff_seconds)

    def _recover(self, state: PlaybackState) -> PlaybackState:
        # Abandon the current genre turn and move the rotation on
        self._stop_event.wait(1.0)
        self._end_turn()
        return PlaybackState(phase=PlaybackPhase.CYCLE_START, genre=self.state_machine.rotation.advance())

    def play_item(self, item: AudioEvent) -> bool:
        """
        Play one item and block until it has finished or the engine stops.

        Returns:
            True if the item reached the sink, False if it was skipped
        """
        self._current_item = item
        self.items_started += 1
        started_at = time.monotonic()

        try:
            stream = self.pipeline.play(item.path, item.fade_seconds)
        except FileMissing as e:
            self.items_failed += 1
            logger.warning(f"[PLAYOUT] {e}")
            return False
        except PlaybackItemError as e:
            self.items_failed += 1
            logger.error(f"[PLAYOUT] Skipping {item.type} {item.path}: {e}")
            return False

        if self._stop_event.is_set():
            stream.close()
            return False

        finished = threading.Event()
        self._item_finished = finished
        logger.info(f"[PLAYOUT] Starting {item.type} ({item.genre}): {item.path}")
        try:
            self.session.bind(stream, label=f"{item.type} {item.path}")
        except Exception as e:
            # bind() has already released the stream
            self.items_failed += 1
            logger.error(f"[PLAYOUT] Sink rejected {item.type} {item.path}: {e}", exc_info=True)
            return False
        self._turn_played = True
        try:
            self.session.on_idle(finished.set)
        except NoActiveResource:
            # stop() cleared the session between bind and here
            return False
        while not finished.wait(0.5):
            if self._stop_event.is_set():
                self.session.clear()
                return False
        if self._stop_event.is_set():
            return False

        logger.info(f"[PLAYOUT] Finished {item.type} after {time.monotonic() - started_at:.1f}s: {item.path}")
        return True
