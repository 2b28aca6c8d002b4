import functools
import logging
import random
from typing import Optional

from umeradio.app.commands import CommandHandler
from umeradio.app.config import StationConfig
from umeradio.broadcast_core.audio_pipeline import AudioPipeline
from umeradio.broadcast_core.playout_engine import PlayoutEngine
from umeradio.broadcast_core.state_machine import PlaybackStateMachine
from umeradio.music_logic.media_library import MediaLibrary
from umeradio.music_logic.metadata import read_track_metadata
from umeradio.music_logic.queue_builder import TrackQueueBuilder
from umeradio.music_logic.rotation import GenreRotation
from umeradio.music_logic.shuffler import Shuffler
from umeradio.outputs.base_sink import BaseSink
from umeradio.state.now_playing_state import MetadataReader, NowPlayingStateManager
from umeradio.state.playback_session import PlaybackSession

logger = logging.getLogger(__name__)


class Station:
    """
    Station orchestrator.

    Builds every component from a StationConfig. The output sink is attached
    separately (the Discord sink only exists once the voice channel is
    joined); start() refuses to run without one.
    """

    def __init__(
        self,
        config: StationConfig,
        pipeline: Optional[AudioPipeline] = None,
        metadata_reader: Optional[MetadataReader] = None,
    ):
        """
        Args:
            config: Runtime configuration
            pipeline: Audio pipeline override (tests inject a fake decoder here)
            metadata_reader: Metadata collaborator override for now-playing queries
        """
        self.config = config
        shuffler = Shuffler.seeded(config.seed)

        self.library = MediaLibrary(config.radio_path, config.genres, config.audio_extension)
        self.rotation = GenreRotation(self.library.genres, shuffler)
        self.queue_builder = TrackQueueBuilder(self.library, shuffler)
        self.now_playing = NowPlayingStateManager(
            metadata_reader or functools.partial(
                read_track_metadata, ffprobe_path=config.ffprobe_path, ffmpeg_path=config.ffmpeg_path
            ),
            rng=random.Random(config.seed),
        )
        self.state_machine = PlaybackStateMachine(self.rotation, self.queue_builder, self.now_playing)
        self.pipeline = pipeline or AudioPipeline(ffmpeg_path=config.ffmpeg_path, ffprobe_path=config.ffprobe_path)
        self.session = PlaybackSession(default_volume=config.default_volume)
        self.engine = PlayoutEngine(
            self.state_machine,
            self.pipeline,
            self.session,
            empty_rotation_backoff_seconds=config.empty_rotation_backoff_seconds,
        )
        self.commands = CommandHandler(
            self.now_playing,
            self.session,
            admin_role_name=config.admin_role_name,
            prefix=config.command_prefix,
        )
        self._stopped = False

    @property
    def running(self) -> bool:
        return self.engine.is_running

    def attach_sink(self, sink: BaseSink) -> None:
        self.session.attach_sink(sink)
        logger.info(f"[STATION] Output sink bound: {type(sink).__name__}")

    def start(self) -> None:
        """
        Start the rotation loop.

        Raises:
            RuntimeError: If no sink has been attached
        """
        if self.session.sink is None:
            raise RuntimeError("Cannot start station without an output sink")
        logger.info(
            f"[STATION] Starting rotation over {len(self.library.genres)} genre(s) "
            f"from {self.library.root}"
        )
        self._stopped = False
        self.engine.start()

    def stop(self) -> None:
        """Stop playout and close the sink. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        logger.info("[STATION] Stopping")
        self.engine.stop()
        if self.session.sink is not None:
            self.session.sink.close()
