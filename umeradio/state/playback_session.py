"""
Playback session.

Holds the single active playback resource: the in-flight PCM stream bound to
the sink plus its live volume. A new item replaces the resource wholesale;
volume commands only ever set the gain on whatever resource is current.
"""

import logging
import threading
from typing import Callable, List, Optional

from umeradio.app.constants import DEFAULT_VOLUME
from umeradio.broadcast_core.audio_pipeline import PCMStream
from umeradio.mixer.mixer import Mixer
from umeradio.outputs.base_sink import BaseSink

logger = logging.getLogger(__name__)


class NoActiveResource(Exception):
    """A volume change was requested while nothing is playing."""


class PlaybackResource:
    """
    A PCM stream with a live gain stage.

    The sink pulls PCM through read(); volume can be changed from any thread
    and takes effect on the next chunk. Idle callbacks fire exactly once,
    when the sink reports the resource consumed.
    """

    def __init__(self, stream: PCMStream, volume: float = DEFAULT_VOLUME, mixer: Optional[Mixer] = None, label: str = ""):
        self._stream = stream
        self._volume = float(volume)
        self._mixer = mixer or Mixer()
        self.label = label
        self._lock = threading.Lock()
        self._finished = False
        self._idle_callbacks: List[Callable[[], None]] = []
        self.bytes_read = 0

    @property
    def volume(self) -> float:
        return self._volume

    def set_volume(self, level: float) -> None:
        # Single float assignment; readers on the sink thread see old or new value
        self._volume = float(level)

    @property
    def finished(self) -> bool:
        return self._finished

    def read(self, size: int) -> bytes:
        """Read up to size bytes with the current gain applied; b"" at end of stream."""
        if self._finished:
            return b""
        pcm = self._stream.read(size)
        self.bytes_read += len(pcm)
        return self._mixer.mix_bytes(pcm, self._volume)

    def cleanup(self) -> None:
        """Release the underlying stream (stops the decoder if it is still running)."""
        self._stream.close()

    def add_idle_callback(self, callback: Callable[[], None]) -> None:
        """Register a one-shot callback; runs immediately if already finished."""
        with self._lock:
            if not self._finished:
                self._idle_callbacks.append(callback)
                return
        callback()

    def mark_finished(self, error: Optional[Exception] = None) -> None:
        """Called by the sink once the resource is fully consumed."""
        with self._lock:
            if self._finished:
                return
            self._finished = True
            callbacks, self._idle_callbacks = self._idle_callbacks, []

        if error is not None:
            logger.error(f"[SESSION] Sink reported error for {self.label}: {error}")
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"[SESSION] Idle callback failed for {self.label}: {e}", exc_info=True)


class PlaybackSession:
    """Binds PCM streams to the sink one at a time and exposes live volume control."""

    def __init__(self, sink: Optional[BaseSink] = None, default_volume: float = DEFAULT_VOLUME, mixer: Optional[Mixer] = None):
        self._sink = sink
        self.default_volume = default_volume
        self._mixer = mixer or Mixer()
        self._resource: Optional[PlaybackResource] = None

    @property
    def sink(self) -> Optional[BaseSink]:
        return self._sink

    def attach_sink(self, sink: BaseSink) -> None:
        """Set the output sink; the sink is bound once at startup."""
        self._sink = sink

    @property
    def current(self) -> Optional[PlaybackResource]:
        return self._resource

    @property
    def volume(self) -> Optional[float]:
        resource = self._resource
        return resource.volume if resource is not None else None

    def bind(self, stream: PCMStream, label: str = "") -> PlaybackResource:
        """
        Wrap a stream at the default volume, make it the active resource and
        submit it to the sink.

        If the sink refuses the resource, the stream is closed and the error
        propagates.
        """
        if self._sink is None:
            raise RuntimeError("PlaybackSession has no sink attached")
        resource = PlaybackResource(stream, volume=self.default_volume, mixer=self._mixer, label=label)
        self._resource = resource
        logger.info(f"[SESSION] Playing {label or 'stream'} at volume {self.default_volume}")
        try:
            self._sink.play(resource, after=resource.mark_finished)
        except Exception:
            if self._resource is resource:
                self._resource = None
            resource.cleanup()
            raise
        return resource

    def set_volume(self, level: float) -> None:
        """
        Change the gain of the active resource immediately.

        Range checking is the caller's responsibility.

        Raises:
            NoActiveResource: If nothing has been bound yet
        """
        resource = self._resource
        if resource is None:
            raise NoActiveResource("No track is currently playing.")
        resource.set_volume(level)
        logger.info(f"[SESSION] Volume set to {level} for {resource.label}")

    def on_idle(self, callback: Callable[[], None]) -> None:
        """
        Invoke callback exactly once when the current resource is consumed.

        Raises:
            NoActiveResource: If nothing has been bound yet
        """
        resource = self._resource
        if resource is None:
            raise NoActiveResource("No resource bound to the sink")
        resource.add_idle_callback(callback)

    def clear(self) -> None:
        """Drop the active resource (used at shutdown)."""
        resource, self._resource = self._resource, None
        if resource is not None:
            resource.cleanup()
