import logging
import threading
import time
from typing import Optional

from umeradio.app.constants import FRAME_BYTES, FRAME_DURATION_MS
from umeradio.outputs.base_sink import AfterCallback, BaseSink

logger = logging.getLogger(__name__)


class NullSink(BaseSink):
    """
    A sink that consumes audio and discards it.

    Useful for running the scheduler headless. With realtime=True the
    resource is drained at playback speed (one 20 ms frame per tick), so
    items take as long as they would on a real output.
    """

    def __init__(self, realtime: bool = True):
        self.realtime = realtime
        self._thread: Optional[threading.Thread] = None
        self._stop_current: Optional[threading.Event] = None
        self.played = 0

    def play(self, resource, after: AfterCallback) -> None:
        if self._stop_current is not None:
            self._stop_current.set()

        stop = threading.Event()
        self._stop_current = stop
        self.played += 1
        self._thread = threading.Thread(
            target=self._drain, args=(resource, after, stop), name="null-sink", daemon=True
        )
        self._thread.start()

    def _drain(self, resource, after: AfterCallback, stop: threading.Event) -> None:
        error: Optional[Exception] = None
        frame_interval = FRAME_DURATION_MS / 1000.0
        next_tick = time.monotonic()
        try:
            while not stop.is_set():
                if not resource.read(FRAME_BYTES):
                    break
                if self.realtime:
                    next_tick += frame_interval
                    delay = next_tick - time.monotonic()
                    if delay > 0:
                        stop.wait(delay)
        except Exception as e:
            error = e
        finally:
            resource.cleanup()
        after(error)

    def close(self) -> None:
        if self._stop_current is not None:
            self._stop_current.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2)
