import collections
import logging
import os
import subprocess
import threading
from typing import Optional

from umeradio.app.constants import CHANNELS, SAMPLE_RATE

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20


def build_fade_filter(fade_seconds: float, fade_out_start: float) -> str:
    """ffmpeg filter chain: fade in from 0, fade out from fade_out_start."""
    return (
        f"afade=t=in:ss=0:d={fade_seconds:.3f},"
        f"afade=t=out:st={fade_out_start:.3f}:d={fade_seconds:.3f}"
    )


class FFmpegDecoder:
    """
    Audio file -> faded raw PCM using ffmpeg.
    - Outputs 16-bit signed little-endian stereo at 48 kHz, no video
    - Applies fade-in at offset 0 and fade-out at fade_out_start
    - Exposes the PCM as a byte stream via read(size)

    The decoder has no timing responsibility; the sink paces consumption.
    A non-zero ffmpeg exit ends the stream early and is logged with the
    stderr tail.
    """

    def __init__(self, path: str, fade_seconds: float, fade_out_start: float, ffmpeg_path: str = "ffmpeg"):
        """
        Launch ffmpeg for one file.

        Args:
            path: Path to audio file
            fade_seconds: Fade-in/fade-out duration
            fade_out_start: Offset in seconds where the fade-out begins
            ffmpeg_path: ffmpeg binary

        Raises:
            OSError: If the ffmpeg process cannot be started
        """
        self.path = path
        self.fade_seconds = fade_seconds
        self.fade_out_start = fade_out_start
        self.failed = False
        self._closed = False
        self._eof = False
        self._stderr_tail: collections.deque = collections.deque(maxlen=STDERR_TAIL_LINES)

        self.command = [
            ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-loglevel", "error",
            "-i", self.path,
            "-af", build_fade_filter(fade_seconds, fade_out_start),
            "-vn",
            "-f", "s16le",
            "-ac", str(CHANNELS),
            "-ar", str(SAMPLE_RATE),
            "pipe:1",
        ]
        # preexec_fn=os.setsid keeps Ctrl-C (SIGINT) on the parent away from ffmpeg
        self.proc: Optional[subprocess.Popen] = subprocess.Popen(
            self.command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            preexec_fn=os.setsid,
        )
        logger.info(f"[DECODER] FFmpeg started (pid={self.proc.pid}): {' '.join(self.command)}")

        self._stderr_thread = threading.Thread(
            target=self._stderr_drain, name=f"ffmpeg-stderr-{self.proc.pid}", daemon=True
        )
        self._stderr_thread.start()

    def _stderr_drain(self) -> None:
        proc = self.proc
        if proc is None or proc.stderr is None:
            return
        try:
            for raw in iter(proc.stderr.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    self._stderr_tail.append(line)
                    logger.debug(f"[FFMPEG] {line}")
        except (OSError, ValueError):
            # stderr closed underneath us during close()
            pass

    @property
    def stderr_tail(self) -> str:
        return "\n".join(self._stderr_tail)

    def read(self, size: int) -> bytes:
        """
        Read up to size bytes of PCM.

        Returns fewer bytes only at end of stream, and b"" once exhausted.
        """
        proc = self.proc
        if self._eof or proc is None or proc.stdout is None:
            return b""

        chunks = []
        remaining = size
        try:
            while remaining > 0:
                data = proc.stdout.read(remaining)
                if not data:
                    break
                chunks.append(data)
                remaining -= len(data)
        except (OSError, ValueError):
            # Pipe closed by close() from another thread
            pass

        if remaining > 0:
            self._eof = True
            self._check_exit(proc)
        return b"".join(chunks)

    def _check_exit(self, proc: subprocess.Popen) -> None:
        # close() may release self.proc from another thread meanwhile
        if self._closed:
            return
        try:
            returncode = proc.wait(timeout=2)
        except subprocess.TimeoutExpired:
            logger.warning(f"[DECODER] FFmpeg closed stdout but is still running: {self.path}")
            return
        self._stderr_thread.join(timeout=1)
        if returncode != 0:
            self.failed = True
            logger.error(f"[DECODER] FFmpeg error (exit {returncode}) for {self.path}")
            if self.stderr_tail:
                logger.error(f"[DECODER] FFmpeg stderr:\n{self.stderr_tail}")
        else:
            logger.debug(f"[DECODER] FFmpeg finished cleanly: {self.path}")

    def close(self) -> None:
        """
        Clean up the ffmpeg process.

        Closes stdout and terminates the process if still running. Safe to
        call multiple times.
        """
        if self.proc is None:
            return
        self._closed = True

        if self.proc.poll() is None:
            try:
                self.proc.terminate()
                self.proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                logger.warning(f"[DECODER] FFmpeg process didn't terminate, killing: {self.path}")
                self.proc.kill()
                try:
                    self.proc.wait(timeout=1)
                except subprocess.TimeoutExpired:
                    logger.error(f"[DECODER] FFmpeg process did not exit after kill (pid={self.proc.pid})")
        self._release()

    def _release(self) -> None:
        proc, self.proc = self.proc, None
        if proc is None:
            return
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass
