import numpy as np


class Mixer:
    """
    Pass-through gain stage for s16le PCM.

    No timing logic. Processes frames immediately as the sink pulls them.
    """

    def mix(self, frame: np.ndarray, gain: float = 1.0) -> np.ndarray:
        if gain == 1.0:
            return frame
        # Apply gain in float then clip back to int16
        out = frame.astype(np.float32) * float(gain)
        np.clip(out, -32768.0, 32767.0, out=out)
        return out.astype(np.int16)

    def mix_bytes(self, pcm: bytes, gain: float = 1.0) -> bytes:
        """Apply gain to interleaved s16le bytes, dropping a trailing odd byte."""
        if gain == 1.0 or not pcm:
            return pcm
        usable = len(pcm) - (len(pcm) % 2)
        frame = np.frombuffer(pcm[:usable], dtype="<i2")
        return self.mix(frame, gain).astype("<i2").tobytes()
