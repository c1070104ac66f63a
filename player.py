"""Speaker playback adapter."""

from __future__ import annotations

import base64
import binascii
import io
import threading
from pathlib import Path

from models import AudioClip

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

try:
    import soundfile as sf
except Exception:  # pragma: no cover
    sf = None  # type: ignore


def read_source(source: str) -> bytes:
    """Return raw encoded audio from a ``data:`` URL or a file path."""
    if source.startswith("data:"):
        header, sep, payload = source.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("only base64 data URLs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"bad base64 payload: {exc}") from exc
    return Path(source).read_bytes()


class SoundDevicePlayer:
    def __init__(self, volume: float = 1.0) -> None:
        self.volume = volume
        self._lock = threading.Lock()

    def load(self, source: str) -> AudioClip:
        if sf is None or np is None:
            raise RuntimeError("soundfile is not installed")
        raw = read_source(source)
        if not raw:
            raise ValueError(f"empty audio: {source[:64]}")
        data, sample_rate = sf.read(io.BytesIO(raw), dtype="float32")
        samples = np.asarray(data, dtype=np.float32)
        if abs(self.volume - 1.0) > 1e-6:
            samples = np.clip(samples * float(self.volume), -1.0, 1.0)
        return AudioClip(samples=samples, sample_rate=int(sample_rate))

    def play(self, clip: AudioClip) -> None:
        """Start ``clip`` from its first frame without blocking."""
        if sd is None:
            raise RuntimeError("sounddevice is not installed")
        with self._lock:
            sd.stop()
            sd.play(clip.samples, samplerate=clip.sample_rate, blocking=False)

    def stop(self) -> None:
        if sd is None:
            return
        with self._lock:
            sd.stop()
