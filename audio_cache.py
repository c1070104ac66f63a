"""In-memory sound effect cache with fallback and debounce."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Iterable, Optional

from errors import AUDIO_ASSET_MISSING, ERROR_MESSAGES
from interfaces import AudioBackend
from models import AudioClip, AudioEntry, LoadStatus

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK = "key_press.mp3"


class AudioCache:
    """Owns every preloaded clip, keyed by asset path.

    Entries are never evicted. ``play`` never raises: a missing or failed
    asset falls back to the generic key-press clip, and if that is also
    unavailable the call is a logged no-op.
    """

    def __init__(
        self,
        backend: AudioBackend,
        asset_dir: Optional[Path] = None,
        fallback: str = DEFAULT_FALLBACK,
        debounce_s: float = 0.06,
        preload_timeout_s: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._asset_dir = asset_dir
        self._fallback = fallback
        self._debounce_s = debounce_s
        self._preload_timeout_s = preload_timeout_s
        self._clock = clock
        self._entries: dict[str, AudioEntry] = {}
        self._last_unforced_at: Optional[float] = None

    @property
    def fallback(self) -> str:
        return self._fallback

    def status(self, path: str) -> Optional[LoadStatus]:
        entry = self._entries.get(path)
        return entry.status if entry else None

    def entries(self) -> dict[str, AudioEntry]:
        return dict(self._entries)

    def preload_all(self, manifest: Iterable[str]) -> dict[str, LoadStatus]:
        """Load every asset concurrently, waiting at most ``preload_timeout_s``.

        Each asset ends up READY or FAILED independently; nothing here raises.
        """
        paths = [p for p in dict.fromkeys(manifest) if self.status(p) != LoadStatus.READY]
        if not paths:
            return {p: e.status for p, e in self._entries.items()}
        for path in paths:
            self._entries[path] = AudioEntry(path=path)

        executor = ThreadPoolExecutor(max_workers=min(8, len(paths)), thread_name_prefix="sfx-preload")
        try:
            futures: dict[Future[AudioClip], str] = {
                executor.submit(self._backend.load, self._resolve(path)): path for path in paths
            }
            done, not_done = wait(futures, timeout=self._preload_timeout_s)
            for future in done:
                entry = self._entries[futures[future]]
                exc = future.exception()
                if exc is not None:
                    self._mark_failed(entry, str(exc))
                else:
                    entry.clip = future.result()
                    entry.status = LoadStatus.READY
            for future in not_done:
                self._mark_failed(
                    self._entries[futures[future]],
                    f"timed out after {self._preload_timeout_s:.1f}s",
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        ready = sum(1 for p in paths if self._entries[p].status == LoadStatus.READY)
        logger.info("preloaded %d/%d sound(s)", ready, len(paths))
        return {p: e.status for p, e in self._entries.items()}

    def play(self, path: str, force: bool = False) -> bool:
        """Rewind and play ``path``; returns True when a sound was started.

        Non-forced calls arriving within the debounce window of the previous
        accepted non-forced call are dropped without any state change.
        """
        if not force:
            now = self._clock()
            last = self._last_unforced_at
            if last is not None and now - last < self._debounce_s:
                return False
            self._last_unforced_at = now

        clip = self._ready_clip(path)
        if clip is None:
            logger.warning("sound %s unavailable, using fallback %s", path, self._fallback)
            clip = self._ready_clip(self._fallback)
        if clip is None:
            logger.warning("%s: %s (%s)", AUDIO_ASSET_MISSING, ERROR_MESSAGES[AUDIO_ASSET_MISSING], path)
            return False
        return self._start(clip, path)

    def decode(self, data_url: str) -> Optional[AudioClip]:
        """Decode a one-off clip such as a synthesized reply; None on failure.

        Touches no cache state, so it is safe to call from a worker thread.
        """
        try:
            return self._backend.load(data_url)
        except Exception as exc:
            logger.warning("could not decode reply audio: %s", exc)
            return None

    def play_clip(self, clip: AudioClip) -> bool:
        return self._start(clip, "<reply>")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _resolve(self, path: str) -> str:
        if self._asset_dir is None:
            return path
        return str(self._asset_dir / path)

    def _ready_clip(self, path: str) -> Optional[AudioClip]:
        entry = self._entries.get(path)
        if entry is None or entry.status != LoadStatus.READY:
            return None
        return entry.clip

    def _start(self, clip: AudioClip, label: str) -> bool:
        try:
            self._backend.play(clip)
        except Exception as exc:
            logger.warning("playback of %s failed: %s", label, exc)
            return False
        return True

    def _mark_failed(self, entry: AudioEntry, reason: str) -> None:
        entry.status = LoadStatus.FAILED
        entry.clip = None
        entry.error = reason
        logger.warning("preload of %s failed: %s", entry.path, reason)
