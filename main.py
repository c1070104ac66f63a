"""Application entrypoint."""

from __future__ import annotations

import logging
import sys

from audio_cache import AudioCache
from calc_client import HttpCalculatorApi
from calculator_window import CalculatorWindow
from config import JsonConfigStore
from models import SessionMode, SoundManifest
from pipeline import CalculationPipeline
from player import SoundDevicePlayer
from rate_limiter import TokenBucket
from session_controller import SessionController

try:
    from PySide6.QtWidgets import QApplication

    from qt_runtime import QtScheduler, QtTaskRunner
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        logging.basicConfig(level=self.config_store.get_log_level(), format=LOG_FORMAT)

        settings = self.config_store.get_rate_limit()
        sounds = SoundManifest(extra=[settings.busy_sound])
        self.player = SoundDevicePlayer()
        self.audio = AudioCache(self.player, asset_dir=self.config_store.get_asset_dir())
        self.audio.preload_all(sounds.paths())

        self.scheduler = QtScheduler()
        self.bucket = TokenBucket(settings, scheduler=self.scheduler)
        self.api = HttpCalculatorApi(
            self.config_store.get_api_base_url(),
            request_timeout_s=self.config_store.get_request_timeout_s(),
        )
        logger.info("using endpoints at %s", self.api.base_url)

        self.window = CalculatorWindow(
            on_key=self._on_key,
            on_evaluate=self._on_evaluate,
            on_backspace=self._on_backspace,
            on_clear=self._on_clear,
            on_replay=self._on_replay,
        )
        self.controller = SessionController(
            bucket=self.bucket,
            pipeline=CalculationPipeline(self.api),
            audio=self.audio,
            scheduler=self.scheduler,
            runner=QtTaskRunner(),
            settings=settings,
            sounds=sounds,
            on_state_change=self._on_state_change,
            on_display=self.window.set_text,
            on_error=self._on_error,
        )
        self.app.aboutToQuit.connect(self._shutdown)

    # ------------------------------------------------------------------
    # Window handlers (GUI thread)
    # ------------------------------------------------------------------

    def _on_key(self, key: str) -> None:
        self.controller.press_key(key)

    def _on_evaluate(self) -> None:
        self.controller.evaluate()

    def _on_backspace(self) -> None:
        self.controller.backspace()

    def _on_clear(self) -> None:
        self.controller.clear()

    def _on_replay(self) -> None:
        self.controller.replay()

    # ------------------------------------------------------------------
    # Controller callbacks
    # ------------------------------------------------------------------

    def _on_state_change(self, from_mode: SessionMode, to_mode: SessionMode) -> None:
        self.window.set_pending(to_mode == SessionMode.PENDING)

    def _on_error(self, code: str, message: str) -> None:
        logger.warning("%s: %s", code, message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.bucket.start()
        self.window.show()
        return self.app.exec()

    def _shutdown(self) -> None:
        self.bucket.stop()
        self.scheduler.cancel_all()
        self.player.stop()
        self.api.close()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
