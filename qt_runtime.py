"""Qt-backed scheduler and task runner.

Timer callbacks and task completions are always delivered on the thread
that owns the QObjects here (the GUI thread), so the session controller
never sees two transitions at once.
"""

from __future__ import annotations

import threading
from typing import Callable, TypeVar

from PySide6.QtCore import QObject, Qt, QTimer, Signal

T = TypeVar("T")


class QtTimerHandle:
    def __init__(self, timer: QTimer, owner: "QtScheduler") -> None:
        self._timer = timer
        self._owner = owner

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def cancel(self) -> None:
        self._timer.stop()
        self._owner._release(self)


class QtScheduler:
    def __init__(self) -> None:
        # QTimers must stay referenced until they fire or are cancelled.
        self._handles: set[QtTimerHandle] = set()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)
        handle = QtTimerHandle(timer, self)

        def _fire() -> None:
            self._release(handle)
            callback()

        timer.timeout.connect(_fire)
        self._handles.add(handle)
        timer.start(max(0, int(delay_s * 1000)))
        return handle

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer()
        timer.setSingleShot(False)
        timer.timeout.connect(callback)
        handle = QtTimerHandle(timer, self)
        self._handles.add(handle)
        timer.start(max(1, int(interval_s * 1000)))
        return handle

    def cancel_all(self) -> None:
        for handle in list(self._handles):
            handle.cancel()

    @property
    def pending(self) -> int:
        return len(self._handles)

    def _release(self, handle: QtTimerHandle) -> None:
        self._handles.discard(handle)


class _CompletionBridge(QObject):
    done = Signal(object, object)  # on_done, result


class QtTaskRunner:
    """Runs jobs on daemon threads and hands results back to the GUI thread."""

    def __init__(self) -> None:
        self._bridge = _CompletionBridge()
        self._bridge.done.connect(self._deliver, Qt.ConnectionType.QueuedConnection)

    def submit(self, job: Callable[[], T], on_done: Callable[[T], None]) -> None:
        def _worker() -> None:
            result = job()
            self._bridge.done.emit(on_done, result)

        threading.Thread(target=_worker, daemon=True, name="calc-request").start()

    def _deliver(self, on_done: Callable[[object], None], result: object) -> None:
        on_done(result)
