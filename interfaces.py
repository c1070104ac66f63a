"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar

from models import AudioClip, CalculationRequest, PipelineOutcome

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class TaskRunner(Protocol):
    def submit(self, job: Callable[[], T], on_done: Callable[[T], None]) -> None: ...


class AudioBackend(Protocol):
    def load(self, source: str) -> AudioClip: ...

    def play(self, clip: AudioClip) -> None: ...


class CalculatorApi(Protocol):
    def generate(self, expr: str, trace_id: str) -> dict[str, Any]: ...

    def synthesize(self, text: str, trace_id: str) -> dict[str, Any]: ...


class Pipeline(Protocol):
    def evaluate(self, request: CalculationRequest) -> PipelineOutcome: ...
