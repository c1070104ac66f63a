"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SessionMode(str, Enum):
    IDLE = "IDLE"
    EDITING = "EDITING"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


class LoadStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class Admission(str, Enum):
    ADMITTED = "admitted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class CalculationRequest:
    """One admitted evaluation; frozen so the expression snapshot can't drift."""

    request_id: int
    trace_id: str
    expression: str


@dataclass
class PipelineOutcome:
    trace_id: str
    success: bool
    display_text: str = ""
    audio_reference: str = ""
    audio_length: int = 0
    audio_clip: Optional[AudioClip] = None
    code: str = ""
    message: str = ""


@dataclass
class AudioClip:
    samples: Any
    sample_rate: int


@dataclass
class AudioEntry:
    path: str
    status: LoadStatus = LoadStatus.PENDING
    clip: AudioClip | None = None
    error: str = ""


@dataclass
class RateLimitSettings:
    initial_tokens: int = 10
    max_tokens: int = 10
    refill_rate: int = 2  # tokens per minute
    consume_per_call: int = 1
    cooldown_on_empty_s: float = 5.0
    busy_sound: str = "expert_busy.mp3"
    busy_text: str = "专家正忙，稍等片刻再算。"

    @property
    def refill_interval_s(self) -> float:
        return 60.0 / self.refill_rate


@dataclass
class SoundManifest:
    key_press: str = "key_press.mp3"
    evaluate: str = "evaluate.mp3"
    failure: str = "failure.mp3"
    clear: str = "clear.mp3"
    extra: list[str] = field(default_factory=list)

    def paths(self) -> list[str]:
        return [self.key_press, self.evaluate, self.failure, self.clear, *self.extra]
