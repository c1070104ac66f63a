"""State-machine based session orchestration."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Callable, Optional

import input_editor
from audio_cache import AudioCache
from errors import APOLOGY_TEXT, ERROR_MESSAGES, GENERATION_UNAVAILABLE, RATE_LIMITED
from interfaces import Pipeline, Scheduler, TaskRunner
from models import (
    Admission,
    AudioClip,
    CalculationRequest,
    PipelineOutcome,
    RateLimitSettings,
    SessionMode,
    SoundManifest,
)
from rate_limiter import TokenBucket

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionMode, SessionMode], None]
DisplayCallback = Callable[[str], None]
ErrorCallback = Callable[[str, str], None]

PLACEHOLDER = "0"


class SessionController:
    """Owns the session: mode, expression, result text and reply audio.

    Every mutation goes through the public actions below and is expected to
    run on a single (GUI) thread. Remote work is handed to ``runner`` and
    comes back through ``_complete``, which drops completions that no longer
    belong to the current request.
    """

    def __init__(
        self,
        bucket: TokenBucket,
        pipeline: Pipeline,
        audio: AudioCache,
        scheduler: Scheduler,
        runner: TaskRunner,
        settings: Optional[RateLimitSettings] = None,
        sounds: Optional[SoundManifest] = None,
        on_state_change: Optional[StateCallback] = None,
        on_display: Optional[DisplayCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        trace_id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._bucket = bucket
        self._pipeline = pipeline
        self._audio = audio
        self._scheduler = scheduler
        self._runner = runner
        self._settings = settings or RateLimitSettings()
        self._sounds = sounds or SoundManifest()
        self._on_state_change = on_state_change
        self._on_display = on_display
        self._on_error = on_error
        self._trace_id_factory = trace_id_factory

        self._mode = SessionMode.IDLE
        self._expression = ""
        self._result_text = ""
        self._audio_reference = ""
        self._audio_clip: Optional[AudioClip] = None
        self._request_seq = 0
        self._current_request: Optional[CalculationRequest] = None
        self._busy_active = False
        self._busy_generation = 0

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def result_text(self) -> str:
        return self._result_text

    @property
    def audio_reference(self) -> str:
        return self._audio_reference

    @property
    def current_request(self) -> Optional[CalculationRequest]:
        return self._current_request

    @property
    def busy_notice_active(self) -> bool:
        return self._busy_active

    @property
    def display_text(self) -> str:
        if self._mode == SessionMode.IDLE:
            return PLACEHOLDER
        if self._mode == SessionMode.EDITING:
            return self._result_text if self._busy_active else self._expression
        if self._mode == SessionMode.PENDING:
            return self._expression
        return self._result_text

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def press_key(self, ch: str) -> bool:
        if not input_editor.is_input_key(ch):
            return False
        if ch in input_editor.DIGITS:
            return self.press_digit(ch)
        if ch in input_editor.OPERATORS:
            return self.press_operator(ch)
        return self.press_decimal()

    def press_digit(self, digit: str) -> bool:
        return self._edit(lambda expr: input_editor.append_digit(expr, digit))

    def press_operator(self, operator: str) -> bool:
        return self._edit(lambda expr: input_editor.append_operator(expr, operator))

    def press_decimal(self) -> bool:
        return self._edit(input_editor.append_decimal)

    def backspace(self) -> bool:
        if self._mode != SessionMode.EDITING:
            return False
        self._expression = input_editor.backspace(self._expression)
        self._dismiss_busy()
        self._audio.play(self._sounds.key_press)
        if not self._expression:
            self._transition(SessionMode.IDLE)
        self._emit_display()
        return True

    def clear(self) -> None:
        """Reset to Idle from any mode; an in-flight request is left to finish."""
        if self._current_request is not None:
            logger.info(
                "clear while request %d in flight, its result will be dropped",
                self._current_request.request_id,
            )
        self._current_request = None
        self._expression = ""
        self._result_text = ""
        self._audio_reference = ""
        self._audio_clip = None
        self._dismiss_busy()
        self._transition(SessionMode.IDLE)
        self._audio.play(self._sounds.clear)
        self._emit_display()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self) -> Optional[CalculationRequest]:
        """Admit and dispatch the current expression; None when nothing was sent."""
        if self._mode != SessionMode.EDITING or not self._expression:
            return None
        if self._bucket.try_consume() == Admission.REJECTED:
            self._show_busy()
            return None

        self._dismiss_busy()
        self._request_seq += 1
        request = CalculationRequest(
            request_id=self._request_seq,
            trace_id=self._trace_id_factory(),
            expression=self._expression,
        )
        self._current_request = request
        self._result_text = ""
        self._audio_reference = ""
        self._audio_clip = None
        self._transition(SessionMode.PENDING)
        self._audio.play(self._sounds.evaluate, force=True)
        self._emit_display()
        logger.info(
            "request %d dispatched expr=%r trace_id=%s",
            request.request_id,
            request.expression,
            request.trace_id,
        )
        self._runner.submit(
            lambda: self._run_pipeline(request),
            lambda outcome: self._complete(request, outcome),
        )
        return request

    def replay(self) -> bool:
        if self._mode != SessionMode.RESOLVED or self._audio_clip is None:
            return False
        return self._audio.play_clip(self._audio_clip)

    def _run_pipeline(self, request: CalculationRequest) -> PipelineOutcome:
        """Worker-thread job: both remote calls, then the reply decode."""
        try:
            outcome = self._pipeline.evaluate(request)
        except Exception as exc:  # pragma: no cover - pipeline maps its own errors
            logger.exception("pipeline raised for trace_id=%s", request.trace_id)
            return PipelineOutcome(
                trace_id=request.trace_id,
                success=False,
                code=GENERATION_UNAVAILABLE,
                message=str(exc),
            )
        if not outcome.success:
            return outcome
        return dataclasses.replace(
            outcome, audio_clip=self._audio.decode(outcome.audio_reference)
        )

    def _complete(self, request: CalculationRequest, outcome: PipelineOutcome) -> None:
        if self._current_request is not request or self._mode != SessionMode.PENDING:
            logger.info(
                "dropping stale completion of request %d trace_id=%s",
                request.request_id,
                request.trace_id,
            )
            return
        self._current_request = None

        if outcome.success:
            self._result_text = outcome.display_text
            self._audio_reference = outcome.audio_reference
            self._audio_clip = outcome.audio_clip
            self._transition(SessionMode.RESOLVED)
            self._emit_display()
            if self._audio_clip is not None:
                self._audio.play_clip(self._audio_clip)
            return

        self._result_text = APOLOGY_TEXT
        self._audio_reference = ""
        self._audio_clip = None
        self._transition(SessionMode.FAILED)
        self._emit_display()
        self._audio.play(self._sounds.failure, force=True)
        self._emit_error(outcome.code, outcome.message)

    # ------------------------------------------------------------------
    # Busy notice
    # ------------------------------------------------------------------

    def _show_busy(self) -> None:
        self._busy_generation += 1
        generation = self._busy_generation
        self._busy_active = True
        self._result_text = self._settings.busy_text
        self._audio.play(self._settings.busy_sound, force=True)
        self._emit_display()
        self._emit_error(RATE_LIMITED, ERROR_MESSAGES[RATE_LIMITED])
        self._scheduler.call_later(
            self._settings.cooldown_on_empty_s, lambda: self._expire_busy(generation)
        )

    def _expire_busy(self, generation: int) -> None:
        # Only the notice that scheduled this timer may be cleared by it.
        if not self._busy_active or generation != self._busy_generation:
            return
        self._busy_active = False
        self._result_text = ""
        self._emit_display()

    def _dismiss_busy(self) -> None:
        if not self._busy_active:
            return
        self._busy_active = False
        self._busy_generation += 1
        self._result_text = ""

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _edit(self, apply: Callable[[str], str]) -> bool:
        if self._mode == SessionMode.PENDING:
            return False
        # A result is discarded only once the keystroke is known to apply.
        finished = self._mode in (SessionMode.RESOLVED, SessionMode.FAILED)
        base = "" if finished else self._expression
        updated = apply(base)
        if updated == base:
            return False

        if finished:
            self._result_text = ""
            self._audio_reference = ""
            self._audio_clip = None
        self._expression = updated
        self._dismiss_busy()
        self._transition(SessionMode.EDITING)
        self._audio.play(self._sounds.key_press)
        self._emit_display()
        return True

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _emit_display(self) -> None:
        if self._on_display:
            self._on_display(self.display_text)

    def _transition(self, to_mode: SessionMode) -> None:
        from_mode = self._mode
        if from_mode == to_mode:
            return
        self._mode = to_mode
        logger.debug("session %s -> %s", from_mode.value, to_mode.value)
        if self._on_state_change:
            self._on_state_change(from_mode, to_mode)
