"""Generate -> synthesize pipeline for one evaluation request."""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, TypeVar

from errors import (
    GENERATION_MALFORMED,
    GENERATION_UNAVAILABLE,
    SYNTHESIS_MALFORMED,
    SYNTHESIS_UNAVAILABLE,
    EndpointError,
    StageError,
)
from interfaces import CalculatorApi
from models import CalculationRequest, PipelineOutcome

try:
    import requests
except Exception:  # pragma: no cover
    requests = None  # type: ignore

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUDIO_URL_PREFIX = "data:audio/"


class CalculationPipeline:
    """Runs the two remote calls strictly in sequence.

    Synthesis needs the explanation produced by generation, so the stages
    cannot overlap. Any stage failure short-circuits; a successful outcome
    always carries both display text and audio. ``display`` is passed
    through verbatim, whatever the service put in it.
    """

    def __init__(self, api: CalculatorApi) -> None:
        self._api = api

    def evaluate(self, request: CalculationRequest) -> PipelineOutcome:
        trace_id = request.trace_id
        try:
            display, explanation = self._generate(request.expression, trace_id)
            audio_reference, audio_length = self._synthesize(explanation, trace_id)
        except StageError as exc:
            logger.warning("pipeline failed %s trace_id=%s: %s", exc.code, trace_id, exc)
            return PipelineOutcome(
                trace_id=trace_id, success=False, code=exc.code, message=str(exc)
            )
        return PipelineOutcome(
            trace_id=trace_id,
            success=True,
            display_text=display,
            audio_reference=audio_reference,
            audio_length=audio_length,
        )

    def _generate(self, expression: str, trace_id: str) -> tuple[str, str]:
        return self._stage(
            lambda: self._api.generate(expression, trace_id),
            _read_generation,
            GENERATION_UNAVAILABLE,
            GENERATION_MALFORMED,
        )

    def _synthesize(self, explanation: str, trace_id: str) -> tuple[str, int]:
        return self._stage(
            lambda: self._api.synthesize(explanation, trace_id),
            _read_synthesis,
            SYNTHESIS_UNAVAILABLE,
            SYNTHESIS_MALFORMED,
        )

    def _stage(
        self,
        send: Callable[[], Any],
        read: Callable[[dict[str, Any]], T],
        unavailable: str,
        malformed: str,
    ) -> T:
        """Run one remote call and read its body; every failure becomes this stage's code."""
        body = self._call(send, unavailable, malformed)
        try:
            return read(body)
        except StageError:
            raise
        except Exception as exc:
            raise StageError(malformed, f"unreadable body: {exc}") from exc

    def _call(self, send: Callable[[], Any], unavailable: str, malformed: str) -> dict[str, Any]:
        """Map transport and decoding failures of one remote call to a stage code."""
        try:
            body = send()
        except EndpointError as exc:
            raise StageError(unavailable, str(exc)) from exc
        except Exception as exc:
            if _is_transport_error(exc):
                raise StageError(unavailable, f"transport error: {exc}") from exc
            if isinstance(exc, ValueError):
                raise StageError(malformed, f"undecodable body: {exc}") from exc
            raise StageError(unavailable, f"unexpected error: {exc}") from exc
        if not isinstance(body, dict):
            raise StageError(malformed, f"expected a JSON object, got {type(body).__name__}")
        return body


def _read_generation(body: dict[str, Any]) -> tuple[str, str]:
    display = body.get("display")
    explanation = body.get("explanation")
    if not isinstance(display, str) or not isinstance(explanation, str):
        raise StageError(GENERATION_MALFORMED, f"missing display/explanation in {sorted(body)}")
    return display, explanation


def _read_synthesis(body: dict[str, Any]) -> tuple[str, int]:
    data_url = body.get("dataUrl")
    if not isinstance(data_url, str) or not data_url.startswith(AUDIO_URL_PREFIX):
        raise StageError(SYNTHESIS_MALFORMED, "dataUrl is missing or not an audio data URL")
    return data_url, _audio_length(body.get("length"))


def _audio_length(value: Any) -> int:
    # Optional metadata: anything but a finite number reads as unknown (0).
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return int(value)


def _is_transport_error(exc: Exception) -> bool:
    # requests' JSONDecodeError is both a RequestException and a ValueError
    if requests is None or not isinstance(exc, requests.RequestException):
        return False
    return not isinstance(exc, requests.exceptions.JSONDecodeError)
