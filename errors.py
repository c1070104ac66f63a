"""Shared error codes and user-facing messages."""

from __future__ import annotations

RATE_LIMITED = "RATE_LIMITED"
GENERATION_UNAVAILABLE = "GENERATION_UNAVAILABLE"
GENERATION_MALFORMED = "GENERATION_MALFORMED"
SYNTHESIS_UNAVAILABLE = "SYNTHESIS_UNAVAILABLE"
SYNTHESIS_MALFORMED = "SYNTHESIS_MALFORMED"
AUDIO_ASSET_MISSING = "AUDIO_ASSET_MISSING"

ERROR_MESSAGES = {
    RATE_LIMITED: "No tokens left, evaluation rejected.",
    GENERATION_UNAVAILABLE: "Generation endpoint failed or returned a non-success status.",
    GENERATION_MALFORMED: "Generation response lacks display/explanation.",
    SYNTHESIS_UNAVAILABLE: "Synthesis endpoint failed or returned a non-success status.",
    SYNTHESIS_MALFORMED: "Synthesis response lacks a playable audio reference.",
    AUDIO_ASSET_MISSING: "Sound asset and fallback are both unavailable.",
}

APOLOGY_TEXT = "抱歉，专家算不出来了。"


class StageError(Exception):
    """Raised inside a pipeline stage; carries one of the codes above."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code))
        self.code = code


class EndpointError(Exception):
    """Non-2xx reply from a remote endpoint."""

    def __init__(self, endpoint: str, status: int, error: str = "", trace_id: str = "") -> None:
        super().__init__(f"{endpoint} returned HTTP {status}: {error or 'no error body'}")
        self.endpoint = endpoint
        self.status = status
        self.error = error
        self.trace_id = trace_id
