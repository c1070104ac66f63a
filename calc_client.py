"""HTTP adapter for the generation (/api/llm) and synthesis (/api/tts) endpoints.

Both endpoints take a small JSON body and answer with a JSON object. A
non-2xx status carries ``{"error": ..., "trace_id": ...}``; that is raised
as ``EndpointError``. Transport problems surface as the underlying
``requests.RequestException`` and undecodable bodies as ``ValueError``,
leaving the mapping to error codes to the pipeline.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from errors import EndpointError

try:
    import requests
except Exception:  # pragma: no cover
    requests = None  # type: ignore

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/llm"
SYNTHESIZE_PATH = "/api/tts"


class HttpCalculatorApi:
    def __init__(
        self,
        base_url: str,
        request_timeout_s: float = 30.0,
        session: Optional[Any] = None,
    ) -> None:
        if requests is None:
            raise RuntimeError("requests is not installed")
        self._base_url = base_url.rstrip("/")
        self._request_timeout_s = request_timeout_s
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def generate(self, expr: str, trace_id: str) -> dict[str, Any]:
        return self._post(GENERATE_PATH, {"expr": expr, "trace_id": trace_id}, trace_id)

    def synthesize(self, text: str, trace_id: str) -> dict[str, Any]:
        return self._post(SYNTHESIZE_PATH, {"text": text, "trace_id": trace_id}, trace_id)

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _post(self, path: str, payload: dict[str, Any], trace_id: str) -> dict[str, Any]:
        url = self._base_url + path
        started = time.monotonic()
        response = self._session.post(url, json=payload, timeout=self._request_timeout_s)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "POST %s -> %s in %dms trace_id=%s", path, response.status_code, elapsed_ms, trace_id
        )

        if not 200 <= response.status_code < 300:
            body = self._decode_quietly(response)
            raise EndpointError(
                path,
                response.status_code,
                error=str(body.get("error", "")),
                trace_id=str(body.get("trace_id", trace_id)),
            )

        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"{path} returned {type(body).__name__}, expected an object")
        echoed = body.get("trace_id")
        if echoed and echoed != trace_id:
            logger.warning("%s echoed trace_id=%s for trace_id=%s", path, echoed, trace_id)
        return body

    def _decode_quietly(self, response: Any) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
