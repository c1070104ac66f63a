"""Token bucket that gates evaluation requests."""

from __future__ import annotations

import logging
from typing import Optional

from interfaces import Scheduler, TimerHandle
from models import Admission, RateLimitSettings

logger = logging.getLogger(__name__)


class TokenBucket:
    """Capacity-bounded counter refilled by one token per refill period.

    Tokens only go up through ``refill()`` (clamped to ``max_tokens``) and
    only go down by ``consume_per_call`` inside an admitted ``try_consume()``.
    """

    def __init__(self, settings: RateLimitSettings, scheduler: Optional[Scheduler] = None) -> None:
        if settings.max_tokens < 0 or settings.consume_per_call < 1 or settings.refill_rate <= 0:
            raise ValueError(f"invalid rate limit settings: {settings}")
        self._settings = settings
        self._scheduler = scheduler
        self._tokens = max(0, min(settings.initial_tokens, settings.max_tokens))
        self._refill_timer: Optional[TimerHandle] = None

    @property
    def tokens(self) -> int:
        return self._tokens

    @property
    def max_tokens(self) -> int:
        return self._settings.max_tokens

    @property
    def running(self) -> bool:
        return self._refill_timer is not None

    def start(self) -> None:
        """Begin periodic refill; runs until ``stop()`` regardless of activity."""
        if self._refill_timer is not None:
            return
        if self._scheduler is None:
            raise RuntimeError("TokenBucket has no scheduler to refill with")
        interval = self._settings.refill_interval_s
        self._refill_timer = self._scheduler.call_every(interval, self.refill)
        logger.debug("refill started: 1 token every %.1fs", interval)

    def stop(self) -> None:
        timer = self._refill_timer
        if timer is not None:
            timer.cancel()
            self._refill_timer = None

    def try_consume(self) -> Admission:
        cost = self._settings.consume_per_call
        if self._tokens < cost:
            logger.warning("rate limited: %d token(s) left, %d needed", self._tokens, cost)
            return Admission.REJECTED
        self._tokens -= cost
        logger.info("admitted: %d/%d token(s) left", self._tokens, self._settings.max_tokens)
        return Admission.ADMITTED

    def refill(self) -> None:
        if self._tokens >= self._settings.max_tokens:
            return
        self._tokens += 1
        logger.debug("refill: %d/%d", self._tokens, self._settings.max_tokens)
