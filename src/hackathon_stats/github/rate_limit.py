"""GitHub API rate limit monitoring."""

from __future__ import annotations

import logging
import time

import httpx

logger = logging.getLogger(__name__)


class RateLimitMonitor:
    """Tracks GitHub's rate limit from response headers.

    The monitor only observes and warns; requests are never delayed.
    """

    def __init__(self, threshold: int = 10) -> None:
        self._remaining: int | None = None
        self._reset_at: float | None = None
        self._threshold = threshold
        self._warned = False

    @property
    def remaining(self) -> int | None:
        return self._remaining

    @property
    def reset_at(self) -> float | None:
        return self._reset_at

    @property
    def is_low(self) -> bool:
        return self._remaining is not None and self._remaining <= self._threshold

    def update(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset_at = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._remaining = int(remaining)
        if reset_at is not None:
            self._reset_at = float(reset_at)

        if self.is_low and not self._warned:
            self._warned = True
            wait = max(0.0, (self._reset_at or time.time()) - time.time())
            logger.warning(
                "GitHub rate limit nearly exhausted: %d requests left, resets in %ds",
                self._remaining,
                wait,
            )
        elif not self.is_low:
            self._warned = False
