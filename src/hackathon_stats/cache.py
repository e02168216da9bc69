"""In-memory response cache with TTL support."""

from __future__ import annotations

import time
from typing import Any, Callable

DEFAULT_TTL = 300  # 5 minutes


class ResponseCache:
    """Cache of API payloads keyed by the exact request URL.

    Entries are only replaced by a later ``set`` for the same URL; there is
    no size bound and no eviction. ``get`` and ``set`` never await, so a
    check-then-store sequence cannot interleave with another task's store.
    """

    def __init__(
        self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def get(self, url: str) -> Any | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if self._clock() - entry["ts"] >= self._ttl:
            return None
        return entry["value"]

    def set(self, url: str, value: Any) -> None:
        self._entries[url] = {"ts": self._clock(), "value": value}

    def clear(self) -> None:
        self._entries.clear()
