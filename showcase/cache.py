from __future__ import annotations

import time
from typing import Any, Callable


def cache_key(resource: str, owner: str, *parts: str) -> str:
    return ":".join((resource, owner, *parts))


class TTLCache:
    """In-memory key -> (value, fetched_at) map with a fixed time-to-live.

    Staleness is checked lazily on ``get``; nothing is evicted in the
    background and there is no size bound. Reads and writes are not
    serialized, so two concurrent misses may both fetch and both ``set``;
    the last write wins.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, fetched_at = entry
        if self._clock() - fetched_at >= self.ttl:
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
