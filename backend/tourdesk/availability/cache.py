from __future__ import annotations

import time
from typing import Callable

from tourdesk.availability.models import DayAvailability


DEFAULT_TTL_SECONDS = 300


class AvailabilityCache:
    """In-memory day availability keyed by ``YYYY-MM-DD``.

    Entries are never evicted; staleness is judged at read time.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, DayAvailability] = {}

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> DayAvailability | None:
        return self._entries.get(key)

    def set(self, key: str, value: DayAvailability) -> None:
        self._entries[key] = value

    def is_stale(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return True
        return self.now_ms() - entry.timestamp >= self.ttl_seconds * 1000

    def get_fresh(self, key: str) -> DayAvailability | None:
        if self.is_stale(key):
            return None
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
