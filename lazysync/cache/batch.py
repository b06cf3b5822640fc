"""Size/age batched persistence writes."""

from __future__ import annotations

import time
from collections.abc import Callable

from ..log import get_logger
from ..logic.performance import should_flush
from .store import KeyValueStore

logger = get_logger("cache.batch")


class BatchWriter:
    """Accumulate ``(key, value)`` writes and flush them through ``store.put_many``.

    A later write to a key already queued replaces the earlier value, so a
    flush persists only the newest value per key.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], float] = time.monotonic) -> None:
        self.store = store
        self._clock = clock
        self._pending: dict[str, object] = {}
        self._last_flush = clock()

    def __len__(self) -> int:
        return len(self._pending)

    def enqueue(self, key: str, value: object) -> None:
        self._pending.pop(key, None)
        self._pending[key] = value

    def pending_value(self, key: str) -> object | None:
        return self._pending.get(key)

    def discard(self, key: str) -> None:
        self._pending.pop(key, None)

    def discard_prefix(self, prefix: str) -> None:
        for key in [key for key in self._pending if key.startswith(prefix)]:
            del self._pending[key]

    def maybe_flush(self, now: float | None = None) -> bool:
        """Flush when the batching policy says so; returns whether a flush happened."""
        now = self._clock() if now is None else now
        age_ms = (now - self._last_flush) * 1000.0
        if not should_flush(len(self._pending), age_ms):
            return False
        self.flush(now)
        return True

    def flush(self, now: float | None = None) -> None:
        items = list(self._pending.items())
        self._pending.clear()
        self._last_flush = self._clock() if now is None else now
        if not items:
            return
        try:
            self.store.put_many(items)
        except Exception as exc:
            logger.warning("Cache flush of %d writes failed: %s", len(items), exc)
            return
        logger.debug("Flushed %d cache writes", len(items))


__all__ = ["BatchWriter"]
