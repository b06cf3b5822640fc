"""Batching, idle and pending-operation timing decisions.

All functions are pure; callers pass monotonic timestamps in seconds or
durations in milliseconds.
"""

from __future__ import annotations

MAX_BATCH_SIZE = 50
MAX_BATCH_AGE_MS = 100.0
IDLE_AFTER_SECONDS = 0.3
FILTER_REFRESH_THROTTLE_SECONDS = 0.3
PENDING_STALE_SECONDS = 60.0
PENDING_VERIFY_BUFFER_SECONDS = 5.0


def should_flush(queue_len: int, age_ms: float) -> bool:
    """Return whether queued writes should be flushed now.

    Flushes when the queue reaches ``MAX_BATCH_SIZE`` or the time since the
    last flush is strictly greater than ``MAX_BATCH_AGE_MS``. An empty queue
    never flushes.
    """
    if queue_len <= 0:
        return False
    return queue_len >= MAX_BATCH_SIZE or age_ms > MAX_BATCH_AGE_MS


def is_idle(last_user_action: float, now: float) -> bool:
    """Return whether no input arrived for longer than the idle threshold."""
    return (now - last_user_action) > IDLE_AFTER_SECONDS


def should_refresh_filter(last_update: float, now: float) -> bool:
    """Throttle repeated filter recomputation while prefetch results stream in."""
    return (now - last_update) >= FILTER_REFRESH_THROTTLE_SECONDS


def should_cleanup_stale_pending(initiated_at: float, now: float) -> bool:
    """Pending operations older than the stale timeout are dropped."""
    return (now - initiated_at) > PENDING_STALE_SECONDS


def should_verify_pending(initiated_at: float, now: float, rescan_triggered: bool) -> bool:
    """Check completion only after a rescan was requested and the buffer elapsed."""
    return rescan_triggered and (now - initiated_at) >= PENDING_VERIFY_BUFFER_SECONDS


__all__ = [
    "MAX_BATCH_SIZE",
    "MAX_BATCH_AGE_MS",
    "IDLE_AFTER_SECONDS",
    "FILTER_REFRESH_THROTTLE_SECONDS",
    "PENDING_STALE_SECONDS",
    "PENDING_VERIFY_BUFFER_SECONDS",
    "should_flush",
    "is_idle",
    "should_refresh_filter",
    "should_cleanup_stale_pending",
    "should_verify_pending",
]
