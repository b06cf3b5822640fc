"""Operational bookkeeping for the control loop (never rendered directly)."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..logic.performance import is_idle


@dataclass
class PendingDeleteInfo:
    """An ignore+delete in progress; blocks un-ignore of the same path until resolved."""

    folder_id: str
    path: str
    initiated_at: float = 0.0
    rescan_triggered: bool = False


@dataclass
class PerformanceState:
    """In-flight fetch keys, staleness fingerprints and throttle timestamps.

    Fetch keys are ``"folder:path"`` strings; see ``core.dedup.fetch_key``.
    """

    folders_loading: set[str] = field(default_factory=set)
    loading_browse: set[str] = field(default_factory=set)
    loading_sync_states: set[str] = field(default_factory=set)
    loading_out_of_sync: set[str] = field(default_factory=set)
    discovered_dirs: set[tuple[str, str]] = field(default_factory=set)  # (folder id, dir prefix)
    prefetch_enabled: bool = True
    last_known_sequences: dict[str, int] = field(default_factory=dict)
    last_known_receive_only_counts: dict[str, int] = field(default_factory=dict)
    pending_ignore_deletes: dict[str, PendingDeleteInfo] = field(default_factory=dict)  # keyed by host path
    last_user_action: float = 0.0
    last_filter_update: float = 0.0
    last_load_ms: float | None = None
    cache_hit: bool | None = None

    def record_user_action(self, now: float) -> None:
        self.last_user_action = now

    def is_idle(self, now: float) -> bool:
        return is_idle(self.last_user_action, now)


__all__ = ["PendingDeleteInfo", "PerformanceState"]
