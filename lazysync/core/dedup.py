"""In-flight fetch guards and the discovered-directory set.

Keys are ``"folder:path"``; directory paths use the trailing-slash prefix
form (``""`` for the folder root).
"""

from __future__ import annotations

from enum import Enum

from ..logic.paths import normalize_dir_prefix
from ..model.performance import PerformanceState


class FetchKind(str, Enum):
    FOLDER = "folder"
    BROWSE = "browse"
    SYNC_STATE = "sync_state"
    OUT_OF_SYNC = "out_of_sync"


def fetch_key(folder_id: str, path: str = "") -> str:
    return f"{folder_id}:{path}"


def dir_key(folder_id: str, prefix: str | None) -> str:
    return fetch_key(folder_id, normalize_dir_prefix(prefix))


class DedupLedger:
    """At most one outstanding fetch per (kind, key).

    ``try_acquire`` inserts the key before the fetch is issued; ``release``
    must run when the fetch resolves, whatever the outcome.
    """

    def __init__(self, performance: PerformanceState) -> None:
        self.performance = performance

    def _in_flight(self, kind: FetchKind) -> set[str]:
        if kind is FetchKind.FOLDER:
            return self.performance.folders_loading
        if kind is FetchKind.BROWSE:
            return self.performance.loading_browse
        if kind is FetchKind.SYNC_STATE:
            return self.performance.loading_sync_states
        return self.performance.loading_out_of_sync

    def try_acquire(self, kind: FetchKind, key: str) -> bool:
        keys = self._in_flight(kind)
        if key in keys:
            return False
        keys.add(key)
        return True

    def release(self, kind: FetchKind, key: str) -> None:
        self._in_flight(kind).discard(key)

    def is_in_flight(self, kind: FetchKind, key: str) -> bool:
        return key in self._in_flight(kind)

    def in_flight_count(self) -> int:
        return sum(len(self._in_flight(kind)) for kind in FetchKind)

    # discovered directories, keyed by (folder id, normalized prefix)

    def mark_discovered(self, folder_id: str, prefix: str | None) -> bool:
        """Record a directory as known; returns False if it already was."""
        key = (folder_id, normalize_dir_prefix(prefix))
        if key in self.performance.discovered_dirs:
            return False
        self.performance.discovered_dirs.add(key)
        return True

    def is_discovered(self, folder_id: str, prefix: str | None) -> bool:
        return (folder_id, normalize_dir_prefix(prefix)) in self.performance.discovered_dirs

    def forget_discovered(self, folder_id: str, prefix: str | None) -> None:
        self.performance.discovered_dirs.discard((folder_id, normalize_dir_prefix(prefix)))

    def forget_discovered_under(self, folder_id: str, prefix: str | None) -> int:
        """Forget ``prefix`` and every directory nested under it (segment-exact)."""
        head = normalize_dir_prefix(prefix)
        stale = {
            key for key in self.performance.discovered_dirs if key[0] == folder_id and key[1].startswith(head)
        }
        self.performance.discovered_dirs -= stale
        return len(stale)


__all__ = ["DedupLedger", "FetchKind", "dir_key", "fetch_key"]
