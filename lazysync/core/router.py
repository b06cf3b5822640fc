"""Applies cache invalidations to the mirror, the ledger and visible levels."""

from __future__ import annotations

from queue import Empty, Queue

from ..cache.mirror import MirrorCache
from ..log import get_logger
from ..logic.paths import is_under_prefix, normalize_dir_prefix, parent_prefix
from ..model.navigation import NavigationState
from ..model.types import CacheInvalidation, DirectoryInvalidation, FileInvalidation
from .dedup import DedupLedger

logger = get_logger("router")


class InvalidationRouter:
    """Single consumer of the invalidation queue.

    Invalidating an absent path is a no-op. Levels displaying an affected
    directory are flagged ``needs_refresh``; the control loop refetches them.
    """

    def __init__(self, mirror: MirrorCache, ledger: DedupLedger, navigation: NavigationState) -> None:
        self.mirror = mirror
        self.ledger = ledger
        self.navigation = navigation
        self.applied = 0

    def apply(self, invalidation: CacheInvalidation) -> int:
        """Apply one invalidation; returns the number of trail levels flagged for refetch."""
        self.applied += 1
        if isinstance(invalidation, FileInvalidation):
            return self._apply_file(invalidation)
        if isinstance(invalidation, DirectoryInvalidation):
            return self._apply_directory(invalidation)
        logger.warning("Unknown invalidation %r", invalidation)
        return 0

    def _apply_file(self, invalidation: FileInvalidation) -> int:
        folder_id = invalidation.folder_id
        path = invalidation.file_path.strip("/")
        if not path:
            return 0
        self.mirror.evict_file(folder_id, path)
        containing = parent_prefix(path)
        self.ledger.forget_discovered(folder_id, containing)
        flagged = 0
        for level in self.navigation.trail:
            if level.folder_id == folder_id and level.prefix_key == containing:
                level.needs_refresh = True
                level.sync_states.pop(path[len(containing):], None)
                flagged += 1
        return flagged

    def _apply_directory(self, invalidation: DirectoryInvalidation) -> int:
        folder_id = invalidation.folder_id
        prefix = normalize_dir_prefix(invalidation.dir_path)
        self.mirror.evict_directory(folder_id, prefix)
        self.ledger.forget_discovered_under(folder_id, prefix)
        flagged = 0
        for level in self.navigation.trail:
            if level.folder_id != folder_id:
                continue
            if is_under_prefix(level.prefix_key, prefix):
                level.needs_refresh = True
                flagged += 1
        return flagged

    def drain(self, invalidations: Queue[CacheInvalidation], limit: int | None = None) -> int:
        """Apply queued invalidations in FIFO order; returns how many were consumed."""
        consumed = 0
        while limit is None or consumed < limit:
            try:
                invalidation = invalidations.get_nowait()
            except Empty:
                break
            self.apply(invalidation)
            consumed += 1
        return consumed


__all__ = ["InvalidationRouter"]
