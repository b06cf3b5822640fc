"""Sync-state priorities and derivation from daemon file info."""

from __future__ import annotations

from ..model.types import SyncState

# Lower sorts first.
_PRIORITY = {
    SyncState.CONFLICTED: 0,
    SyncState.ERROR: 1,
    SyncState.LOCALLY_CHANGED: 2,
    SyncState.SYNCING: 3,
    SyncState.REMOTE_ONLY: 4,
    SyncState.IGNORED: 5,
    SyncState.SYNCED: 7,
}
UNKNOWN_PRIORITY = 6

CONFLICT_MARKER = ".sync-conflict-"
# Syncthing's FlagLocalReceiveOnly bit in ``localFlags``.
LOCAL_RECEIVE_ONLY_FLAG = 1 << 3


def sync_state_priority(state: SyncState | None) -> int:
    """Return the sort priority of ``state``; unknown sits just before synced."""
    if state is None:
        return UNKNOWN_PRIORITY
    return _PRIORITY.get(state, UNKNOWN_PRIORITY)


def _version(record: dict[str, object]) -> object:
    return record.get("version")


def determine_sync_state(path: str, payload: object) -> SyncState:
    """Classify a ``/rest/db/file`` payload into a ``SyncState``."""
    if not isinstance(payload, dict):
        return SyncState.ERROR
    local = payload.get("local")
    global_ = payload.get("global")
    local = local if isinstance(local, dict) else None
    global_ = global_ if isinstance(global_, dict) else None

    if local is not None and local.get("ignored"):
        return SyncState.IGNORED
    if CONFLICT_MARKER in path.rsplit("/", 1)[-1]:
        return SyncState.CONFLICTED

    local_missing = local is None or bool(local.get("deleted"))
    global_missing = global_ is None or bool(global_.get("deleted"))
    if local_missing and not global_missing:
        return SyncState.REMOTE_ONLY
    if global_missing and not local_missing:
        return SyncState.LOCALLY_CHANGED
    if local is None or global_ is None:
        return SyncState.ERROR

    flags = local.get("localFlags", 0)
    if isinstance(flags, int) and flags & LOCAL_RECEIVE_ONLY_FLAG:
        return SyncState.LOCALLY_CHANGED
    if _version(local) == _version(global_):
        return SyncState.SYNCED
    return SyncState.SYNCING


__all__ = [
    "sync_state_priority",
    "determine_sync_state",
    "UNKNOWN_PRIORITY",
    "CONFLICT_MARKER",
]
