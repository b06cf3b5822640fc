"""Remote actions on the selected entry.

The ``run_*`` functions do blocking I/O and run on fetch workers; they
return an ``ActionOutcome`` or raise ``LazySyncError``. The pending-delete
helpers below them are control-loop only.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from ..errors import ActionError
from ..log import get_logger
from ..logic.ignore import find_matching_patterns, ignore_pattern_for
from ..logic.performance import should_cleanup_stale_pending, should_verify_pending
from ..model.performance import PendingDeleteInfo, PerformanceState
from ..services.api import SyncthingClient

logger = get_logger("actions")


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one action, turned into a toast and follow-up fetches."""

    action: str
    folder_id: str
    path: str
    message: str
    host_path: str = ""
    ignored: bool | None = None
    rescan_triggered: bool = False


def delete_host_path(host_path: str) -> None:
    """Remove a file or a directory tree from the host filesystem."""
    target = Path(host_path)
    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
    except FileNotFoundError as exc:
        raise ActionError(f"{host_path} does not exist") from exc
    except OSError as exc:
        raise ActionError(f"Cannot delete {host_path}: {exc.strerror or exc}") from exc


def _add_ignore(client: SyncthingClient, folder_id: str, relative_path: str) -> bool:
    """Prepend the rooted pattern for ``relative_path``; returns False if already present."""
    patterns = client.get_ignores(folder_id)
    pattern = ignore_pattern_for(relative_path)
    if pattern in patterns:
        return False
    client.set_ignores(folder_id, [pattern, *patterns])
    return True


def run_toggle_ignore(
    client: SyncthingClient,
    folder_id: str,
    relative_path: str,
    currently_ignored: bool,
) -> ActionOutcome:
    if not currently_ignored:
        _add_ignore(client, folder_id, relative_path)
        client.rescan(folder_id)
        return ActionOutcome(
            action="ignore",
            folder_id=folder_id,
            path=relative_path,
            message=f"Ignored {relative_path}",
            ignored=True,
        )

    patterns = client.get_ignores(folder_id)
    matching = find_matching_patterns(patterns, ignore_pattern_for(relative_path))
    if not matching:
        raise ActionError(f"No ignore pattern matches {relative_path}")
    if len(matching) > 1:
        raise ActionError(f"Several ignore patterns match {relative_path}: {', '.join(matching)}")
    client.set_ignores(folder_id, [pattern for pattern in patterns if pattern != matching[0]])
    client.rescan(folder_id)
    return ActionOutcome(
        action="unignore",
        folder_id=folder_id,
        path=relative_path,
        message=f"Removed ignore pattern {matching[0]}",
        ignored=False,
    )


def run_ignore_and_delete(
    client: SyncthingClient,
    folder_id: str,
    relative_path: str,
    host_path: str,
) -> ActionOutcome:
    """Ignore ``relative_path`` then delete its host copy.

    The caller registers the pending delete before dispatching this and
    drops it again if this raises.
    """
    _add_ignore(client, folder_id, relative_path)
    deleted = Path(host_path).exists()
    if deleted:
        delete_host_path(host_path)
    client.rescan(folder_id)
    return ActionOutcome(
        action="ignore_delete",
        folder_id=folder_id,
        path=relative_path,
        message=f"Ignored and deleted {relative_path}" if deleted else f"Ignored {relative_path}",
        host_path=host_path,
        ignored=True,
        rescan_triggered=deleted,
    )


def run_delete_local(
    client: SyncthingClient,
    folder_id: str,
    relative_path: str,
    host_path: str,
) -> ActionOutcome:
    delete_host_path(host_path)
    client.rescan(folder_id)
    return ActionOutcome(
        action="delete",
        folder_id=folder_id,
        path=relative_path,
        message=f"Deleted {relative_path}",
        host_path=host_path,
    )


def run_revert(
    client: SyncthingClient,
    folder_id: str,
    receive_only: bool,
    has_local_changes: bool,
) -> ActionOutcome:
    """Revert local changes of a receive-only folder, else rescan to restore remote state."""
    if receive_only and has_local_changes:
        client.revert(folder_id)
        return ActionOutcome(action="revert", folder_id=folder_id, path="", message="Reverted local changes")
    client.rescan(folder_id)
    return ActionOutcome(action="rescan", folder_id=folder_id, path="", message="Rescan requested")


def run_rescan(client: SyncthingClient, folder_id: str) -> ActionOutcome:
    client.rescan(folder_id)
    return ActionOutcome(action="rescan", folder_id=folder_id, path="", message="Rescan requested")


# pending deletes (control loop)


def pending_delete_for(performance: PerformanceState, folder_id: str, host_path: str) -> str | None:
    """Return the pending host path blocking ``host_path``: itself or a parent."""
    target = host_path.rstrip("/")
    for pending_path, info in performance.pending_ignore_deletes.items():
        if info.folder_id != folder_id:
            continue
        if target == pending_path or target.startswith(pending_path.rstrip("/") + "/"):
            return pending_path
    return None


def register_pending_delete(performance: PerformanceState, folder_id: str, host_path: str, now: float) -> None:
    path = host_path.rstrip("/")
    performance.pending_ignore_deletes[path] = PendingDeleteInfo(
        folder_id=folder_id,
        path=path,
        initiated_at=now,
    )


def remove_pending_delete(performance: PerformanceState, host_path: str) -> bool:
    return performance.pending_ignore_deletes.pop(host_path.rstrip("/"), None) is not None


def mark_rescan_triggered(performance: PerformanceState, host_path: str) -> None:
    info = performance.pending_ignore_deletes.get(host_path.rstrip("/"))
    if info is not None:
        info.rescan_triggered = True


def expire_pending_deletes(performance: PerformanceState, now: float) -> list[str]:
    """Resolve verified deletes and drop stale ones; returns the paths removed."""
    removed: list[str] = []
    for path, info in list(performance.pending_ignore_deletes.items()):
        if should_cleanup_stale_pending(info.initiated_at, now):
            logger.debug("Dropping stale pending delete %s", path)
            removed.append(path)
        elif should_verify_pending(info.initiated_at, now, info.rescan_triggered) and not Path(path).exists():
            logger.debug("Pending delete %s resolved", path)
            removed.append(path)
    for path in removed:
        del performance.pending_ignore_deletes[path]
    return removed


__all__ = [
    "ActionOutcome",
    "delete_host_path",
    "expire_pending_deletes",
    "mark_rescan_triggered",
    "pending_delete_for",
    "register_pending_delete",
    "remove_pending_delete",
    "run_delete_local",
    "run_ignore_and_delete",
    "run_rescan",
    "run_revert",
    "run_toggle_ignore",
]
