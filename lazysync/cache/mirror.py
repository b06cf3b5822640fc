"""Local mirror of the daemon's directory tree.

Key layout on top of the ``KeyValueStore``::

    browse:<folder>:<prefix>        directory listing ("" is the folder root)
    sync:<folder>:<path>            per-entry sync state
    need:<folder>                   out-of-sync paths
    status:<folder>                 last folder status snapshot
    folders                         folder list
    events:last_id:<base_url>       event-feed watermark

Reads go through an in-memory layer; writes land there immediately and reach
the store through the ``BatchWriter``.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..log import get_logger
from ..logic.paths import join_prefix, normalize_dir_prefix, parent_prefix
from ..model.types import BrowseEntry, Folder, FolderStatus, SyncState
from .batch import BatchWriter
from .store import KeyValueStore

logger = get_logger("cache.mirror")

FOLDERS_KEY = "folders"


def browse_key(folder_id: str, prefix: str | None) -> str:
    return f"browse:{folder_id}:{normalize_dir_prefix(prefix)}"


def sync_key(folder_id: str, path: str) -> str:
    return f"sync:{folder_id}:{path}"


def need_key(folder_id: str) -> str:
    return f"need:{folder_id}"


def status_key(folder_id: str) -> str:
    return f"status:{folder_id}"


def watermark_key(base_url: str) -> str:
    return f"events:last_id:{base_url.rstrip('/')}"


class MirrorCache:
    """Typed accessors and eviction rules over the durable store."""

    def __init__(self, store: KeyValueStore, writer: BatchWriter | None = None) -> None:
        self.store = store
        self.writer = writer or BatchWriter(store)
        self._memory: dict[str, object] = {}

    def _get(self, key: str) -> object | None:
        if key in self._memory:
            return self._memory[key]
        value = self.writer.pending_value(key)
        if value is None:
            value = self.store.get(key)
        if value is not None:
            self._memory[key] = value
        return value

    def _put(self, key: str, value: object) -> None:
        self._memory[key] = value
        self.writer.enqueue(key, value)

    def _invalidate(self, key: str) -> None:
        self._memory.pop(key, None)
        self.writer.discard(key)
        self.store.invalidate(key)

    def _invalidate_prefix(self, prefix: str) -> None:
        for key in [key for key in self._memory if key.startswith(prefix)]:
            del self._memory[key]
        self.writer.discard_prefix(prefix)
        self.store.invalidate_prefix(prefix)

    # listings

    def get_browse(self, folder_id: str, prefix: str | None) -> list[BrowseEntry] | None:
        raw = self._get(browse_key(folder_id, prefix))
        if not isinstance(raw, list):
            return None
        return [BrowseEntry.from_json(item) for item in raw if isinstance(item, dict)]

    def put_browse(self, folder_id: str, prefix: str | None, entries: Iterable[BrowseEntry]) -> None:
        self._put(browse_key(folder_id, prefix), [entry.to_json() for entry in entries])

    def has_browse(self, folder_id: str, prefix: str | None) -> bool:
        return self._get(browse_key(folder_id, prefix)) is not None

    def cached_listings(self, folder_id: str) -> dict[str, list[BrowseEntry]]:
        """Listings of ``folder_id`` loaded during this session, keyed by prefix."""
        head = browse_key(folder_id, None)
        out: dict[str, list[BrowseEntry]] = {}
        for key, raw in self._memory.items():
            if not key.startswith(head) or not isinstance(raw, list):
                continue
            out[key[len(head):]] = [BrowseEntry.from_json(item) for item in raw if isinstance(item, dict)]
        return out

    def cached_paths(self, folder_id: str) -> list[str]:
        """Full paths of every entry in this session's cached listings."""
        paths: list[str] = []
        for prefix, entries in self.cached_listings(folder_id).items():
            paths.extend(join_prefix(prefix, entry.name) for entry in entries)
        return paths

    # sync states

    def get_sync_state(self, folder_id: str, path: str) -> SyncState | None:
        raw = self._get(sync_key(folder_id, path))
        return SyncState.parse(raw) if raw is not None else None

    def put_sync_state(self, folder_id: str, path: str, state: SyncState) -> None:
        self._put(sync_key(folder_id, path), state.value)

    def get_sync_states(self, folder_id: str, prefix: str | None, names: Iterable[str]) -> dict[str, SyncState]:
        states: dict[str, SyncState] = {}
        for name in names:
            state = self.get_sync_state(folder_id, join_prefix(prefix, name))
            if state is not None:
                states[name] = state
        return states

    # folder-level snapshots

    def get_needed(self, folder_id: str) -> set[str] | None:
        raw = self._get(need_key(folder_id))
        if not isinstance(raw, list):
            return None
        return {str(path) for path in raw}

    def put_needed(self, folder_id: str, paths: Iterable[str]) -> None:
        self._put(need_key(folder_id), sorted(paths))

    def get_status(self, folder_id: str) -> FolderStatus | None:
        raw = self._get(status_key(folder_id))
        return FolderStatus.from_json(raw) if isinstance(raw, dict) else None

    def put_status(self, folder_id: str, status: FolderStatus) -> None:
        self._put(status_key(folder_id), status.to_json())

    def get_folders(self) -> list[Folder] | None:
        raw = self._get(FOLDERS_KEY)
        if not isinstance(raw, list):
            return None
        return [Folder.from_json(item) for item in raw if isinstance(item, dict)]

    def put_folders(self, folders: Iterable[Folder]) -> None:
        self._put(FOLDERS_KEY, [folder.to_json() for folder in folders])

    def get_last_event_id(self, base_url: str) -> int:
        raw = self._get(watermark_key(base_url))
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            return 0
        return raw

    def put_last_event_id(self, base_url: str, event_id: int) -> None:
        self._put(watermark_key(base_url), int(event_id))

    # eviction

    def evict_file(self, folder_id: str, file_path: str) -> None:
        """Drop the sync state of ``file_path`` and the listing that contains it."""
        path = file_path.strip("/")
        if not path:
            return
        self._invalidate(sync_key(folder_id, path))
        self._invalidate(browse_key(folder_id, parent_prefix(path)))

    def evict_directory(self, folder_id: str, dir_path: str) -> None:
        """Drop the listing of ``dir_path`` and everything nested under it.

        Matching is segment-exact: evicting ``Messages`` leaves ``Message2/``
        alone. An empty path evicts the whole folder tree.
        """
        prefix = normalize_dir_prefix(dir_path)
        if not prefix:
            self._invalidate_prefix(browse_key(folder_id, None))
            self._invalidate_prefix(sync_key(folder_id, ""))
            return
        self._invalidate_prefix(browse_key(folder_id, prefix))
        self._invalidate(sync_key(folder_id, prefix.rstrip("/")))
        self._invalidate_prefix(sync_key(folder_id, prefix))

    def evict_folder(self, folder_id: str) -> None:
        """Drop every listing, sync state and out-of-sync set of ``folder_id``."""
        logger.debug("Evicting cached tree of folder %s", folder_id)
        self.evict_directory(folder_id, "")
        self._invalidate(need_key(folder_id))

    def flush(self) -> None:
        self.writer.flush()


__all__ = [
    "FOLDERS_KEY",
    "MirrorCache",
    "browse_key",
    "sync_key",
    "need_key",
    "status_key",
    "watermark_key",
]
