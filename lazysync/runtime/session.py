"""Control-loop session.

``Session`` is the single owner of navigation and performance state. Other
threads (event listener, fetch workers) only publish into queues that
``drain`` consumes; ``tick`` runs the timer-driven upkeep.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from queue import Empty, Queue

from ..cache.mirror import MirrorCache
from ..core import actions
from ..core.dedup import DedupLedger, FetchKind, dir_key, fetch_key
from ..core.navigation import NavigationStack
from ..core.router import InvalidationRouter
from ..core.staleness import StalenessTracker
from ..errors import ErrorKind, LazySyncError, TransportError, classify_error, format_error_message
from ..log import get_logger
from ..logic.paths import join_prefix, normalize_dir_prefix, parent_prefix, translate_path
from ..logic.performance import should_refresh_filter
from ..logic.search import is_effective_query
from ..logic.selection import next_selection, prev_selection
from ..logic.sorting import SortMode
from ..model.navigation import BreadcrumbLevel, NavigationState
from ..model.performance import PerformanceState
from ..model.types import BrowseEntry, CacheInvalidation, FileInvalidation, Folder, FolderStatus, SyncState
from ..services.api import SyncthingClient
from ..services.events import EventListener
from .config import AppConfig
from .fetch import FetchExecutor, FetchRequest, FetchResult

STATUS_MESSAGE_SECONDS = 3.0
RECONCILE_SECONDS = 300.0
# Key of the folder-list fetch in the FOLDER ledger set; folder ids are never empty.
FOLDER_LIST_KEY = ""

logger = get_logger("session")

_LEDGER_KINDS = {
    "folders": FetchKind.FOLDER,
    "status": FetchKind.FOLDER,
    "browse": FetchKind.BROWSE,
    "sync_state": FetchKind.SYNC_STATE,
    "out_of_sync": FetchKind.OUT_OF_SYNC,
}


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class LevelView:
    """Read-only snapshot of one breadcrumb level."""

    folder_id: str
    prefix: str
    entries: tuple[BrowseEntry, ...]
    sync_states: dict[str, SyncState]
    selected_index: int | None
    loading: bool


@dataclass(frozen=True)
class SessionView:
    """Everything a render collaborator needs for one frame."""

    folders: tuple[Folder, ...]
    folder_statuses: dict[str, FolderStatus]
    last_folder_updates: dict[str, tuple[float, str]]
    folder_selection: int | None
    focus_level: int
    levels: tuple[LevelView, ...]
    sort_mode: SortMode
    sort_reverse: bool
    out_of_sync_filter: bool
    search_query: str
    status_message: str
    connection: ConnectionState
    last_load_ms: float | None
    cache_hit: bool | None


class Session:
    """Owns the mirror, the ledger, the navigation stack and the fetch executor."""

    def __init__(
        self,
        client: SyncthingClient,
        mirror: MirrorCache,
        config: AppConfig,
        *,
        fetcher: FetchExecutor | None = None,
        clock: Callable[[], float] = time.monotonic,
        sort_mode: SortMode = SortMode.SYNC_STATE,
    ) -> None:
        self.client = client
        self.mirror = mirror
        self.config = config
        self.clock = clock
        self.navigation = NavigationState()
        self.performance = PerformanceState()
        self.ledger = DedupLedger(self.performance)
        self.staleness = StalenessTracker(self.performance)
        self.stack = NavigationStack(self.navigation, mirror, sort_mode=sort_mode)
        self.router = InvalidationRouter(mirror, self.ledger, self.navigation)
        self.fetcher = fetcher or FetchExecutor(config.fetch_workers)

        self.invalidations: Queue[CacheInvalidation] = Queue()
        self.watermarks: Queue[int] = Queue()
        self._connection_events: Queue[LazySyncError | None] = Queue()
        self.listener: EventListener | None = None

        self.folders: list[Folder] = mirror.get_folders() or []
        self.folder_statuses: dict[str, FolderStatus] = {}
        # folder id -> (event epoch seconds, file path) of the newest change seen
        self.last_folder_updates: dict[str, tuple[float, str]] = {}
        for folder in self.folders:
            status = mirror.get_status(folder.id)
            if status is not None:
                self.folder_statuses[folder.id] = status
        if self.folders:
            self.navigation.folder_selection = 0

        self.connection = ConnectionState.CONNECTING
        self.last_error_kind: ErrorKind | None = None
        self.status_message = ""
        self.status_message_until = 0.0
        self.dirty = True
        self.pending_out_of_sync: str | None = None
        self._search_dirty = False
        self._last_status_poll = 0.0
        self._last_reconcile = clock()

    # lifecycle

    def start(self, stop: threading.Event | None = None) -> EventListener:
        """Load folders and start the event listener from the persisted watermark."""
        self.refresh_folders()
        listener = EventListener(
            self.client,
            self.mirror.get_last_event_id(self.config.base_url),
            self.invalidations,
            self.watermarks,
            stop=stop,
        )
        listener.on_error = self._connection_events.put
        listener.on_success = lambda: self._connection_events.put(None)
        listener.start()
        self.listener = listener
        return listener

    def close(self) -> None:
        self.fetcher.shutdown(wait=False)
        self.mirror.flush()

    # query surface

    @property
    def sort_mode(self) -> SortMode:
        return self.stack.sort_mode

    @property
    def sort_reverse(self) -> bool:
        return self.stack.sort_reverse

    @property
    def last_load_ms(self) -> float | None:
        return self.performance.last_load_ms

    @property
    def cache_hit(self) -> bool | None:
        return self.performance.cache_hit

    def view(self) -> SessionView:
        levels = tuple(
            LevelView(
                folder_id=level.folder_id,
                prefix=level.prefix_key,
                entries=tuple(level.display_items()),
                sync_states=dict(level.sync_states),
                selected_index=level.selected_index,
                loading=level.loading,
            )
            for level in self.navigation.trail
        )
        search = self.navigation.search_filter
        return SessionView(
            folders=tuple(self.folders),
            folder_statuses=dict(self.folder_statuses),
            last_folder_updates=dict(self.last_folder_updates),
            folder_selection=self.navigation.folder_selection,
            focus_level=self.navigation.focus_level,
            levels=levels,
            sort_mode=self.sort_mode,
            sort_reverse=self.sort_reverse,
            out_of_sync_filter=self.navigation.out_of_sync_filter is not None,
            search_query=search.query if search is not None else "",
            status_message=self.status_message,
            connection=self.connection,
            last_load_ms=self.last_load_ms,
            cache_hit=self.cache_hit,
        )

    def show_toast(self, message: str, now: float | None = None) -> None:
        now = self.clock() if now is None else now
        self.status_message = message
        self.status_message_until = now + STATUS_MESSAGE_SECONDS
        self.dirty = True

    def folder_by_id(self, folder_id: str) -> Folder | None:
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        return None

    def _now(self, now: float | None) -> float:
        return self.clock() if now is None else now

    # fetch dispatch

    def _dispatch(self, request: FetchRequest, work: Callable[[], object]) -> bool:
        kind = _LEDGER_KINDS.get(request.kind)
        if kind is not None and not self.ledger.try_acquire(kind, request.key):
            return False
        self.fetcher.submit(request, work)
        return True

    def refresh_folders(self) -> bool:
        return self._dispatch(FetchRequest(kind="folders", key=FOLDER_LIST_KEY), self.client.get_folders)

    def request_status(self, folder_id: str) -> bool:
        request = FetchRequest(kind="status", folder_id=folder_id, key=fetch_key(folder_id))
        return self._dispatch(request, lambda: self.client.folder_status(folder_id))

    def request_browse(self, folder_id: str, prefix: str | None) -> bool:
        normalized = normalize_dir_prefix(prefix)
        request = FetchRequest(kind="browse", folder_id=folder_id, path=normalized, key=dir_key(folder_id, normalized))
        return self._dispatch(request, lambda: self.client.browse(folder_id, normalized))

    def request_sync_state(self, folder_id: str, path: str) -> bool:
        request = FetchRequest(kind="sync_state", folder_id=folder_id, path=path, key=fetch_key(folder_id, path))
        return self._dispatch(request, lambda: self.client.file_info(folder_id, path))

    def request_out_of_sync(self, folder_id: str) -> bool:
        folder = self.folder_by_id(folder_id)
        receive_only = folder is not None and folder.is_receive_only

        def work() -> set[str]:
            paths = self.client.needed_files(folder_id)
            if receive_only:
                paths |= self.client.local_changed(folder_id)
            return paths

        request = FetchRequest(kind="out_of_sync", folder_id=folder_id, key=fetch_key(folder_id))
        return self._dispatch(request, work)

    def _dispatch_action(self, action: str, folder_id: str, path: str, work: Callable[[], object], host_path: str = "") -> None:
        self.fetcher.submit(FetchRequest(kind=f"action:{action}", folder_id=folder_id, path=path, key=host_path), work)

    def _request_missing_sync_states(self, level: BreadcrumbLevel) -> None:
        for entry in level.items:
            if entry.name not in level.sync_states:
                self.request_sync_state(level.folder_id, level.relative_path(entry.name))

    def _mark_discovered(self, level_folder: str, prefix: str | None, entries: list[BrowseEntry]) -> None:
        for entry in entries:
            if entry.is_dir:
                self.ledger.mark_discovered(level_folder, join_prefix(prefix, entry.name))

    # navigation

    def select_folder(self, index: int) -> None:
        if not self.folders:
            self.navigation.folder_selection = None
            return
        self.navigation.folder_selection = max(0, min(index, len(self.folders) - 1))
        self.dirty = True

    def _translated_base(self, folder: Folder, prefix: str | None) -> str:
        return translate_path(folder.path, normalize_dir_prefix(prefix).rstrip("/"), self.config.path_map)

    def _open_level(self, folder: Folder, prefix: str | None, now: float) -> BreadcrumbLevel:
        started = time.perf_counter()
        level = self.stack.push_level(
            folder.id,
            prefix,
            folder_label=folder.display_name,
            folder_path=folder.path,
            translated_base_path=self._translated_base(folder, prefix),
        )
        if level.loading:
            self.performance.cache_hit = False
            self.request_browse(folder.id, prefix)
        else:
            self.performance.cache_hit = True
            self.performance.last_load_ms = (time.perf_counter() - started) * 1000.0
            self._after_listing(level)
        self.dirty = True
        return level

    def _after_listing(self, level: BreadcrumbLevel) -> None:
        self._mark_discovered(level.folder_id, level.prefix, level.items)
        self._refresh_ignored_exists(level)
        self._request_missing_sync_states(level)
        if self.navigation.search_filter is not None:
            self._prefetch_for_search()

    def open_folder(self, index: int | None = None, now: float | None = None) -> BreadcrumbLevel | None:
        """Replace the trail with the root level of a folder."""
        now = self._now(now)
        if index is not None:
            self.select_folder(index)
        selection = self.navigation.folder_selection
        if selection is None or not 0 <= selection < len(self.folders):
            return None
        folder = self.folders[selection]
        self.performance.record_user_action(now)
        self.pending_out_of_sync = None
        self.stack.clear()
        level = self._open_level(folder, None, now)
        if folder.id not in self.folder_statuses:
            self.request_status(folder.id)
        return level

    def enter_selected(self, now: float | None = None) -> BreadcrumbLevel | None:
        """Open the selected folder, or drill into the selected directory."""
        now = self._now(now)
        if self.navigation.focus_level == 0:
            return self.open_folder(now=now)
        level = self.navigation.current_level()
        if level is None:
            return None
        entry = level.selected_entry()
        if entry is None or not entry.is_dir:
            return None
        folder = self.folder_by_id(level.folder_id)
        if folder is None:
            return None
        self.performance.record_user_action(now)
        self.stack.truncate(self.navigation.focus_level)
        return self._open_level(folder, level.relative_path(entry.name) + "/", now)

    def go_back(self, now: float | None = None) -> None:
        now = self._now(now)
        focus = self.navigation.focus_level
        if focus == 0:
            return
        self.performance.record_user_action(now)
        self.stack.truncate(focus - 1)
        self.stack.set_focus(len(self.navigation.trail))
        if not self.navigation.trail:
            self.pending_out_of_sync = None
        self.dirty = True

    def move_selection(self, delta: int, now: float | None = None) -> None:
        now = self._now(now)
        self.performance.record_user_action(now)
        if self.navigation.focus_level == 0:
            step = next_selection if delta > 0 else prev_selection
            for _ in range(abs(delta)):
                self.navigation.folder_selection = step(self.navigation.folder_selection, len(self.folders))
        else:
            self.stack.move_selection(delta)
        self.dirty = True

    def cycle_sort_mode(self) -> SortMode:
        mode = self.stack.cycle_sort_mode()
        self.dirty = True
        return mode

    def toggle_sort_reverse(self) -> bool:
        reverse = self.stack.toggle_sort_reverse()
        self.dirty = True
        return reverse

    # filters

    def toggle_out_of_sync_filter(self, now: float | None = None) -> None:
        now = self._now(now)
        if self.navigation.focus_level == 0 or not self.navigation.trail:
            return
        if self.navigation.out_of_sync_filter is not None:
            self.stack.clear_out_of_sync_filter()
            self.dirty = True
            return
        if self.pending_out_of_sync is not None:
            self.pending_out_of_sync = None
            return

        folder_id = self.navigation.trail[0].folder_id
        status = self.folder_statuses.get(folder_id)
        if status is not None and not status.has_out_of_sync:
            self.show_toast("All files synced!", now)
            return
        if self.navigation.search_filter is not None:
            self.stack.clear_search()
            self.show_toast("Search cleared - filter active", now)

        paths = self.mirror.get_needed(folder_id)
        if paths is None:
            self.pending_out_of_sync = folder_id
            self.request_out_of_sync(folder_id)
            self.show_toast("Loading out-of-sync files...", now)
            return
        self._activate_out_of_sync(folder_id, paths, now)

    def _activate_out_of_sync(self, folder_id: str, paths: set[str], now: float) -> None:
        self.pending_out_of_sync = None
        if not paths:
            self.show_toast("All files synced!", now)
            return
        self.stack.activate_out_of_sync_filter(paths, now)
        self.dirty = True

    def set_search_query(self, query: str, now: float | None = None) -> None:
        now = self._now(now)
        if self.navigation.focus_level == 0:
            return
        self.performance.record_user_action(now)
        if self.navigation.out_of_sync_filter is not None or self.pending_out_of_sync is not None:
            self.pending_out_of_sync = None
            self.stack.clear_out_of_sync_filter()
            self.show_toast("Filter cleared - search active", now)
        self.stack.set_search_query(query)
        self.performance.last_filter_update = now
        self._search_dirty = False
        if is_effective_query(query):
            self._prefetch_for_search()
        self.dirty = True

    def clear_search(self, toast: str | None = None, now: float | None = None) -> None:
        if self.stack.clear_search():
            self.performance.discovered_dirs.clear()
            self.dirty = True
        if toast:
            self.show_toast(toast, now)

    def _prefetch_for_search(self) -> None:
        """Browse cached-but-unexplored subdirectories so descendant matches can surface."""
        if not self.performance.prefetch_enabled:
            return
        for level in list(self.navigation.trail):
            for prefix, entries in self.mirror.cached_listings(level.folder_id).items():
                for entry in entries:
                    if not entry.is_dir:
                        continue
                    child = join_prefix(prefix, entry.name) + "/"
                    self.ledger.mark_discovered(level.folder_id, child)
                    if not self.mirror.has_browse(level.folder_id, child):
                        self.request_browse(level.folder_id, child)

    # remote actions

    def _selected(self) -> tuple[BreadcrumbLevel, BrowseEntry] | None:
        level = self.navigation.current_level()
        if level is None:
            return None
        entry = level.selected_entry()
        if entry is None:
            return None
        return level, entry

    def toggle_ignore(self, now: float | None = None) -> bool:
        now = self._now(now)
        selected = self._selected()
        if selected is None:
            return False
        level, entry = selected
        relative = level.relative_path(entry.name)
        ignored = level.sync_states.get(entry.name) is SyncState.IGNORED
        if ignored:
            blocking = actions.pending_delete_for(self.performance, level.folder_id, level.host_path(entry.name))
            if blocking is not None:
                self.show_toast(f"Cannot un-ignore: deletion in progress for {blocking}", now)
                return False
        folder_id = level.folder_id
        self._dispatch_action(
            "toggle_ignore",
            folder_id,
            relative,
            lambda: actions.run_toggle_ignore(self.client, folder_id, relative, ignored),
        )
        return True

    def ignore_and_delete(self, now: float | None = None) -> bool:
        now = self._now(now)
        selected = self._selected()
        if selected is None:
            return False
        level, entry = selected
        folder_id = level.folder_id
        relative = level.relative_path(entry.name)
        host_path = level.host_path(entry.name)
        actions.register_pending_delete(self.performance, folder_id, host_path, now)
        self._dispatch_action(
            "ignore_delete",
            folder_id,
            relative,
            lambda: actions.run_ignore_and_delete(self.client, folder_id, relative, host_path),
            host_path=host_path,
        )
        return True

    def delete_local(self, now: float | None = None) -> bool:
        selected = self._selected()
        if selected is None:
            return False
        level, entry = selected
        folder_id = level.folder_id
        relative = level.relative_path(entry.name)
        host_path = level.host_path(entry.name)
        self._dispatch_action(
            "delete",
            folder_id,
            relative,
            lambda: actions.run_delete_local(self.client, folder_id, relative, host_path),
            host_path=host_path,
        )
        return True

    def _action_folder(self) -> Folder | None:
        if self.navigation.focus_level == 0:
            selection = self.navigation.folder_selection
            if selection is None or not 0 <= selection < len(self.folders):
                return None
            return self.folders[selection]
        if not self.navigation.trail:
            return None
        return self.folder_by_id(self.navigation.trail[0].folder_id)

    def revert(self) -> bool:
        folder = self._action_folder()
        if folder is None:
            return False
        status = self.folder_statuses.get(folder.id)
        has_local = status is not None and status.has_local_changes
        receive_only = folder.is_receive_only
        self._dispatch_action(
            "revert",
            folder.id,
            "",
            lambda: actions.run_revert(self.client, folder.id, receive_only, has_local),
        )
        return True

    def rescan(self) -> bool:
        folder = self._action_folder()
        if folder is None:
            return False
        self._dispatch_action("rescan", folder.id, "", lambda: actions.run_rescan(self.client, folder.id))
        return True

    # channel draining

    def drain(self, now: float | None = None) -> int:
        """Consume every queued invalidation, watermark and fetch result."""
        now = self._now(now)
        handled = 0

        # The listener enqueues a batch's invalidations before its watermark,
        # so every watermark read here is covered by the invalidation drain below.
        watermark: int | None = None
        while True:
            try:
                watermark = self.watermarks.get_nowait()
            except Empty:
                break
            handled += 1

        touched: set[str] = set()
        while True:
            try:
                invalidation = self.invalidations.get_nowait()
            except Empty:
                break
            logger.info("Invalidated %s", invalidation)
            if self.router.apply(invalidation):
                self.dirty = True
            self._record_folder_update(invalidation)
            touched.add(invalidation.folder_id)
            handled += 1
        for folder_id in touched:
            self.staleness.mark_for_polling(folder_id)
            if self._filter_folder() == folder_id and self.navigation.out_of_sync_filter is not None:
                self.request_out_of_sync(folder_id)

        if watermark is not None:
            logger.info("Event watermark %d", watermark)
            self.mirror.put_last_event_id(self.config.base_url, watermark)

        while True:
            try:
                event = self._connection_events.get_nowait()
            except Empty:
                break
            self._set_connection(event)

        for result in self.fetcher.drain_results():
            self._handle_result(result, now)
            handled += 1
        return handled

    def _record_folder_update(self, invalidation: CacheInvalidation) -> None:
        """Remember the newest changed file per folder; directory events are skipped."""
        if not isinstance(invalidation, FileInvalidation) or invalidation.timestamp is None:
            return
        previous = self.last_folder_updates.get(invalidation.folder_id)
        if previous is None or invalidation.timestamp >= previous[0]:
            self.last_folder_updates[invalidation.folder_id] = (invalidation.timestamp, invalidation.file_path)
            self.dirty = True

    def _filter_folder(self) -> str | None:
        return self.navigation.trail[0].folder_id if self.navigation.trail else None

    def _set_connection(self, error: LazySyncError | None) -> None:
        if error is None:
            if self.connection is not ConnectionState.CONNECTED:
                self.connection = ConnectionState.CONNECTED
                self.last_error_kind = None
                self.dirty = True
            return
        kind = classify_error(error)
        if isinstance(error, TransportError) or kind is not ErrorKind.OTHER:
            if self.connection is not ConnectionState.DISCONNECTED or self.last_error_kind is not kind:
                self.connection = ConnectionState.DISCONNECTED
                self.last_error_kind = kind
                self.dirty = True

    # fetch results

    def _handle_result(self, result: FetchResult, now: float) -> None:
        request = result.request
        kind = _LEDGER_KINDS.get(request.kind)
        if kind is not None:
            self.ledger.release(kind, request.key)

        if request.kind.startswith("action:"):
            self._handle_action_result(result, now)
            return
        if not result.ok:
            self._handle_fetch_error(result, now)
            return
        self._set_connection(None)

        if request.kind == "folders":
            self._apply_folders(result.value)  # type: ignore[arg-type]
        elif request.kind == "status":
            self._apply_status(request.folder_id, result.value)  # type: ignore[arg-type]
        elif request.kind == "browse":
            self._apply_browse(request.folder_id, request.path, result.value, result.elapsed_ms)  # type: ignore[arg-type]
        elif request.kind == "sync_state":
            self._apply_sync_state(request.folder_id, request.path, result.value)  # type: ignore[arg-type]
        elif request.kind == "out_of_sync":
            self._apply_out_of_sync(request.folder_id, result.value, now)  # type: ignore[arg-type]

    def _handle_fetch_error(self, result: FetchResult, now: float) -> None:
        request = result.request
        error = result.error
        assert error is not None
        logger.warning("%s fetch for %s failed: %s", request.kind, request.key or "folders", error)
        self._set_connection(error)
        if request.kind == "browse":
            level = self.stack.find_level(request.folder_id, request.path)
            if level is not None:
                level.loading = False
        if request.kind == "out_of_sync" and self.pending_out_of_sync == request.folder_id:
            self.pending_out_of_sync = None
        if request.kind != "sync_state":
            self.show_toast(f"Error: {format_error_message(error)}", now)
        self.dirty = True

    def _apply_folders(self, folders: list[Folder]) -> None:
        selected = self.navigation.folder_selection
        selected_id = self.folders[selected].id if selected is not None and selected < len(self.folders) else None
        self.folders = list(folders)
        self.mirror.put_folders(self.folders)
        known = {folder.id for folder in self.folders}
        for folder_id in list(self.folder_statuses):
            if folder_id not in known:
                del self.folder_statuses[folder_id]
                self.staleness.forget(folder_id)
        for folder_id in list(self.last_folder_updates):
            if folder_id not in known:
                del self.last_folder_updates[folder_id]
        index = next((i for i, folder in enumerate(self.folders) if folder.id == selected_id), None)
        self.navigation.folder_selection = index if index is not None else (0 if self.folders else None)
        for folder in self.folders:
            self.request_status(folder.id)
        self.dirty = True

    def _apply_status(self, folder_id: str, status: FolderStatus) -> None:
        observation = self.staleness.observe(folder_id, status)
        self.folder_statuses[folder_id] = status
        self.mirror.put_status(folder_id, status)
        if observation.sequence_changed:
            self.invalidate_and_refresh_folder(folder_id)
        elif observation.receive_only_changed:
            for level in self.stack.levels_for(folder_id):
                level.needs_refresh = True
        self.dirty = True

    def invalidate_and_refresh_folder(self, folder_id: str) -> None:
        """Drop the cached tree of a folder and refetch every level showing it."""
        self.mirror.evict_folder(folder_id)
        self.ledger.forget_discovered_under(folder_id, "")
        for level in self.stack.levels_for(folder_id):
            level.needs_refresh = True
        if self._filter_folder() == folder_id and (
            self.navigation.out_of_sync_filter is not None or self.pending_out_of_sync == folder_id
        ):
            self.request_out_of_sync(folder_id)

    def _apply_browse(self, folder_id: str, prefix: str, entries: list[BrowseEntry], elapsed_ms: float) -> None:
        self.mirror.put_browse(folder_id, prefix, entries)
        self._mark_discovered(folder_id, prefix, entries)
        level = self.stack.find_level(folder_id, prefix)
        if level is None:
            # search prefetch
            self._search_dirty = self.navigation.search_filter is not None
            if self._search_dirty:
                self._prefetch_for_search()
            return
        was_loading = level.loading
        self.stack.set_level_items(level, entries, self.mirror.get_sync_states(folder_id, prefix, (e.name for e in entries)))
        if was_loading:
            self.performance.last_load_ms = elapsed_ms
            self.performance.cache_hit = False
        self._after_listing(level)
        self.dirty = True

    def _apply_sync_state(self, folder_id: str, path: str, state: SyncState) -> None:
        self.mirror.put_sync_state(folder_id, path, state)
        level = self.stack.find_level(folder_id, parent_prefix(path))
        if level is None:
            return
        name = path[len(parent_prefix(path)):]
        self.stack.update_sync_states(level, {name: state})
        if state is SyncState.IGNORED:
            level.ignored_exists[name] = Path(level.host_path(name)).exists()
        else:
            level.ignored_exists.pop(name, None)
        self.dirty = True

    def _refresh_ignored_exists(self, level: BreadcrumbLevel) -> None:
        level.ignored_exists = {
            name: Path(level.host_path(name)).exists()
            for name, state in level.sync_states.items()
            if state is SyncState.IGNORED
        }

    def _apply_out_of_sync(self, folder_id: str, paths: set[str], now: float) -> None:
        self.mirror.put_needed(folder_id, paths)
        if self._filter_folder() != folder_id:
            self.pending_out_of_sync = None
            return
        if self.pending_out_of_sync == folder_id:
            self._activate_out_of_sync(folder_id, paths, now)
        elif self.navigation.out_of_sync_filter is not None:
            self.stack.update_out_of_sync_paths(paths, now)
            self.dirty = True

    def _handle_action_result(self, result: FetchResult, now: float) -> None:
        request = result.request
        action = request.kind.split(":", 1)[1]
        if not result.ok:
            assert result.error is not None
            if action == "ignore_delete":
                actions.remove_pending_delete(self.performance, request.key)
            logger.warning("%s on %s failed: %s", action, request.path or request.folder_id, result.error)
            self.show_toast(f"Error: {format_error_message(result.error)}", now)
            return

        outcome: actions.ActionOutcome = result.value  # type: ignore[assignment]
        self.show_toast(outcome.message, now)
        self.staleness.mark_for_polling(outcome.folder_id)
        if outcome.rescan_triggered:
            actions.mark_rescan_triggered(self.performance, outcome.host_path)
        elif action == "ignore_delete":
            actions.remove_pending_delete(self.performance, outcome.host_path)
        if not outcome.path:
            return

        containing = parent_prefix(outcome.path)
        name = outcome.path[len(containing):]
        level = self.stack.find_level(outcome.folder_id, containing)
        if outcome.ignored:
            self.mirror.put_sync_state(outcome.folder_id, outcome.path, SyncState.IGNORED)
            if level is not None:
                self.stack.update_sync_states(level, {name: SyncState.IGNORED})
                level.ignored_exists[name] = Path(level.host_path(name)).exists()
        else:
            if level is not None:
                level.sync_states.pop(name, None)
                level.ignored_exists.pop(name, None)
                self.stack.sort_level(level)
            self.request_sync_state(outcome.folder_id, outcome.path)
        if action == "delete" and level is not None:
            level.needs_refresh = True

    # timers

    def tick(self, now: float | None = None) -> None:
        """Timer-driven upkeep: toasts, refetches, status polling, pending deletes and flushes."""
        now = self._now(now)
        if self.status_message and now >= self.status_message_until:
            self.status_message = ""
            self.status_message_until = 0.0
            self.dirty = True

        for level in self.navigation.trail:
            if level.needs_refresh and self.request_browse(level.folder_id, level.prefix):
                level.needs_refresh = False

        if now - self._last_status_poll >= self.config.status_poll_seconds:
            self._last_status_poll = now
            for folder_id in self.staleness.folders_to_poll():
                self.request_status(folder_id)

        if now - self._last_reconcile >= RECONCILE_SECONDS:
            self._last_reconcile = now
            self.reconcile()

        if actions.expire_pending_deletes(self.performance, now):
            self.dirty = True

        if self._search_dirty and should_refresh_filter(self.performance.last_filter_update, now):
            self._search_dirty = False
            self.performance.last_filter_update = now
            self.stack.refilter_all()
            self.dirty = True

        self.mirror.writer.maybe_flush(now)

    def reconcile(self) -> None:
        """Re-check every folder's status to bound divergence after missed events."""
        logger.debug("Periodic reconciliation of %d folders", len(self.folders))
        for folder in self.folders:
            self.request_status(folder.id)


__all__ = [
    "ConnectionState",
    "LevelView",
    "RECONCILE_SECONDS",
    "STATUS_MESSAGE_SECONDS",
    "Session",
    "SessionView",
]
