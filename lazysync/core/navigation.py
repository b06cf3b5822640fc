"""Breadcrumb navigation stack.

Filters are state on ``NavigationState`` and are applied as a pure transform
whenever a level is created, its items change, or the filter set changes.
Every sort or filter mutation captures the selected entry's name first and
re-locates it afterwards.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

from ..cache.mirror import MirrorCache
from ..log import get_logger
from ..logic.paths import normalize_dir_prefix
from ..logic.selection import next_selection, prev_selection, restore_selection
from ..logic.sorting import SortMode, next_sort_mode, sort_entries
from ..model.navigation import (
    BreadcrumbLevel,
    NavigationState,
    OutOfSyncFilterState,
    SearchFilterState,
)
from ..model.types import BrowseEntry, SyncState
from .filters import filter_out_of_sync, filter_search

logger = get_logger("navigation")


def unique_by_name(entries: Iterable[BrowseEntry]) -> list[BrowseEntry]:
    """Drop later duplicates so names stay unique within a level."""
    seen: set[str] = set()
    out: list[BrowseEntry] = []
    for entry in entries:
        if entry.name in seen:
            continue
        seen.add(entry.name)
        out.append(entry)
    return out


class NavigationStack:
    """Owns trail mutation, sort order and cross-level filters."""

    def __init__(
        self,
        state: NavigationState,
        mirror: MirrorCache,
        *,
        sort_mode: SortMode = SortMode.SYNC_STATE,
        search_paths: Callable[[str], Iterable[str]] | None = None,
    ) -> None:
        self.state = state
        self.mirror = mirror
        self.sort_mode = sort_mode
        self.sort_reverse = False
        self._search_paths = search_paths or mirror.cached_paths

    @property
    def trail(self) -> list[BreadcrumbLevel]:
        return self.state.trail

    def current_level(self) -> BreadcrumbLevel | None:
        return self.state.current_level()

    # trail mutation

    def push_level(
        self,
        folder_id: str,
        prefix: str | None = None,
        *,
        folder_label: str = "",
        folder_path: str = "",
        translated_base_path: str = "",
    ) -> BreadcrumbLevel:
        """Append a level populated from the mirror and focus it.

        A level whose listing is not cached is created empty with
        ``loading`` set; the caller dispatches the fetch. Active filters are
        applied before the level is appended, so it is never observable
        unfiltered.
        """
        level = BreadcrumbLevel(
            folder_id=folder_id,
            folder_label=folder_label,
            folder_path=folder_path,
            prefix=normalize_dir_prefix(prefix) or None,
            translated_base_path=translated_base_path,
        )
        cached = self.mirror.get_browse(folder_id, prefix)
        if cached is None:
            level.loading = True
        else:
            level.items = unique_by_name(cached)
            level.sync_states = self.mirror.get_sync_states(
                folder_id, prefix, (entry.name for entry in level.items)
            )
        level.items = self._sorted(level)
        self._apply_filters(level, len(self.trail) + 1)
        level.selected_index = restore_selection(level.display_items(), None)
        self.trail.append(level)
        self.state.focus_level = len(self.trail)
        logger.debug("Pushed %s:%s (cached=%s)", folder_id, level.prefix_key, cached is not None)
        return level

    def pop_level(self) -> BreadcrumbLevel | None:
        """Remove the last level, clamp focus and drop filters that no longer apply."""
        if not self.trail:
            return None
        level = self.trail.pop()
        self.state.focus_level = min(self.state.focus_level, len(self.trail))
        search = self.state.search_filter
        if search is not None and search.origin_level > len(self.trail):
            self.clear_search()
        if not self.trail:
            self.state.out_of_sync_filter = None
        return level

    def truncate(self, length: int) -> None:
        """Pop levels until at most ``length`` remain."""
        while len(self.trail) > max(0, length):
            self.pop_level()

    def clear(self) -> None:
        self.truncate(0)
        self.state.out_of_sync_filter = None
        self.state.search_filter = None
        self.state.focus_level = 0

    def set_focus(self, level: int) -> None:
        """Move the focus pointer only; levels are untouched."""
        self.state.focus_level = max(0, min(level, len(self.trail)))

    def levels_for(self, folder_id: str) -> list[BreadcrumbLevel]:
        return [level for level in self.trail if level.folder_id == folder_id]

    def find_level(self, folder_id: str, prefix: str | None) -> BreadcrumbLevel | None:
        key = normalize_dir_prefix(prefix)
        for level in self.trail:
            if level.folder_id == folder_id and level.prefix_key == key:
                return level
        return None

    # level content

    def _level_number(self, level: BreadcrumbLevel) -> int:
        for idx, candidate in enumerate(self.trail):
            if candidate is level:
                return idx + 1
        return len(self.trail) + 1

    def _mutate(self, level: BreadcrumbLevel, change: Callable[[], None]) -> None:
        selected_name = level.selected_name()
        change()
        level.selected_index = restore_selection(level.display_items(), selected_name)

    def set_level_items(
        self,
        level: BreadcrumbLevel,
        entries: Iterable[BrowseEntry],
        sync_states: Mapping[str, SyncState] | None = None,
    ) -> None:
        """Replace a level's listing from a fetch result."""

        def change() -> None:
            level.items = unique_by_name(entries)
            names = {entry.name for entry in level.items}
            merged = {name: state for name, state in level.sync_states.items() if name in names}
            if sync_states:
                merged.update({name: state for name, state in sync_states.items() if name in names})
            level.sync_states = merged
            level.loading = False
            level.items = self._sorted(level)
            self._apply_filters(level, self._level_number(level))

        self._mutate(level, change)

    def update_sync_states(self, level: BreadcrumbLevel, states: Mapping[str, SyncState]) -> None:
        def change() -> None:
            level.sync_states.update(states)
            if self.sort_mode is SortMode.SYNC_STATE:
                level.items = self._sorted(level)
            self._apply_filters(level, self._level_number(level))

        self._mutate(level, change)

    # sorting

    def _sorted(self, level: BreadcrumbLevel) -> list[BrowseEntry]:
        return sort_entries(level.items, self.sort_mode, self.sort_reverse, level.sync_states)

    def sort_level(self, level: BreadcrumbLevel) -> None:
        def change() -> None:
            level.items = self._sorted(level)
            self._apply_filters(level, self._level_number(level))

        self._mutate(level, change)

    def sort_all(self) -> None:
        for level in self.trail:
            self.sort_level(level)

    def set_sort_mode(self, mode: SortMode) -> None:
        """Switch mode; the reverse flag always resets."""
        self.sort_mode = mode
        self.sort_reverse = False
        self.sort_all()

    def cycle_sort_mode(self) -> SortMode:
        self.set_sort_mode(next_sort_mode(self.sort_mode))
        return self.sort_mode

    def toggle_sort_reverse(self) -> bool:
        self.sort_reverse = not self.sort_reverse
        self.sort_all()
        return self.sort_reverse

    # filters

    def _apply_filters(self, level: BreadcrumbLevel, level_number: int) -> None:
        """Recompute ``visible_items`` from ``items`` and the active filters."""
        visible: list[BrowseEntry] | None = None
        oos = self.state.out_of_sync_filter
        if oos is not None:
            visible = filter_out_of_sync(level.items, level.prefix, oos.paths)
        search = self.state.search_filter
        if search is not None and level_number >= search.origin_level:
            source = level.items if visible is None else visible
            visible = filter_search(source, level.prefix, search.query, self._search_paths(level.folder_id))
        level.visible_items = visible

    def refilter_level(self, level: BreadcrumbLevel) -> None:
        self._mutate(level, lambda: self._apply_filters(level, self._level_number(level)))

    def refilter_all(self) -> None:
        for level in self.trail:
            self.refilter_level(level)

    def activate_out_of_sync_filter(self, paths: Iterable[str], now: float) -> OutOfSyncFilterState:
        state = OutOfSyncFilterState(
            origin_level=self.state.focus_level,
            last_refresh=now,
            paths=frozenset(paths),
        )
        self.state.out_of_sync_filter = state
        self.refilter_all()
        return state

    def update_out_of_sync_paths(self, paths: Iterable[str], now: float) -> None:
        current = self.state.out_of_sync_filter
        if current is None:
            return
        self.state.out_of_sync_filter = OutOfSyncFilterState(
            origin_level=current.origin_level,
            last_refresh=now,
            paths=frozenset(paths),
        )
        self.refilter_all()

    def clear_out_of_sync_filter(self) -> bool:
        if self.state.out_of_sync_filter is None:
            return False
        self.state.out_of_sync_filter = None
        self.refilter_all()
        return True

    def set_search_query(self, query: str) -> SearchFilterState:
        current = self.state.search_filter
        origin = current.origin_level if current is not None else max(1, self.state.focus_level)
        state = SearchFilterState(query=query, origin_level=origin)
        self.state.search_filter = state
        self.refilter_all()
        return state

    def clear_search(self) -> bool:
        if self.state.search_filter is None:
            return False
        self.state.search_filter = None
        self.refilter_all()
        return True

    # selection

    def move_selection(self, delta: int) -> int | None:
        level = self.current_level()
        if level is None:
            return None
        count = len(level.display_items())
        step = next_selection if delta > 0 else prev_selection
        for _ in range(abs(delta)):
            level.selected_index = step(level.selected_index, count)
        return level.selected_index


__all__ = ["NavigationStack", "unique_by_name"]
