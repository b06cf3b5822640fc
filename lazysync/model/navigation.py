"""Breadcrumb trail datatypes.

Levels are plain ordered containers; filters live on ``NavigationState`` and
are applied to levels as a pure transform by ``core.navigation``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..logic.paths import join_prefix, normalize_dir_prefix
from .types import BrowseEntry, SyncState


@dataclass
class BreadcrumbLevel:
    """One directory listing scoped to ``(folder_id, prefix)``."""

    folder_id: str
    folder_label: str = ""
    folder_path: str = ""
    prefix: str | None = None
    translated_base_path: str = ""
    items: list[BrowseEntry] = field(default_factory=list)
    visible_items: list[BrowseEntry] | None = None
    selected_index: int | None = None
    sync_states: dict[str, SyncState] = field(default_factory=dict)
    ignored_exists: dict[str, bool] = field(default_factory=dict)
    loading: bool = False
    needs_refresh: bool = False

    @property
    def prefix_key(self) -> str:
        return normalize_dir_prefix(self.prefix)

    def display_items(self) -> list[BrowseEntry]:
        """Entries as rendered: the filtered view when a filter applies, else all items."""
        return self.items if self.visible_items is None else self.visible_items

    def selected_entry(self) -> BrowseEntry | None:
        items = self.display_items()
        if self.selected_index is None or not 0 <= self.selected_index < len(items):
            return None
        return items[self.selected_index]

    def selected_name(self) -> str | None:
        entry = self.selected_entry()
        return entry.name if entry is not None else None

    def relative_path(self, name: str) -> str:
        return join_prefix(self.prefix, name)

    def host_path(self, name: str) -> str:
        return f"{self.translated_base_path.rstrip('/')}/{name}"

    def sync_state(self, name: str) -> SyncState | None:
        return self.sync_states.get(name)


@dataclass(frozen=True)
class OutOfSyncFilterState:
    """Active "only out-of-sync entries" filter."""

    origin_level: int
    last_refresh: float
    paths: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SearchFilterState:
    """Active name/glob search filter."""

    query: str
    origin_level: int


@dataclass
class NavigationState:
    """Breadcrumb trail plus focus pointer and folder-list selection.

    ``focus_level`` 0 is the folder-list pane; ``1..len(trail)`` are
    breadcrumb levels.
    """

    trail: list[BreadcrumbLevel] = field(default_factory=list)
    focus_level: int = 0
    folder_selection: int | None = None
    out_of_sync_filter: OutOfSyncFilterState | None = None
    search_filter: SearchFilterState | None = None

    def current_level(self) -> BreadcrumbLevel | None:
        if self.focus_level == 0 or not self.trail:
            return None
        idx = self.focus_level - 1
        return self.trail[idx] if idx < len(self.trail) else None

    def in_breadcrumb_view(self) -> bool:
        return self.focus_level > 0 and bool(self.trail)

    @property
    def folder_id(self) -> str | None:
        return self.trail[0].folder_id if self.trail else None


__all__ = [
    "BreadcrumbLevel",
    "OutOfSyncFilterState",
    "SearchFilterState",
    "NavigationState",
]
