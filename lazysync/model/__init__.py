"""Domain model: daemon datatypes, navigation trail and operational state."""

from __future__ import annotations

from .navigation import BreadcrumbLevel, NavigationState, OutOfSyncFilterState, SearchFilterState
from .performance import PendingDeleteInfo, PerformanceState
from .types import (
    BrowseEntry,
    CacheInvalidation,
    DirectoryInvalidation,
    EntryType,
    FileInvalidation,
    Folder,
    FolderStatus,
    SyncState,
)

__all__ = [
    "BreadcrumbLevel",
    "NavigationState",
    "OutOfSyncFilterState",
    "SearchFilterState",
    "PendingDeleteInfo",
    "PerformanceState",
    "BrowseEntry",
    "CacheInvalidation",
    "DirectoryInvalidation",
    "EntryType",
    "FileInvalidation",
    "Folder",
    "FolderStatus",
    "SyncState",
]
