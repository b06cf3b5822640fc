"""Comparator and sort helpers for directory listings."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from functools import cmp_to_key

from ..model.types import BrowseEntry, SyncState
from .sync_states import sync_state_priority
from .timestamps import parse_rfc3339


class SortMode(str, Enum):
    NAME = "name"
    SYNC_STATE = "sync_state"
    MODIFIED = "modified"
    SIZE = "size"


SORT_MODE_CYCLE = (SortMode.SYNC_STATE, SortMode.NAME, SortMode.MODIFIED, SortMode.SIZE)


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def modified_epoch(entry: BrowseEntry) -> float:
    """Modification time in epoch seconds; missing or unparsable times sort as oldest."""
    parsed = parse_rfc3339(entry.mod_time)
    return float("-inf") if parsed is None else parsed


def compare_entries(
    a: BrowseEntry,
    b: BrowseEntry,
    mode: SortMode,
    reverse: bool = False,
    sync_states: Mapping[str, SyncState] | None = None,
) -> int:
    """Three-way compare two entries.

    Directories come first, then the mode key, then case-insensitive name and
    finally the exact name, so the order is total over unique names. The
    reverse flag negates the whole result.
    """
    states = sync_states or {}
    result = _cmp(not a.is_dir, not b.is_dir)
    if result == 0:
        if mode is SortMode.SYNC_STATE:
            result = _cmp(
                sync_state_priority(states.get(a.name)),
                sync_state_priority(states.get(b.name)),
            )
        elif mode is SortMode.MODIFIED:
            # newest first
            result = _cmp(modified_epoch(b), modified_epoch(a))
        elif mode is SortMode.SIZE:
            # largest first
            result = _cmp(b.size, a.size)
    if result == 0:
        result = _cmp(a.name.lower(), b.name.lower())
    if result == 0:
        result = _cmp(a.name, b.name)
    return -result if reverse else result


def sort_entries(
    entries: Sequence[BrowseEntry],
    mode: SortMode,
    reverse: bool = False,
    sync_states: Mapping[str, SyncState] | None = None,
) -> list[BrowseEntry]:
    """Return a new list sorted by ``compare_entries``."""
    return sorted(
        entries,
        key=cmp_to_key(lambda a, b: compare_entries(a, b, mode, reverse, sync_states)),
    )


def next_sort_mode(mode: SortMode) -> SortMode:
    idx = SORT_MODE_CYCLE.index(mode)
    return SORT_MODE_CYCLE[(idx + 1) % len(SORT_MODE_CYCLE)]


__all__ = ["SortMode", "SORT_MODE_CYCLE", "compare_entries", "modified_epoch", "sort_entries", "next_sort_mode"]
