"""Selection index helpers with wrap-around behavior."""

from __future__ import annotations

from collections.abc import Sequence

from ..model.types import BrowseEntry


def next_selection(current: int | None, list_len: int) -> int | None:
    """Advance selection, wrapping to the first entry after the last one."""
    if list_len <= 0:
        return None
    if current is None or current >= list_len - 1:
        return 0
    return current + 1


def prev_selection(current: int | None, list_len: int) -> int | None:
    """Move selection back, wrapping to the last entry before the first one."""
    if list_len <= 0:
        return None
    if current is None or current <= 0 or current > list_len - 1:
        return list_len - 1
    return current - 1


def find_index_by_name(entries: Sequence[BrowseEntry], name: str) -> int | None:
    """Return the index of the entry named ``name`` (case-sensitive)."""
    for idx, entry in enumerate(entries):
        if entry.name == name:
            return idx
    return None


def restore_selection(entries: Sequence[BrowseEntry], selected_name: str | None) -> int | None:
    """Re-locate ``selected_name`` after a mutation, falling back to first-or-none."""
    if not entries:
        return None
    if selected_name is not None:
        idx = find_index_by_name(entries, selected_name)
        if idx is not None:
            return idx
    return 0


__all__ = ["next_selection", "prev_selection", "find_index_by_name", "restore_selection"]
