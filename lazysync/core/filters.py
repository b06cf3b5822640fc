"""Pure filter transforms applied to breadcrumb levels."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..logic.paths import join_prefix
from ..logic.search import is_effective_query, search_matches
from ..model.types import BrowseEntry


def is_out_of_sync(entry: BrowseEntry, full_path: str, paths: frozenset[str] | set[str]) -> bool:
    """Files match exactly; directories match when any out-of-sync path lies beneath them."""
    if not entry.is_dir:
        return full_path in paths
    dir_prefix = full_path.rstrip("/") + "/"
    return any(path.startswith(dir_prefix) for path in paths)


def filter_out_of_sync(
    entries: Sequence[BrowseEntry],
    prefix: str | None,
    paths: frozenset[str] | set[str],
) -> list[BrowseEntry]:
    return [entry for entry in entries if is_out_of_sync(entry, join_prefix(prefix, entry.name), paths)]


def filter_search(
    entries: Sequence[BrowseEntry],
    prefix: str | None,
    query: str,
    cached_paths: Iterable[str] = (),
) -> list[BrowseEntry]:
    """Keep entries whose path matches ``query`` or that contain a cached matching descendant.

    Queries too short to be effective keep every entry.
    """
    if not is_effective_query(query):
        return list(entries)
    matching = [path for path in cached_paths if search_matches(query, path)]
    kept: list[BrowseEntry] = []
    for entry in entries:
        full_path = join_prefix(prefix, entry.name)
        if search_matches(query, full_path):
            kept.append(entry)
            continue
        if entry.is_dir:
            dir_prefix = full_path + "/"
            if any(path.startswith(dir_prefix) for path in matching):
                kept.append(entry)
    return kept


__all__ = ["filter_out_of_sync", "filter_search", "is_out_of_sync"]
