"""Case-insensitive glob/substring matching for the search filter."""

from __future__ import annotations

from fnmatch import fnmatchcase

MIN_QUERY_LENGTH = 2


def search_matches(query: str, path: str) -> bool:
    """Return whether ``path`` matches ``query``.

    The query is tried as a glob against the whole path and against every
    path segment, then as a plain substring. Empty queries match everything.
    """
    if not query:
        return True
    query_lower = query.lower()
    path_lower = path.lower()
    if fnmatchcase(path_lower, query_lower):
        return True
    for segment in path_lower.split("/"):
        if segment and fnmatchcase(segment, query_lower):
            return True
    return query_lower in path_lower


def is_effective_query(query: str) -> bool:
    return len(query) >= MIN_QUERY_LENGTH


__all__ = ["MIN_QUERY_LENGTH", "search_matches", "is_effective_query"]
