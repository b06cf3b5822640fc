"""Ignore-pattern matching used to find which pattern hides a path."""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase


def ignore_pattern_matches(pattern: str, file_path: str) -> bool:
    """Return whether an ignore ``pattern`` covers ``file_path``.

    Rooted patterns (leading ``/``) match from the folder root only; bare
    patterns also match the final path segment.
    """
    pattern = pattern.strip()
    if not pattern:
        return False
    if pattern == file_path:
        return True
    relative = file_path.lstrip("/")
    if pattern.startswith("/"):
        rooted = pattern[1:]
        return rooted == relative or fnmatchcase(relative, rooted)
    if fnmatchcase(relative, pattern):
        return True
    return fnmatchcase(relative.rsplit("/", 1)[-1], pattern)


def find_matching_patterns(patterns: Iterable[str], file_path: str) -> list[str]:
    return [pattern for pattern in patterns if ignore_pattern_matches(pattern, file_path)]


def ignore_pattern_for(relative_path: str) -> str:
    """Rooted pattern that ignores exactly ``relative_path``."""
    return "/" + relative_path.strip("/")


__all__ = ["ignore_pattern_matches", "find_matching_patterns", "ignore_pattern_for"]
