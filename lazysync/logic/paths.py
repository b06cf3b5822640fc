"""Folder-relative path helpers.

Directory prefixes are stored with a trailing ``/`` (``"Messages/"``) and the
folder root is the empty prefix, matching the daemon's browse API.
"""

from __future__ import annotations

from collections.abc import Mapping


def normalize_dir_prefix(path: str | None) -> str:
    """Return ``path`` as a directory prefix: ``""`` for root, else ``"a/b/"``."""
    if not path:
        return ""
    stripped = path.strip("/")
    return f"{stripped}/" if stripped else ""


def join_prefix(prefix: str | None, name: str) -> str:
    """Full folder-relative path of ``name`` inside ``prefix``."""
    return f"{normalize_dir_prefix(prefix)}{name}"


def parent_prefix(file_path: str) -> str:
    """Directory prefix containing ``file_path`` (``""`` for top-level entries)."""
    stripped = file_path.rstrip("/")
    idx = stripped.rfind("/")
    if idx < 0:
        return ""
    return stripped[: idx + 1]


def is_under_prefix(path: str, dir_prefix: str) -> bool:
    """Segment-exact containment test: ``Messages/x`` is under ``Messages/``, ``Message2/x`` is not."""
    prefix = normalize_dir_prefix(dir_prefix)
    if not prefix:
        return True
    return path == prefix.rstrip("/") or path.startswith(prefix)


def translate_path(folder_path: str, relative_path: str, path_map: Mapping[str, str]) -> str:
    """Translate a daemon-side path into a host path using ``path_map`` prefixes."""
    base = folder_path.rstrip("/")
    container_path = f"{base}/{relative_path}" if relative_path else base
    for container_prefix, host_prefix in path_map.items():
        normalized = container_prefix.rstrip("/")
        if not normalized:
            continue
        if container_path == normalized or container_path.startswith(normalized + "/"):
            remainder = container_path[len(normalized):]
            return f"{host_prefix.rstrip('/')}{remainder}"
    return container_path


__all__ = [
    "normalize_dir_prefix",
    "join_prefix",
    "parent_prefix",
    "is_under_prefix",
    "translate_path",
]
