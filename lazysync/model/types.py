"""Domain datatypes mirrored from the remote sync daemon."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SyncState(str, Enum):
    """How an entry's local copy relates to the global state."""

    SYNCED = "synced"
    SYNCING = "syncing"
    LOCALLY_CHANGED = "locally_changed"
    REMOTE_ONLY = "remote_only"
    IGNORED = "ignored"
    CONFLICTED = "conflicted"
    ERROR = "error"

    @classmethod
    def parse(cls, value: object) -> SyncState | None:
        if isinstance(value, SyncState):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"

    @classmethod
    def from_wire(cls, value: object) -> EntryType:
        """Normalize daemon type strings (``FILE_INFO_TYPE_DIRECTORY``, ``dir``...)."""
        text = str(value or "").lower()
        if "dir" in text:
            return cls.DIRECTORY
        return cls.FILE


@dataclass(frozen=True)
class BrowseEntry:
    """One entry of a directory listing."""

    name: str
    entry_type: EntryType = EntryType.FILE
    size: int = 0
    mod_time: str = ""

    @property
    def is_dir(self) -> bool:
        return self.entry_type is EntryType.DIRECTORY

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": self.entry_type.value,
            "size": self.size,
            "modTime": self.mod_time,
        }

    @classmethod
    def from_json(cls, data: dict[str, object]) -> BrowseEntry:
        size = data.get("size", 0)
        return cls(
            name=str(data.get("name", "")),
            entry_type=EntryType.from_wire(data.get("type")),
            size=size if isinstance(size, int) and not isinstance(size, bool) else 0,
            mod_time=str(data.get("modTime") or data.get("mod_time") or ""),
        )


@dataclass(frozen=True)
class Folder:
    """A top-level synchronized directory tree known to the daemon."""

    id: str
    label: str = ""
    path: str = ""
    folder_type: str = "sendreceive"
    paused: bool = False

    @property
    def display_name(self) -> str:
        return self.label or self.id

    @property
    def is_receive_only(self) -> bool:
        return self.folder_type == "receiveonly"

    def to_json(self) -> dict[str, object]:
        return {
            "id": self.id,
            "label": self.label,
            "path": self.path,
            "type": self.folder_type,
            "paused": self.paused,
        }

    @classmethod
    def from_json(cls, data: dict[str, object]) -> Folder:
        return cls(
            id=str(data.get("id", "")),
            label=str(data.get("label") or ""),
            path=str(data.get("path") or ""),
            folder_type=str(data.get("type") or "sendreceive"),
            paused=bool(data.get("paused", False)),
        )


def _int_field(data: dict[str, object], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


@dataclass(frozen=True)
class FolderStatus:
    """Subset of the daemon's folder status snapshot consumed by the client."""

    state: str
    sequence: int
    need_total_items: int = 0
    receive_only_total_items: int = 0
    global_bytes: int = 0
    local_bytes: int = 0
    need_bytes: int = 0

    @property
    def has_out_of_sync(self) -> bool:
        return self.need_total_items > 0 or self.receive_only_total_items > 0

    @property
    def has_local_changes(self) -> bool:
        return self.receive_only_total_items > 0

    def to_json(self) -> dict[str, object]:
        return {
            "state": self.state,
            "sequence": self.sequence,
            "needTotalItems": self.need_total_items,
            "receiveOnlyTotalItems": self.receive_only_total_items,
            "globalBytes": self.global_bytes,
            "localBytes": self.local_bytes,
            "needBytes": self.need_bytes,
        }

    @classmethod
    def from_json(cls, data: dict[str, object]) -> FolderStatus:
        return cls(
            state=str(data.get("state") or ""),
            sequence=_int_field(data, "sequence"),
            need_total_items=_int_field(data, "needTotalItems"),
            receive_only_total_items=_int_field(data, "receiveOnlyTotalItems"),
            global_bytes=_int_field(data, "globalBytes"),
            local_bytes=_int_field(data, "localBytes"),
            need_bytes=_int_field(data, "needBytes"),
        )


@dataclass(frozen=True)
class FileInvalidation:
    """Evict one file path from the mirror."""

    folder_id: str
    file_path: str
    timestamp: float | None = None


@dataclass(frozen=True)
class DirectoryInvalidation:
    """Evict a directory and everything nested under it; empty path means the whole folder."""

    folder_id: str
    dir_path: str
    timestamp: float | None = None


CacheInvalidation = FileInvalidation | DirectoryInvalidation


__all__ = [
    "SyncState",
    "EntryType",
    "BrowseEntry",
    "Folder",
    "FolderStatus",
    "FileInvalidation",
    "DirectoryInvalidation",
    "CacheInvalidation",
]
