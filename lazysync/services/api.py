"""HTTP client for the sync daemon's REST API.

httpx exceptions never leave this module: transport failures become
``TransportError``, non-success replies ``ApiStatusError`` and undecodable
bodies ``ProtocolError``.
"""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import ApiStatusError, ProtocolError, TransportError
from ..log import get_logger
from ..logic.paths import normalize_dir_prefix
from ..logic.sync_states import determine_sync_state
from ..model.types import BrowseEntry, EntryType, Folder, FolderStatus, SyncState

DEFAULT_BASE_URL = "http://127.0.0.1:8384"
DEFAULT_TIMEOUT = 10.0
EVENT_POLL_TIMEOUT = 60
# Client read timeout must outlast the server-side long-poll window.
EVENT_READ_MARGIN = 10.0
NEED_PAGE_SIZE = 1000


def _normalize_browse(payload: object) -> list[BrowseEntry]:
    """Accept both browse reply shapes: a list of objects or a name-keyed dict."""
    if isinstance(payload, list):
        return [BrowseEntry.from_json(item) for item in payload if isinstance(item, dict) and item.get("name")]
    if isinstance(payload, dict):
        entries: list[BrowseEntry] = []
        for name, value in payload.items():
            if isinstance(value, dict):
                entries.append(BrowseEntry(name=str(name), entry_type=EntryType.DIRECTORY))
            elif isinstance(value, list) and len(value) >= 2:
                size = value[1] if isinstance(value[1], int) else 0
                entries.append(BrowseEntry(name=str(name), size=size, mod_time=str(value[0])))
            else:
                entries.append(BrowseEntry(name=str(name)))
        return entries
    raise ProtocolError(f"Unexpected browse payload: {type(payload).__name__}")


def _file_names(records: object) -> list[str]:
    if not isinstance(records, list):
        return []
    return [str(item["name"]) for item in records if isinstance(item, dict) and item.get("name")]


class SyncthingClient:
    """Thin synchronous wrapper around the daemon API; safe to share across worker threads."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.logger = get_logger("api")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"X-API-Key": api_key},
            timeout=timeout,
            transport=transport,
        )

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        self.logger.debug("HTTP %s %s params=%s", method, path, kwargs.get("params"))
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = (resp.text or "").strip()[:200]
            raise ApiStatusError(
                f"{method} {path} returned {resp.status_code}: {body}",
                resp.status_code,
            ) from exc
        return resp

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ProtocolError(f"Malformed JSON from {resp.request.url.path}") from exc

    def get_json(self, path: str, **kwargs: Any) -> Any:
        return self._json(self.request("GET", path, **kwargs))

    def get_folders(self) -> list[Folder]:
        data = self.get_json("/rest/config/folders")
        if not isinstance(data, list):
            raise ProtocolError("Folder config is not a list")
        return [Folder.from_json(item) for item in data if isinstance(item, dict) and item.get("id")]

    def browse(self, folder_id: str, prefix: str | None = None) -> list[BrowseEntry]:
        params: dict[str, object] = {"folder": folder_id, "levels": 0}
        normalized = normalize_dir_prefix(prefix)
        if normalized:
            params["prefix"] = normalized.rstrip("/")
        try:
            resp = self.request("GET", "/rest/db/browse", params=params)
        except ApiStatusError as exc:
            if "no such folder" in str(exc) or "paused" in str(exc):
                return []
            raise
        try:
            payload = self._json(resp)
        except ProtocolError:
            text = resp.text or ""
            if "no such folder" in text or "paused" in text:
                return []
            raise
        return _normalize_browse(payload)

    def folder_status(self, folder_id: str) -> FolderStatus:
        data = self.get_json("/rest/db/status", params={"folder": folder_id})
        if not isinstance(data, dict):
            raise ProtocolError("Folder status is not an object")
        return FolderStatus.from_json(data)

    def needed_files(self, folder_id: str) -> set[str]:
        """Paths the local device still needs: progress, queued and rest buckets."""
        data = self.get_json("/rest/db/need", params={"folder": folder_id, "perpage": NEED_PAGE_SIZE})
        if not isinstance(data, dict):
            raise ProtocolError("Need reply is not an object")
        paths: set[str] = set()
        for bucket in ("progress", "queued", "rest"):
            paths.update(_file_names(data.get(bucket)))
        return paths

    def local_changed(self, folder_id: str) -> set[str]:
        """Locally changed paths of a receive-only folder."""
        data = self.get_json("/rest/db/localchanged", params={"folder": folder_id, "perpage": NEED_PAGE_SIZE})
        if not isinstance(data, dict):
            raise ProtocolError("Local-changed reply is not an object")
        return set(_file_names(data.get("files")))

    def file_info(self, folder_id: str, path: str) -> SyncState:
        data = self.get_json("/rest/db/file", params={"folder": folder_id, "file": path})
        return determine_sync_state(path, data)

    def get_ignores(self, folder_id: str) -> list[str]:
        data = self.get_json("/rest/db/ignores", params={"folder": folder_id})
        if not isinstance(data, dict):
            raise ProtocolError("Ignore reply is not an object")
        patterns = data.get("ignore") or []
        return [str(pattern) for pattern in patterns] if isinstance(patterns, list) else []

    def set_ignores(self, folder_id: str, patterns: list[str]) -> None:
        self.request("POST", "/rest/db/ignores", params={"folder": folder_id}, json={"ignore": patterns})

    def rescan(self, folder_id: str, sub: str | None = None) -> None:
        params: dict[str, object] = {"folder": folder_id}
        if sub:
            params["sub"] = sub
        self.request("POST", "/rest/db/scan", params=params)

    def revert(self, folder_id: str) -> None:
        self.request("POST", "/rest/db/revert", params={"folder": folder_id})

    def override(self, folder_id: str) -> None:
        self.request("POST", "/rest/db/override", params={"folder": folder_id})

    def get_events(self, since: int, timeout: int = EVENT_POLL_TIMEOUT) -> list[dict[str, object]]:
        """Long-poll the event feed; an empty list means the server-side timeout elapsed."""
        resp = self.request(
            "GET",
            "/rest/events",
            params={"since": since, "timeout": timeout},
            timeout=httpx.Timeout(self.timeout, read=timeout + EVENT_READ_MARGIN),
        )
        data = self._json(resp)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ProtocolError("Event reply is not a list")
        return data

    def close(self) -> None:
        self._client.close()


__all__ = [
    "DEFAULT_BASE_URL",
    "EVENT_POLL_TIMEOUT",
    "SyncthingClient",
]
