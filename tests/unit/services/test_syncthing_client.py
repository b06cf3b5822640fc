"""Tests for the REST client using an in-process httpx transport."""

from __future__ import annotations

import json
import unittest

import httpx

from lazysync.errors import ApiStatusError, ProtocolError, TransportError
from lazysync.model.types import EntryType, SyncState
from lazysync.services.api import SyncthingClient


class _Recorder:
    def __init__(self, routes: dict[str, object]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(f"{request.method} {request.url.path}")
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)


def _client(routes: dict[str, object]) -> tuple[SyncthingClient, _Recorder]:
    recorder = _Recorder(routes)
    client = SyncthingClient("http://daemon:8384/", "secret", transport=httpx.MockTransport(recorder))
    return client, recorder


class SyncthingClientTests(unittest.TestCase):
    def test_requests_carry_api_key(self) -> None:
        client, recorder = _client({"GET /rest/config/folders": [{"id": "f", "label": "F", "path": "/d"}]})
        folders = client.get_folders()
        self.assertEqual([folder.id for folder in folders], ["f"])
        self.assertEqual(recorder.requests[0].headers["X-API-Key"], "secret")
        client.close()

    def test_browse_accepts_list_shape_and_strips_prefix_slash(self) -> None:
        payload = [
            {"name": "docs", "type": "FILE_INFO_TYPE_DIRECTORY"},
            {"name": "a.txt", "type": "FILE_INFO_TYPE_FILE", "size": 12, "modTime": "2025-01-01T00:00:00Z"},
        ]
        client, recorder = _client({"GET /rest/db/browse": payload})
        entries = client.browse("f", "sub/dir/")
        self.assertEqual([(e.name, e.entry_type) for e in entries], [("docs", EntryType.DIRECTORY), ("a.txt", EntryType.FILE)])
        self.assertEqual(entries[1].size, 12)
        params = recorder.requests[0].url.params
        self.assertEqual(params["prefix"], "sub/dir")
        self.assertEqual(params["levels"], "0")

    def test_browse_accepts_dict_shape(self) -> None:
        client, _ = _client({"GET /rest/db/browse": {"docs": {}, "a.txt": ["2025-01-01T00:00:00Z", 5]}})
        entries = {entry.name: entry for entry in client.browse("f")}
        self.assertTrue(entries["docs"].is_dir)
        self.assertEqual(entries["a.txt"].size, 5)

    def test_browse_of_paused_folder_is_empty(self) -> None:
        client, _ = _client({"GET /rest/db/browse": httpx.Response(500, text="folder is paused")})
        self.assertEqual(client.browse("f"), [])

    def test_status_error_carries_code(self) -> None:
        client, _ = _client({})
        with self.assertRaises(ApiStatusError) as ctx:
            client.folder_status("f")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_transport_failure_is_translated(self) -> None:
        client, _ = _client({"GET /rest/db/status": httpx.ConnectError("connection refused")})
        with self.assertRaises(TransportError):
            client.folder_status("f")

    def test_malformed_json_is_protocol_error(self) -> None:
        client, _ = _client({"GET /rest/db/status": httpx.Response(200, text="{oops")})
        with self.assertRaises(ProtocolError):
            client.folder_status("f")

    def test_needed_files_merges_all_buckets(self) -> None:
        payload = {"progress": [{"name": "a"}], "queued": [{"name": "b"}], "rest": [{"name": "c"}, {"size": 1}]}
        client, _ = _client({"GET /rest/db/need": payload})
        self.assertEqual(client.needed_files("f"), {"a", "b", "c"})

    def test_file_info_classifies_state(self) -> None:
        payload = {"local": {"version": ["a:1"]}, "global": {"version": ["a:2"]}}
        client, _ = _client({"GET /rest/db/file": payload})
        self.assertEqual(client.file_info("f", "x.txt"), SyncState.SYNCING)

    def test_set_ignores_posts_pattern_list(self) -> None:
        client, recorder = _client({"POST /rest/db/ignores": {}})
        client.set_ignores("f", ["/a", "*.tmp"])
        self.assertEqual(json.loads(recorder.requests[0].content), {"ignore": ["/a", "*.tmp"]})

    def test_get_events_passes_since_and_timeout(self) -> None:
        client, recorder = _client({"GET /rest/events": [{"id": 5, "type": "Ping"}]})
        events = client.get_events(4, timeout=30)
        self.assertEqual(events, [{"id": 5, "type": "Ping"}])
        params = recorder.requests[0].url.params
        self.assertEqual((params["since"], params["timeout"]), ("4", "30"))

    def test_get_events_rejects_non_list(self) -> None:
        client, _ = _client({"GET /rest/events": {"id": 1}})
        with self.assertRaises(ProtocolError):
            client.get_events(0)


if __name__ == "__main__":
    unittest.main()
