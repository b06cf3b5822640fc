"""Tests for ignore/delete/revert actions and pending-delete bookkeeping."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from lazysync.core import actions
from lazysync.errors import ActionError
from lazysync.model.performance import PerformanceState


class _FakeClient:
    def __init__(self, patterns: list[str] | None = None) -> None:
        self.patterns = list(patterns or [])
        self.calls: list[tuple[str, ...]] = []

    def get_ignores(self, folder_id: str) -> list[str]:
        return list(self.patterns)

    def set_ignores(self, folder_id: str, patterns: list[str]) -> None:
        self.calls.append(("set_ignores", folder_id))
        self.patterns = list(patterns)

    def rescan(self, folder_id: str, sub: str | None = None) -> None:
        self.calls.append(("rescan", folder_id))

    def revert(self, folder_id: str) -> None:
        self.calls.append(("revert", folder_id))


class ToggleIgnoreTests(unittest.TestCase):
    def test_ignore_prepends_rooted_pattern_and_rescans(self) -> None:
        client = _FakeClient(["*.tmp"])
        outcome = actions.run_toggle_ignore(client, "f", "Movies/a.mkv", currently_ignored=False)  # type: ignore[arg-type]
        self.assertEqual(client.patterns, ["/Movies/a.mkv", "*.tmp"])
        self.assertEqual(client.calls, [("set_ignores", "f"), ("rescan", "f")])
        self.assertTrue(outcome.ignored)

    def test_ignore_is_idempotent(self) -> None:
        client = _FakeClient(["/a"])
        actions.run_toggle_ignore(client, "f", "a", currently_ignored=False)  # type: ignore[arg-type]
        self.assertEqual(client.patterns, ["/a"])
        self.assertEqual(client.calls, [("rescan", "f")])

    def test_unignore_removes_the_single_matching_pattern(self) -> None:
        client = _FakeClient(["/keep", "/Movies/a.mkv"])
        outcome = actions.run_toggle_ignore(client, "f", "Movies/a.mkv", currently_ignored=True)  # type: ignore[arg-type]
        self.assertEqual(client.patterns, ["/keep"])
        self.assertFalse(outcome.ignored)

    def test_unignore_refuses_ambiguous_or_missing_patterns(self) -> None:
        client = _FakeClient(["/Movies/a.mkv", "*.mkv"])
        with self.assertRaises(ActionError):
            actions.run_toggle_ignore(client, "f", "Movies/a.mkv", currently_ignored=True)  # type: ignore[arg-type]
        with self.assertRaises(ActionError):
            actions.run_toggle_ignore(_FakeClient([]), "f", "x", currently_ignored=True)  # type: ignore[arg-type]
        self.assertEqual(client.patterns, ["/Movies/a.mkv", "*.mkv"])


class HostFileActionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_ignore_and_delete_removes_directory_tree(self) -> None:
        target = self.root / "Movies"
        (target / "sub").mkdir(parents=True)
        (target / "sub" / "a.mkv").write_text("x", encoding="utf-8")
        client = _FakeClient()
        outcome = actions.run_ignore_and_delete(client, "f", "Movies", str(target))  # type: ignore[arg-type]
        self.assertFalse(target.exists())
        self.assertTrue(outcome.rescan_triggered)
        self.assertEqual(client.patterns, ["/Movies"])

    def test_ignore_and_delete_of_missing_path_only_ignores(self) -> None:
        client = _FakeClient()
        outcome = actions.run_ignore_and_delete(client, "f", "gone", str(self.root / "gone"))  # type: ignore[arg-type]
        self.assertFalse(outcome.rescan_triggered)
        self.assertEqual(outcome.message, "Ignored gone")

    def test_delete_local_of_missing_file_raises(self) -> None:
        with self.assertRaises(ActionError):
            actions.run_delete_local(_FakeClient(), "f", "x", str(self.root / "x"))  # type: ignore[arg-type]

    def test_delete_local_removes_file_and_rescans(self) -> None:
        target = self.root / "x.txt"
        target.write_text("x", encoding="utf-8")
        client = _FakeClient()
        actions.run_delete_local(client, "f", "x.txt", str(target))  # type: ignore[arg-type]
        self.assertFalse(target.exists())
        self.assertEqual(client.calls, [("rescan", "f")])

    def test_revert_only_for_receive_only_with_changes(self) -> None:
        client = _FakeClient()
        self.assertEqual(actions.run_revert(client, "f", True, True).action, "revert")  # type: ignore[arg-type]
        self.assertEqual(actions.run_revert(client, "f", True, False).action, "rescan")  # type: ignore[arg-type]
        self.assertEqual(client.calls, [("revert", "f"), ("rescan", "f")])


class PendingDeleteTests(unittest.TestCase):
    def setUp(self) -> None:
        self.performance = PerformanceState()

    def test_pending_delete_blocks_path_and_children(self) -> None:
        actions.register_pending_delete(self.performance, "f", "/host/Movies/", now=0.0)
        self.assertEqual(actions.pending_delete_for(self.performance, "f", "/host/Movies"), "/host/Movies")
        self.assertEqual(actions.pending_delete_for(self.performance, "f", "/host/Movies/a.mkv"), "/host/Movies")
        self.assertIsNone(actions.pending_delete_for(self.performance, "f", "/host/Movies2"))
        self.assertIsNone(actions.pending_delete_for(self.performance, "g", "/host/Movies"))

    def test_stale_entries_expire(self) -> None:
        actions.register_pending_delete(self.performance, "f", "/nonexistent/a", now=0.0)
        self.assertEqual(actions.expire_pending_deletes(self.performance, now=30.0), [])
        self.assertEqual(actions.expire_pending_deletes(self.performance, now=61.0), ["/nonexistent/a"])
        self.assertEqual(self.performance.pending_ignore_deletes, {})

    def test_verified_entries_resolve_after_buffer(self) -> None:
        actions.register_pending_delete(self.performance, "f", "/nonexistent/b", now=0.0)
        self.assertEqual(actions.expire_pending_deletes(self.performance, now=10.0), [])
        actions.mark_rescan_triggered(self.performance, "/nonexistent/b")
        self.assertEqual(actions.expire_pending_deletes(self.performance, now=4.0), [])
        self.assertEqual(actions.expire_pending_deletes(self.performance, now=10.0), ["/nonexistent/b"])

    def test_remove_pending_delete(self) -> None:
        actions.register_pending_delete(self.performance, "f", "/a", now=0.0)
        self.assertTrue(actions.remove_pending_delete(self.performance, "/a/"))
        self.assertFalse(actions.remove_pending_delete(self.performance, "/a"))


if __name__ == "__main__":
    unittest.main()
