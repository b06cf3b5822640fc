"""Tests for applying invalidations to the mirror and the breadcrumb trail."""

from __future__ import annotations

import unittest
from queue import Queue

from lazysync.cache.batch import BatchWriter
from lazysync.cache.mirror import MirrorCache
from lazysync.cache.store import SQLiteStore
from lazysync.core.dedup import DedupLedger
from lazysync.core.router import InvalidationRouter
from lazysync.model.navigation import BreadcrumbLevel, NavigationState
from lazysync.model.performance import PerformanceState
from lazysync.model.types import BrowseEntry, DirectoryInvalidation, EntryType, FileInvalidation, SyncState


class InvalidationRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = SQLiteStore(":memory:")
        self.mirror = MirrorCache(self.store, BatchWriter(self.store, clock=lambda: 0.0))
        self.performance = PerformanceState()
        self.ledger = DedupLedger(self.performance)
        self.navigation = NavigationState()
        self.router = InvalidationRouter(self.mirror, self.ledger, self.navigation)

        self.mirror.put_browse("f", "", [BrowseEntry("Messages", EntryType.DIRECTORY)])
        self.mirror.put_browse("f", "Messages/", [BrowseEntry("a.txt")])
        self.mirror.put_browse("f", "Message2/", [BrowseEntry("b.txt")])
        self.mirror.put_sync_state("f", "Messages/a.txt", SyncState.SYNCED)
        self.root = BreadcrumbLevel("f", items=[BrowseEntry("Messages", EntryType.DIRECTORY)])
        self.messages = BreadcrumbLevel(
            "f",
            prefix="Messages/",
            items=[BrowseEntry("a.txt")],
            sync_states={"a.txt": SyncState.SYNCED},
        )
        self.navigation.trail.extend([self.root, self.messages])
        self.ledger.mark_discovered("f", "Messages")

    def tearDown(self) -> None:
        self.store.close()

    def test_file_invalidation_flags_only_the_containing_level(self) -> None:
        flagged = self.router.apply(FileInvalidation("f", "Messages/a.txt"))
        self.assertEqual(flagged, 1)
        self.assertTrue(self.messages.needs_refresh)
        self.assertFalse(self.root.needs_refresh)
        self.assertNotIn("a.txt", self.messages.sync_states)
        self.assertIsNone(self.mirror.get_sync_state("f", "Messages/a.txt"))
        self.assertIsNone(self.mirror.get_browse("f", "Messages/"))
        self.assertFalse(self.ledger.is_discovered("f", "Messages"))

    def test_directory_invalidation_is_segment_exact(self) -> None:
        self.router.apply(DirectoryInvalidation("f", "Messages"))
        self.assertTrue(self.messages.needs_refresh)
        self.assertFalse(self.root.needs_refresh)
        self.assertIsNone(self.mirror.get_browse("f", "Messages/"))
        self.assertIsNotNone(self.mirror.get_browse("f", "Message2/"))

    def test_folder_wide_invalidation_flags_every_level(self) -> None:
        self.assertEqual(self.router.apply(DirectoryInvalidation("f", "")), 2)
        self.assertIsNone(self.mirror.get_browse("f", ""))

    def test_other_folder_is_untouched(self) -> None:
        self.assertEqual(self.router.apply(FileInvalidation("g", "Messages/a.txt")), 0)
        self.assertFalse(self.messages.needs_refresh)
        self.assertIsNotNone(self.mirror.get_browse("f", "Messages/"))

    def test_absent_path_is_a_no_op(self) -> None:
        self.assertEqual(self.router.apply(FileInvalidation("f", "nowhere/x")), 0)

    def test_drain_consumes_in_order_up_to_limit(self) -> None:
        queue: Queue = Queue()
        queue.put(FileInvalidation("f", "x"))
        queue.put(FileInvalidation("f", "y"))
        queue.put(FileInvalidation("f", "z"))
        self.assertEqual(self.router.drain(queue, limit=2), 2)
        self.assertEqual(queue.get_nowait().file_path, "z")
        self.assertEqual(self.router.applied, 2)


if __name__ == "__main__":
    unittest.main()
