"""Tests for in-flight fetch guards and discovered directories."""

from __future__ import annotations

import unittest

from lazysync.core.dedup import DedupLedger, FetchKind, dir_key, fetch_key
from lazysync.model.performance import PerformanceState


class DedupLedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.performance = PerformanceState()
        self.ledger = DedupLedger(self.performance)

    def test_second_acquire_is_refused_until_release(self) -> None:
        key = fetch_key("f", "docs/")
        self.assertTrue(self.ledger.try_acquire(FetchKind.BROWSE, key))
        self.assertFalse(self.ledger.try_acquire(FetchKind.BROWSE, key))
        self.assertIn(key, self.performance.loading_browse)
        self.ledger.release(FetchKind.BROWSE, key)
        self.assertFalse(self.ledger.is_in_flight(FetchKind.BROWSE, key))
        self.assertTrue(self.ledger.try_acquire(FetchKind.BROWSE, key))

    def test_kinds_are_independent(self) -> None:
        key = fetch_key("f", "a.txt")
        self.assertTrue(self.ledger.try_acquire(FetchKind.SYNC_STATE, key))
        self.assertTrue(self.ledger.try_acquire(FetchKind.BROWSE, key))
        self.assertEqual(self.ledger.in_flight_count(), 2)

    def test_dir_key_normalizes_prefix(self) -> None:
        self.assertEqual(dir_key("f", "docs"), "f:docs/")
        self.assertEqual(dir_key("f", None), "f:")

    def test_discovered_directories(self) -> None:
        self.assertTrue(self.ledger.mark_discovered("f", "Messages"))
        self.assertFalse(self.ledger.mark_discovered("f", "Messages/"))
        self.ledger.mark_discovered("f", "Messages/deep")
        self.ledger.mark_discovered("f", "Message2")

        self.assertEqual(self.ledger.forget_discovered_under("f", "Messages"), 2)
        self.assertFalse(self.ledger.is_discovered("f", "Messages/deep"))
        self.assertTrue(self.ledger.is_discovered("f", "Message2"))

    def test_forgetting_a_folder_leaves_folders_with_colon_ids_alone(self) -> None:
        self.ledger.mark_discovered("f", "docs")
        self.ledger.mark_discovered("f:x", "")
        self.ledger.mark_discovered("f:x", "docs")

        self.assertEqual(self.ledger.forget_discovered_under("f", ""), 1)
        self.assertFalse(self.ledger.is_discovered("f", "docs"))
        self.assertTrue(self.ledger.is_discovered("f:x", ""))
        self.assertTrue(self.ledger.is_discovered("f:x", "docs"))


if __name__ == "__main__":
    unittest.main()
