"""Tests for status fingerprints and the transient poll set."""

from __future__ import annotations

import unittest

from lazysync.core.staleness import StalenessTracker, is_transient
from lazysync.model.performance import PerformanceState
from lazysync.model.types import FolderStatus


class StalenessTrackerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.performance = PerformanceState()
        self.tracker = StalenessTracker(self.performance)

    def test_scanning_then_idle_with_new_sequence(self) -> None:
        first = self.tracker.observe("f", FolderStatus(state="scanning", sequence=100))
        self.assertTrue(first.transient)
        self.assertFalse(first.needs_refresh)
        self.assertEqual(self.tracker.folders_to_poll(), ["f"])

        second = self.tracker.observe("f", FolderStatus(state="idle", sequence=101))
        self.assertTrue(second.needs_refresh)
        self.assertFalse(second.transient)
        self.assertEqual(self.tracker.folders_to_poll(), [])
        self.assertEqual(self.performance.last_known_sequences["f"], 101)

    def test_unchanged_sequence_is_not_stale(self) -> None:
        self.tracker.observe("f", FolderStatus(state="idle", sequence=5))
        observation = self.tracker.observe("f", FolderStatus(state="idle", sequence=5))
        self.assertFalse(observation.needs_refresh)

    def test_receive_only_count_change_is_reported(self) -> None:
        self.tracker.observe("f", FolderStatus(state="idle", sequence=5, receive_only_total_items=0))
        observation = self.tracker.observe("f", FolderStatus(state="idle", sequence=5, receive_only_total_items=3))
        self.assertTrue(observation.receive_only_changed)
        self.assertFalse(observation.needs_refresh)

    def test_marked_folder_stays_until_stable(self) -> None:
        self.tracker.mark_for_polling("g")
        self.tracker.observe("g", FolderStatus(state="sync-waiting", sequence=1))
        self.assertIn("g", self.tracker.folders_to_poll())
        self.tracker.observe("g", FolderStatus(state="idle", sequence=1))
        self.assertNotIn("g", self.tracker.folders_to_poll())

    def test_forget_drops_fingerprints(self) -> None:
        self.tracker.observe("f", FolderStatus(state="syncing", sequence=1))
        self.tracker.forget("f")
        self.assertNotIn("f", self.performance.last_known_sequences)
        self.assertEqual(self.tracker.folders_to_poll(), [])

    def test_transient_states(self) -> None:
        for state in ("scanning", "syncing", "cleaning", "scan-waiting", "sync-waiting"):
            self.assertTrue(is_transient(state))
        for state in ("idle", "error", "stopped", ""):
            self.assertFalse(is_transient(state))


if __name__ == "__main__":
    unittest.main()
