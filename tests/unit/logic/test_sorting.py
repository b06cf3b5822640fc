"""Tests for the listing comparator and sort-mode cycling."""

from __future__ import annotations

import unittest

from lazysync.logic.sorting import SORT_MODE_CYCLE, SortMode, compare_entries, next_sort_mode, sort_entries
from lazysync.model.types import BrowseEntry, EntryType, SyncState


def _file(name: str, size: int = 0, mod_time: str = "") -> BrowseEntry:
    return BrowseEntry(name=name, size=size, mod_time=mod_time)


def _dir(name: str) -> BrowseEntry:
    return BrowseEntry(name=name, entry_type=EntryType.DIRECTORY)


ENTRIES = [
    _file("b.txt", size=10, mod_time="2025-01-02T00:00:00Z"),
    _dir("Zeta"),
    _file("A.txt", size=30, mod_time="2025-01-01T00:00:00Z"),
    _file("a.txt", size=20, mod_time="2025-01-03T00:00:00Z"),
    _dir("alpha"),
]
STATES = {
    "b.txt": SyncState.CONFLICTED,
    "A.txt": SyncState.SYNCED,
    "a.txt": SyncState.REMOTE_ONLY,
    "Zeta": SyncState.SYNCING,
}


class SortingTests(unittest.TestCase):
    def test_directories_sort_before_files_by_name(self) -> None:
        names = [entry.name for entry in sort_entries(ENTRIES, SortMode.NAME)]
        self.assertEqual(names, ["alpha", "Zeta", "A.txt", "a.txt", "b.txt"])

    def test_sync_state_mode_orders_by_priority(self) -> None:
        names = [entry.name for entry in sort_entries(ENTRIES, SortMode.SYNC_STATE, sync_states=STATES)]
        # alpha has no known state, which sorts after syncing
        self.assertEqual(names, ["Zeta", "alpha", "b.txt", "a.txt", "A.txt"])

    def test_modified_mode_is_newest_first(self) -> None:
        files = [entry.name for entry in sort_entries(ENTRIES, SortMode.MODIFIED) if not entry.is_dir]
        self.assertEqual(files, ["a.txt", "b.txt", "A.txt"])

    def test_modified_mode_compares_instants_across_offsets_and_fractions(self) -> None:
        entries = [
            _file("older", mod_time="2024-05-01T10:00:00.5+02:00"),
            _file("newer", mod_time="2024-05-01T09:00:00Z"),
            _file("newest", mod_time="2024-05-01T09:00:00.25Z"),
            _file("unknown"),
        ]
        names = [entry.name for entry in sort_entries(entries, SortMode.MODIFIED)]
        self.assertEqual(names, ["newest", "newer", "older", "unknown"])

    def test_size_mode_is_largest_first(self) -> None:
        files = [entry.name for entry in sort_entries(ENTRIES, SortMode.SIZE) if not entry.is_dir]
        self.assertEqual(files, ["A.txt", "a.txt", "b.txt"])

    def test_reverse_is_exact_reverse_for_every_mode(self) -> None:
        for mode in SortMode:
            with self.subTest(mode=mode):
                forward = sort_entries(ENTRIES, mode, sync_states=STATES)
                backward = sort_entries(ENTRIES, mode, reverse=True, sync_states=STATES)
                self.assertEqual(backward, list(reversed(forward)))

    def test_comparator_is_antisymmetric(self) -> None:
        for mode in SortMode:
            for a in ENTRIES:
                for b in ENTRIES:
                    self.assertEqual(
                        compare_entries(a, b, mode, sync_states=STATES),
                        -compare_entries(b, a, mode, sync_states=STATES),
                    )

    def test_next_sort_mode_cycles_through_all_modes(self) -> None:
        mode = SORT_MODE_CYCLE[0]
        seen = []
        for _ in SORT_MODE_CYCLE:
            seen.append(mode)
            mode = next_sort_mode(mode)
        self.assertEqual(mode, SORT_MODE_CYCLE[0])
        self.assertEqual(set(seen), set(SortMode))


if __name__ == "__main__":
    unittest.main()
