"""Tests for search matching and ignore-pattern matching."""

from __future__ import annotations

import unittest

from lazysync.logic.ignore import find_matching_patterns, ignore_pattern_for, ignore_pattern_matches
from lazysync.logic.search import is_effective_query, search_matches


class SearchMatchTests(unittest.TestCase):
    def test_substring_is_case_insensitive(self) -> None:
        self.assertTrue(search_matches("photo", "Pictures/Photo-01.jpg"))
        self.assertFalse(search_matches("video", "Pictures/Photo-01.jpg"))

    def test_glob_matches_any_segment(self) -> None:
        self.assertTrue(search_matches("*.jpg", "Pictures/a.jpg"))
        self.assertTrue(search_matches("pic*", "Pictures/a.jpg"))
        self.assertFalse(search_matches("*.png", "Pictures/a.jpg"))

    def test_query_length_threshold(self) -> None:
        self.assertFalse(is_effective_query("a"))
        self.assertTrue(is_effective_query("ab"))


class IgnorePatternTests(unittest.TestCase):
    def test_rooted_pattern_matches_from_root_only(self) -> None:
        self.assertTrue(ignore_pattern_matches("/Movies/a.mkv", "/Movies/a.mkv"))
        self.assertTrue(ignore_pattern_matches("/Movies/*.mkv", "Movies/a.mkv"))
        self.assertFalse(ignore_pattern_matches("/a.mkv", "Movies/a.mkv"))

    def test_bare_pattern_matches_basename(self) -> None:
        self.assertTrue(ignore_pattern_matches("*.tmp", "/deep/dir/file.tmp"))
        self.assertFalse(ignore_pattern_matches("", "/x"))

    def test_find_matching_patterns_and_pattern_for(self) -> None:
        patterns = ["/Movies/a.mkv", "*.mkv", "/Other"]
        self.assertEqual(find_matching_patterns(patterns, "/Movies/a.mkv"), ["/Movies/a.mkv", "*.mkv"])
        self.assertEqual(ignore_pattern_for("Movies/a.mkv"), "/Movies/a.mkv")
        self.assertEqual(ignore_pattern_for("/Movies/"), "/Movies")


if __name__ == "__main__":
    unittest.main()
