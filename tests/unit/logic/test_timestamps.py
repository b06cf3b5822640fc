"""Tests for RFC 3339 timestamp parsing."""

from __future__ import annotations

import unittest

from lazysync.logic.timestamps import parse_rfc3339


class ParseRfc3339Tests(unittest.TestCase):
    def test_offsets_resolve_to_the_same_instant(self) -> None:
        self.assertEqual(parse_rfc3339("2024-05-01T11:00:00+02:00"), parse_rfc3339("2024-05-01T09:00:00Z"))

    def test_long_fractions_are_truncated_to_microseconds(self) -> None:
        self.assertAlmostEqual(parse_rfc3339("2025-01-01T00:00:00.123456789Z"), 1735689600.123456, places=5)

    def test_unparsable_or_naive_input_is_none(self) -> None:
        self.assertIsNone(parse_rfc3339(""))
        self.assertIsNone(parse_rfc3339("yesterday"))
        self.assertIsNone(parse_rfc3339("2024-05-01T09:00:00"))


if __name__ == "__main__":
    unittest.main()
