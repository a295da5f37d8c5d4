#!/usr/bin/env python3
"""
Tests for line preprocessing and date normalization.
"""

import unittest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_parser.dates import parse_date_to_iso
from invoice_parser.text_utils import (
    NormalizedLine,
    collapse_whitespace,
    has_unclosed_parenthesis,
    normalize_lines,
)


class TestNormalizeLines(unittest.TestCase):

    def test_collapses_and_drops_empty_lines(self):
        lines = normalize_lines("  Modern   Desk Lamp \r\n\n\t\n W004170933 ")
        self.assertEqual(lines, [
            NormalizedLine(0, "Modern Desk Lamp"),
            NormalizedLine(1, "W004170933"),
        ])

    def test_empty_text(self):
        self.assertEqual(normalize_lines(""), [])
        self.assertEqual(normalize_lines(None), [])

    def test_collapse_whitespace(self):
        self.assertEqual(collapse_whitespace(" a \t b\n"), "a b")

    def test_has_unclosed_parenthesis(self):
        self.assertTrue(has_unclosed_parenthesis("Dining Chair (Set"))
        self.assertFalse(has_unclosed_parenthesis("Dining Chair (Set of 2)"))
        self.assertFalse(has_unclosed_parenthesis("of 2)"))
        self.assertTrue(has_unclosed_parenthesis(") ("))
        self.assertFalse(has_unclosed_parenthesis(None))


class TestParseDateToIso(unittest.TestCase):

    def test_supported_formats(self):
        test_cases = [
            ("01/05/2026", "2026-01-05"),
            ("1/5/2026", "2026-01-05"),
            ("January 5, 2026", "2026-01-05"),
            ("Sept 3, 2025", "2025-09-03"),
            ("Jan 15, 2026 (Standard)", "2026-01-15"),
            ("2026-03-04", "2026-03-04"),
        ]
        for raw, expected in test_cases:
            with self.subTest(raw=raw):
                self.assertEqual(parse_date_to_iso(raw), expected)

    def test_unparseable_dates(self):
        for raw in (None, "", "pending", "2/30/2026", "March 5"):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_date_to_iso(raw))


if __name__ == '__main__':
    unittest.main()
