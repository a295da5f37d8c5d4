#!/usr/bin/env python3
"""
Tests for money normalization and money-token extraction.
"""

import unittest
from decimal import Decimal

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_parser.money import (
    abs_money,
    extract_money_tokens,
    format_dollars,
    money_to_decimal,
    money_to_number,
    normalize_money,
    strip_money_tokens,
)


class TestNormalizeMoney(unittest.TestCase):
    """Test cases for normalize_money and friends."""

    def test_normalize_money(self):
        test_cases = [
            ("($12.34)", "-12.34"),
            ("$1,234.50", "1234.50"),
            ("-$5.00", "-5.00"),
            ("12.345", "12.35"),
            ("  $7 ", "7.00"),
            ("€1,000.10", "1000.10"),
            ("-0.00", "0.00"),
        ]
        for raw, expected in test_cases:
            with self.subTest(raw=raw):
                self.assertEqual(normalize_money(raw), expected)

    def test_unparseable_values(self):
        for raw in (None, "", "abc", "$", "()"):
            with self.subTest(raw=raw):
                self.assertIsNone(normalize_money(raw))
                self.assertIsNone(money_to_number(raw))

    def test_idempotent(self):
        for raw in ("($12.34)", "$1,234.50", "0.1", "99", "-3.999"):
            with self.subTest(raw=raw):
                once = normalize_money(raw)
                self.assertEqual(normalize_money(once), once)

    def test_money_to_decimal_and_number(self):
        self.assertEqual(money_to_decimal("$1,234.56"), Decimal("1234.56"))
        self.assertEqual(money_to_number("$5.50"), 5.5)
        self.assertEqual(money_to_number("(2.25)"), -2.25)

    def test_abs_money(self):
        self.assertEqual(abs_money("-5.00"), "5.00")
        self.assertEqual(abs_money("(3.10)"), "3.10")
        self.assertIsNone(abs_money("n/a"))

    def test_format_dollars(self):
        self.assertEqual(format_dollars(Decimal("0.06")), "$0.06")
        self.assertEqual(format_dollars(Decimal("100")), "$100.00")


class TestMoneyTokens(unittest.TestCase):
    """Test cases for money token extraction."""

    def test_extract_tokens_in_order(self):
        tokens = extract_money_tokens("Rug $1,234.50 (12.34) -$5.00 ($1.00)")
        self.assertEqual(tokens, ["1234.50", "-12.34", "-5.00", "-1.00"])

    def test_integers_and_dates_are_not_money(self):
        self.assertEqual(extract_money_tokens("Qty 3 on 01/05/2026"), [])

    def test_money_row(self):
        self.assertEqual(extract_money_tokens("49.99 1 49.99"), ["49.99", "49.99"])

    def test_strip_money_tokens(self):
        self.assertEqual(strip_money_tokens("Total $19.99"), "Total")
        self.assertEqual(strip_money_tokens("$19.99"), "")


if __name__ == '__main__':
    unittest.main()
