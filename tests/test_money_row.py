#!/usr/bin/env python3
"""
Tests for money-row recognition: quantity extraction and column assignment.
"""

import unittest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_parser.money_row import assign_columns, extract_qty, parse_money_row


class TestExtractQty(unittest.TestCase):

    def test_quantity_patterns(self):
        test_cases = [
            ("Qty: 3 10.00 30.00", 3),
            ("49.99 1 49.99", 1),
            ("$120.00 2 $240.00 $0.00 $16.80 $256.80", 2),
            ("Desk Lamp 2 10.00 20.00", 2),
        ]
        for line, expected in test_cases:
            with self.subTest(line=line):
                self.assertEqual(extract_qty(line), expected)

    def test_cents_are_not_a_quantity(self):
        self.assertIsNone(extract_qty("12.50 25.00 30.00"))

    def test_zero_is_not_a_quantity(self):
        self.assertIsNone(extract_qty("Qty: 0 10.00 0.00"))

    def test_no_quantity(self):
        self.assertIsNone(extract_qty("49.99 49.99"))


class TestAssignColumns(unittest.TestCase):

    def test_too_few_tokens(self):
        self.assertIsNone(assign_columns(["1.00"]))

    def test_two_tokens(self):
        columns = assign_columns(["49.99", "49.99"])
        self.assertEqual((columns.unit_price, columns.total), ("49.99", "49.99"))
        self.assertIsNone(columns.subtotal)
        self.assertIsNone(columns.tax)

    def test_three_tokens(self):
        columns = assign_columns(["10.00", "20.00", "21.50"])
        self.assertEqual(columns.subtotal, "20.00")
        self.assertIsNone(columns.tax)
        self.assertEqual(columns.total, "21.50")

    def test_four_tokens(self):
        columns = assign_columns(["10.00", "20.00", "1.50", "21.50"])
        self.assertEqual(columns.tax, "1.50")
        self.assertIsNone(columns.shipping)
        self.assertIsNone(columns.adjustment)

    def test_negative_middle_token_is_adjustment(self):
        columns = assign_columns(["49.99", "49.99", "0.00", "-5.00", "3.50", "48.49"])
        self.assertEqual(columns.shipping, "0.00")
        self.assertEqual(columns.adjustment, "5.00")
        self.assertEqual(columns.tax, "3.50")
        self.assertEqual(columns.total, "48.49")

    def test_single_middle_token_is_shipping(self):
        columns = assign_columns(["120.00", "240.00", "9.99", "16.80", "266.79"])
        self.assertEqual(columns.shipping, "9.99")
        self.assertIsNone(columns.adjustment)

    def test_positive_middle_tokens(self):
        columns = assign_columns(["10.00", "10.00", "2.00", "1.00", "0.80", "11.80"])
        self.assertEqual(columns.shipping, "2.00")
        self.assertEqual(columns.adjustment, "1.00")

    def test_three_middle_tokens_misassign(self):
        # Only two middle columns are disambiguated; the third is dropped.
        columns = assign_columns(["10.00", "10.00", "2.00", "1.00", "3.00", "0.80", "15.80"])
        self.assertEqual(columns.shipping, "2.00")
        self.assertEqual(columns.adjustment, "1.00")
        self.assertEqual(columns.tax, "0.80")
        self.assertEqual(columns.total, "15.80")


class TestParseMoneyRow(unittest.TestCase):

    def test_buffered_description_wins(self):
        row = parse_money_row("Lamp 10.00 1 10.00", "Modern Desk Lamp")
        self.assertEqual(row.description, "Modern Desk Lamp")
        self.assertEqual(row.qty, 1)

    def test_description_before_money(self):
        row = parse_money_row("Lamp 10.00 1 10.00")
        self.assertEqual(row.description, "Lamp")

    def test_empty_description_is_allowed(self):
        row = parse_money_row("49.99 1 49.99")
        self.assertEqual(row.description, "")
        self.assertEqual(row.columns.unit_price, "49.99")

    def test_not_a_money_row(self):
        self.assertIsNone(parse_money_row("Only 10.00"))
        self.assertIsNone(parse_money_row("10.00 20.00"))


if __name__ == '__main__':
    unittest.main()
