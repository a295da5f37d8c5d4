#!/usr/bin/env python3
"""
Tests for totals reconciliation.
"""

import unittest
from decimal import Decimal

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_parser.reconcile import AMAZON_MISMATCH, reconcile_totals, sum_money


class TestReconcileTotals(unittest.TestCase):

    def test_difference_over_tolerance_warns(self):
        warning = reconcile_totals(["60.00", "40.00"], "100.06")
        self.assertEqual(
            warning,
            "Line totals ($100.00) do not match order total ($100.06). Difference: $0.06."
        )

    def test_difference_within_tolerance(self):
        self.assertIsNone(reconcile_totals(["60.00", "40.00"], "100.03"))
        self.assertIsNone(reconcile_totals(["60.00", "40.00"], "100.05"))
        self.assertIsNone(reconcile_totals(["100.00"], "99.95"))

    def test_missing_header_total(self):
        self.assertIsNone(reconcile_totals(["60.00"], None))

    def test_extras_and_amazon_message(self):
        warning = reconcile_totals(["19.98"], "25.00", extras=("1.60", None), message=AMAZON_MISMATCH)
        self.assertEqual(
            warning,
            "Calculated total ($21.58) does not match order total ($25.00) (diff $3.42)"
        )

    def test_custom_tolerance(self):
        self.assertIsNone(reconcile_totals(["100.00"], "100.50", tolerance=Decimal("1.00")))

    def test_sum_money(self):
        self.assertEqual(sum_money(["1.00", None, "abc", "-0.50"]), Decimal("0.50"))


if __name__ == '__main__':
    unittest.main()
