#!/usr/bin/env python3
"""
Tests for the Wayfair line classifiers.
"""

import unittest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_parser.wayfair_lines import (
    count_table_header_phrases,
    extract_description_fragment_before_money,
    extract_inline_attributes,
    extract_leading_sku_from_money_row,
    extract_standalone_attribute,
    extract_standalone_sku,
    is_dimension_continuation,
    is_item_position_indicator,
    is_likely_sku_token,
    is_order_level_attribute_label,
    is_parenthetical_lead,
    is_parenthetical_tail,
    is_soft_continuation,
    is_summary_noise_line,
    is_table_header_line,
    normalize_description_fragment,
    split_attribute_spillover,
    split_size_line_spillover,
    split_sku_prefix,
    split_trailing_sku,
    strip_leading_merged_table_header,
)


class TestSkuHelpers(unittest.TestCase):

    def test_is_likely_sku_token(self):
        for token in ("W004170933", "FOW21689", "AB123456"):
            with self.subTest(token=token):
                self.assertTrue(is_likely_sku_token(token))
        for token in ("Lamp", "123456", "ABCDEFG", "A1", "W0041709331234567890X", "ABC-12345", "AB-123"):
            with self.subTest(token=token):
                self.assertFalse(is_likely_sku_token(token))

    def test_extract_standalone_sku(self):
        self.assertEqual(extract_standalone_sku("W004170933"), "W004170933")
        self.assertEqual(extract_standalone_sku("SKU: AB123456"), "AB123456")
        self.assertEqual(extract_standalone_sku("Item #: XY99881"), "XY99881")
        self.assertIsNone(extract_standalone_sku("SKU: 1234"))
        self.assertIsNone(extract_standalone_sku("Item #: XY-9988"))
        self.assertIsNone(extract_standalone_sku("AB-123"))
        self.assertIsNone(extract_standalone_sku("W004170933 49.99"))
        self.assertIsNone(extract_standalone_sku("Modern Desk Lamp"))

    def test_extract_leading_sku_from_money_row(self):
        self.assertEqual(
            extract_leading_sku_from_money_row("W004170933 49.99 1 49.99"),
            ("W004170933", "49.99 1 49.99"),
        )
        self.assertEqual(
            extract_leading_sku_from_money_row("W004170933 49.99"),
            (None, "W004170933 49.99"),
        )

    def test_split_sku_prefix_and_suffix(self):
        self.assertEqual(split_sku_prefix("W004170933 Modern Lamp"), ("W004170933", "Modern Lamp"))
        self.assertEqual(split_sku_prefix("Modern Lamp"), (None, "Modern Lamp"))
        self.assertEqual(split_trailing_sku("Modern Lamp W004170933"), ("W004170933", "Modern Lamp"))
        self.assertEqual(split_trailing_sku("W004170933"), (None, "W004170933"))


class TestAttributeHelpers(unittest.TestCase):

    def test_size_spillover_split(self):
        cleaned, spillover = split_attribute_spillover(
            "Size", '138" L x 105.96" W " Vintage Landscape - DCXXXIV "'
        )
        self.assertEqual(cleaned, '138" L x 105.96" W')
        self.assertEqual(spillover, "Vintage Landscape - DCXXXIV")

    def test_curly_quote_spillover(self):
        cleaned, spillover = split_attribute_spillover("Size", "5' x 8' “Persian Runner”")
        self.assertEqual(cleaned, "5' x 8'")
        self.assertEqual(spillover, "Persian Runner")

    def test_measurement_only_size_is_kept(self):
        self.assertEqual(split_attribute_spillover("Size", '10" x 20"'), ('10" x 20"', None))

    def test_spillover_only_for_size(self):
        self.assertEqual(split_attribute_spillover("Color", 'Blue "Rug B"'), ('Blue "Rug B"', None))

    def test_extract_standalone_attribute(self):
        attr = extract_standalone_attribute("Color: Navy Blue")
        self.assertEqual((attr.label, attr.value, attr.key, attr.raw_line), ("Color", "Navy Blue", "color", "Color: Navy Blue"))

        fabric = extract_standalone_attribute("Fabric:   Linen")
        self.assertIsNone(fabric.key)
        self.assertEqual(fabric.raw_line, "Fabric: Linen")

    def test_money_only_allowed_on_size_lines(self):
        self.assertIsNotNone(extract_standalone_attribute("Size: 10.00 x 12.00"))
        self.assertIsNone(extract_standalone_attribute("Price: $10.00"))
        self.assertIsNone(extract_standalone_attribute("Modern Desk Lamp"))

    def test_standalone_size_with_spillover(self):
        attr = extract_standalone_attribute('Size: 10" x 20" "Item B Title"')
        self.assertEqual(attr.value, '10" x 20"')
        self.assertEqual(attr.raw_line, 'Size: 10" x 20"')
        self.assertEqual(attr.spillover, "Item B Title")

    def test_split_size_line_spillover(self):
        self.assertEqual(
            split_size_line_spillover('Size: 10" x 20" "Rug B"'),
            ('Size: 10" x 20"', '10" x 20"', "Rug B"),
        )
        self.assertIsNone(split_size_line_spillover('Size: 10" x 20"'))
        self.assertIsNone(split_size_line_spillover("Color: Blue"))

    def test_order_level_labels(self):
        for label in ("Order Date", "Payment Type", "Ship To", "Invoice Number", "Tax Exempt"):
            with self.subTest(label=label):
                self.assertTrue(is_order_level_attribute_label(label))
        for label in ("Color", "Size", "Fabric"):
            with self.subTest(label=label):
                self.assertFalse(is_order_level_attribute_label(label))

    def test_extract_inline_attributes(self):
        inline = extract_inline_attributes('Delivery Sofa Color: Gray Size: 84"')
        self.assertEqual(inline.cleaned_description, "Sofa")
        self.assertEqual(inline.attribute_lines, ["Color: Gray", 'Size: 84"'])
        self.assertEqual(inline.attributes.color, "Gray")
        self.assertEqual(inline.attributes.size, '84"')

    def test_inline_attributes_absent(self):
        inline = extract_inline_attributes("Modern Desk Lamp")
        self.assertEqual(inline.cleaned_description, "Modern Desk Lamp")
        self.assertEqual(inline.attribute_lines, [])
        self.assertTrue(inline.attributes.is_empty())


class TestDescriptionHelpers(unittest.TestCase):

    def test_normalize_description_fragment(self):
        self.assertEqual(normalize_description_fragment('  "Vintage  Rug" '), "Vintage Rug")
        self.assertIsNone(normalize_description_fragment("   "))
        self.assertIsNone(normalize_description_fragment(None))

    def test_fragment_before_money(self):
        self.assertEqual(
            extract_description_fragment_before_money("Modern Desk Lamp 49.99 1 49.99"),
            ("Modern Desk Lamp", "49.99 1 49.99"),
        )

    def test_trailing_quantity_stays_with_money(self):
        self.assertEqual(
            extract_description_fragment_before_money("Desk Lamp 2 $10.00 $20.00"),
            ("Desk Lamp", "2 $10.00 $20.00"),
        )

    def test_no_fragment(self):
        self.assertEqual(extract_description_fragment_before_money("49.99 1 49.99"), (None, "49.99 1 49.99"))
        self.assertEqual(extract_description_fragment_before_money("AB 49.99 1 49.99"), (None, "AB 49.99 1 49.99"))
        self.assertEqual(extract_description_fragment_before_money("Modern Desk Lamp"), (None, "Modern Desk Lamp"))


class TestNoiseAndContinuations(unittest.TestCase):

    def test_table_header_lines(self):
        for line in ("Unit Price", "Shipping & Delivery", "Qty", "Item Unit Price Qty Subtotal Total"):
            with self.subTest(line=line):
                self.assertTrue(is_table_header_line(line))
        self.assertFalse(is_table_header_line("Modern Desk Lamp"))

    def test_strip_merged_table_header(self):
        self.assertEqual(
            strip_leading_merged_table_header("Item Unit Price Qty Subtotal Total Modern Desk Lamp"),
            "Modern Desk Lamp",
        )

    def test_header_only_row_has_no_payload(self):
        self.assertIsNone(strip_leading_merged_table_header(
            "Item Unit Price Qty Subtotal Shipping & Delivery Adjustment Tax Total"
        ))

    def test_few_header_phrases_are_not_stripped(self):
        self.assertIsNone(strip_leading_merged_table_header("Item Total Lamp"))

    def test_count_table_header_phrases(self):
        self.assertEqual(count_table_header_phrases("Item Qty Unit Price Total Modern Desk Lamp"), 4)
        self.assertEqual(count_table_header_phrases("Item Qty Tax Total Modern Desk Lamp"), 4)
        self.assertEqual(count_table_header_phrases("Modern Desk Lamp"), 0)
        self.assertEqual(count_table_header_phrases("Modern Desk Lamp Item Qty Tax Total", window=10), 0)

    def test_strip_short_merged_header(self):
        for line in ("Item Qty Unit Price Total Modern Desk Lamp", "Item Qty Tax Total Modern Desk Lamp"):
            with self.subTest(line=line):
                self.assertEqual(strip_leading_merged_table_header(line), "Modern Desk Lamp")

    def test_summary_noise(self):
        self.assertTrue(is_summary_noise_line("Order Total: $305.29"))
        self.assertTrue(is_summary_noise_line("Billing Address"))
        self.assertFalse(is_summary_noise_line("Modern Desk Lamp"))

    def test_soft_continuation(self):
        self.assertTrue(is_soft_continuation("and Matching Ottoman"))
        self.assertTrue(is_soft_continuation("(Set of 2)"))
        self.assertFalse(is_soft_continuation("Sofa"))

    def test_parenthetical_fragments(self):
        self.assertTrue(is_parenthetical_lead("Rug (Set"))
        self.assertFalse(is_parenthetical_lead("Rug (Set of 2)"))
        self.assertFalse(is_parenthetical_lead("Color: Red (Set"))
        self.assertTrue(is_parenthetical_tail("of 2)"))
        self.assertFalse(is_parenthetical_tail("Note: see 2)"))

    def test_dimension_continuation(self):
        self.assertTrue(is_dimension_continuation('x 30"'))
        self.assertTrue(is_dimension_continuation("x 20 cm"))
        self.assertFalse(is_dimension_continuation("x large"))

    def test_item_position_indicator(self):
        self.assertTrue(is_item_position_indicator("1 of 3"))
        self.assertTrue(is_item_position_indicator("(2 of 2)"))
        self.assertFalse(is_item_position_indicator("1 of: Mouse"))


if __name__ == '__main__':
    unittest.main()
