"""
Amazon order invoice parser.

Amazon invoices list items as "<qty> of: <title>" followed by wrapped title
lines, seller/condition noise and a price line, grouped under "Shipped on
<date>" shipment blocks.
"""

import re
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from .base import BaseInvoiceParser
from .dates import parse_date_to_iso
from .header_rules import SELECT_LAST, rule, signature
from .models import (
    SECTION_SHIPPED,
    SECTION_UNKNOWN,
    AmazonInvoiceHeader,
    LineItem,
)
from .money import extract_money_tokens, money_to_decimal, normalize_money, strip_money_tokens
from .reconcile import AMAZON_MISMATCH, reconcile_totals
from .registry import register_vendor
from .text_utils import NormalizedLine

logger = logging.getLogger(__name__)

_MONEY_VALUE = r"\$?\s*([\d,]+\.\d{2})"


def _render_payment_method(match: "re.Match") -> str:
    return f"{match.group(1)} | Last digits: {match.group(2)}"


AMAZON_SIGNATURE = signature(
    "amazon",
    any_of=[r"Amazon\.com order number:", r"Final Details for Order #"],
    all_of=[[r"Order Placed:", r"Amazon\.com"]],
)

AMAZON_HEADER_RULES = (
    rule(
        "order_number",
        r"Amazon\.com order number:\s*([^\n\r]+)",
        r"Final Details for Order #([^\n\r]+)",
        missing_warning="Could not confidently find an order number.",
    ),
    rule(
        "order_placed_date",
        r"Order Placed:\s*([^\n\r]+)",
        normalizer=parse_date_to_iso,
        missing_warning="Could not confidently find an order date; defaulting to today is recommended.",
    ),
    rule(
        "grand_total",
        r"Grand Total:\s*" + _MONEY_VALUE,
        r"Order Total:\s*" + _MONEY_VALUE,
        normalizer=normalize_money,
        missing_warning="Missing order total",
    ),
    rule("project_code", r"Project code:\s*([^\n\r]+)"),
    rule(
        "payment_method",
        r"(Visa|Mastercard|American Express|Discover)\s*\|\s*Last digits:\s*(\d{4})",
        render=_render_payment_method,
    ),
    rule("tax", r"Estimated Tax:\s*" + _MONEY_VALUE, normalizer=normalize_money),
    # Each shipment repeats this label; the last one reflects the final charge.
    rule("shipping", r"Shipping & Handling:\s*" + _MONEY_VALUE, normalizer=normalize_money, select=SELECT_LAST),
)

IGNORE_LINES = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"^Sold by:",
    r"^Condition:",
    r"^Business Price$",
    r"^Items Ordered Price$",
    r"^Shipping Address:",
    r"^Shipping Speed:",
    r"^Item\(s\) Subtotal:",
    r"^Shipping & Handling:",
    r"^Total before tax:",
    r"^(Sales Tax|Estimated Tax):",
    r"^Total for This Shipment:",
    r"^Payment information$",
    r"^Payment Method:",
    r"^Billing address$",
    r"^Credit Card transactions",
    r"^-- \d+ of \d+ --$",
    r"^Order Total:",
    r"^Grand Total:",
    r"^Order Placed:",
    r"^Amazon\.com order number:",
    r"^Final Details for Order",
    r"^Project code:",
))

ITEM_START_RE = re.compile(r"^([1-9]\d*)\s+of:\s*(.+)$")
PRICE_AT_END_RE = re.compile(r"(\$?\d{1,3}(?:,\d{3})*\.\d{2})\s*$")
SHIPPED_ON_RE = re.compile(r"Shipped on\s+(.+)", re.IGNORECASE)
ADDRESS_BLOCK_START_RE = re.compile(r"^(Shipping Address|Billing address):?", re.IGNORECASE)
ADDRESS_BLOCK_END_RE = re.compile(
    r"^(Shipping Speed:|Item\(s\) Subtotal:|Total before tax:|Sales Tax:|Estimated Tax:|"
    r"Total for This Shipment:|Payment information$|Credit Card transactions|Shipped on|-- \d+ of \d+ --$)",
    re.IGNORECASE,
)
_DIGITS_ONLY_RE = re.compile(r"^\d+$")


def should_ignore_line(line: str) -> bool:
    return any(pattern.search(line) for pattern in IGNORE_LINES)


@dataclass
class AmazonItemDraft:
    """The item opened by the latest "<qty> of:" line."""
    start_index: int
    qty: int
    description_parts: List[str] = field(default_factory=list)
    unit_price: Optional[str] = None
    description_locked: bool = False


class AmazonLineScanner:
    """Single pass over normalized lines producing Amazon line items."""

    def __init__(self, lines: List[NormalizedLine], items: List[LineItem], warnings: List[str], price_line_slack: int):
        self.lines = [line.text for line in lines]
        self.items = items
        self.warnings = warnings
        self.price_line_slack = price_line_slack
        self.draft: Optional[AmazonItemDraft] = None
        self.shipped_on: Optional[str] = None
        self.section = SECTION_UNKNOWN
        self.in_address_block = False

    def is_price_line(self, line: str) -> bool:
        """A line that is a price with at most a few characters of other text."""
        return bool(extract_money_tokens(line)) and len(strip_money_tokens(line)) < self.price_line_slack

    def run(self) -> None:
        for index, line in enumerate(self.lines):
            self.feed(index, line)
        self.finalize_item()

    def feed(self, index: int, line: str) -> None:
        if ADDRESS_BLOCK_START_RE.search(line):
            self.in_address_block = True
            return

        if self.in_address_block:
            if ADDRESS_BLOCK_END_RE.search(line) or ITEM_START_RE.search(line):
                self.in_address_block = False
            else:
                return

        shipped_on = SHIPPED_ON_RE.search(line)
        if shipped_on:
            self.finalize_item()
            self.shipped_on = parse_date_to_iso(shipped_on.group(1))
            self.section = SECTION_SHIPPED
            logger.debug(f"Shipment boundary at line {index}: {self.shipped_on}")
            return

        item_start = ITEM_START_RE.search(line)
        if item_start:
            self.finalize_item()
            self.start_item(index, int(item_start.group(1)), item_start.group(2).strip())
            return

        if self.draft is None or self.draft.description_locked or should_ignore_line(line):
            return

        if not self.draft.unit_price and self.is_price_line(line):
            self.draft.unit_price = extract_money_tokens(line)[0]
            self.draft.description_locked = True
            return

        if not _DIGITS_ONLY_RE.match(line):
            self.draft.description_parts.append(line)

    def start_item(self, index: int, qty: int, description: str) -> None:
        draft = AmazonItemDraft(start_index=index, qty=qty)
        # "... Product Name $12.34": the trailing price is the unit price
        price_at_end = PRICE_AT_END_RE.search(description)
        if price_at_end:
            draft.unit_price = normalize_money(price_at_end.group(1))
            description = description[:price_at_end.start()].strip()
        draft.description_parts.append(description)
        self.draft = draft

    def lookahead_unit_price(self, start_index: int) -> Optional[str]:
        for line in self.lines[start_index + 1:]:
            if ITEM_START_RE.search(line) or SHIPPED_ON_RE.search(line):
                break
            if not should_ignore_line(line) and self.is_price_line(line):
                return extract_money_tokens(line)[0]
        return None

    def finalize_item(self) -> None:
        draft, self.draft = self.draft, None
        if draft is None:
            return

        description = " ".join(draft.description_parts).strip()
        if not description:
            return

        unit_price = draft.unit_price or self.lookahead_unit_price(draft.start_index)
        if not unit_price:
            self.warnings.append(f"Could not find unit price for item: {description[:50]}")
            return

        total = (money_to_decimal(unit_price) or Decimal("0")) * draft.qty
        self.items.append(LineItem(
            description=description,
            qty=draft.qty,
            unit_price=unit_price,
            total=normalize_money(str(total)) or "0.00",
            shipped_on=self.shipped_on,
            section=self.section,
        ))


@register_vendor
class AmazonInvoiceParser(BaseInvoiceParser):
    """Parser for Amazon order invoices ("Final Details for Order")."""

    vendor = "amazon"
    display_name = "Amazon"
    signature = AMAZON_SIGNATURE
    header_rules = AMAZON_HEADER_RULES
    header_class = AmazonInvoiceHeader

    def scan_line_items(self, lines, items, warnings):
        AmazonLineScanner(lines, items, warnings, self.config.amazon_price_line_slack).run()

    def reconcile(self, header, items):
        return reconcile_totals(
            (item.total for item in items),
            header.grand_total,
            extras=(header.tax, header.shipping),
            message=AMAZON_MISMATCH,
            tolerance=self.config.reconciliation_tolerance,
        )


def parse_amazon_invoice_text(text: str, config=None):
    """Convenience function to parse Amazon invoice text."""
    return AmazonInvoiceParser(config).parse(text)
