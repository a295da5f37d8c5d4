"""
Wayfair invoice parser.

The money row (unit price / qty / totals) is the only hard anchor. Titles,
SKUs and attribute lines are soft-attached to the nearest money row, and
because pdf text extraction reorders and merges visual rows, the scanner
keeps a short window after each item where late SKUs, attributes and
description continuations can still be patched onto it.
"""

import re
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Set

from .base import BaseInvoiceParser
from .dates import parse_date_to_iso
from .header_rules import rule, signature
from .models import (
    SECTION_SHIPPED,
    SECTION_TO_BE_SHIPPED,
    SECTION_UNKNOWN,
    ItemAttributes,
    LineItem,
    WayfairInvoiceHeader,
)
from .money import extract_money_tokens, money_to_decimal, normalize_money
from .money_row import parse_money_row
from .reconcile import WAYFAIR_MISMATCH, reconcile_totals
from .registry import register_vendor
from .text_utils import NormalizedLine, has_unclosed_parenthesis
from .wayfair_lines import (
    BULLET_RE,
    SHIPPED_ON_RE,
    TO_BE_SHIPPED_RE,
    AttributeLine,
    count_table_header_phrases,
    extract_description_fragment_before_money,
    extract_inline_attributes,
    extract_leading_sku_from_money_row,
    extract_standalone_attribute,
    extract_standalone_sku,
    is_dimension_continuation,
    is_item_position_indicator,
    is_order_level_attribute_label,
    is_parenthetical_lead,
    is_parenthetical_tail,
    is_soft_continuation,
    is_summary_noise_line,
    is_table_header_line,
    normalize_description_fragment,
    split_size_line_spillover,
    split_sku_prefix,
    split_trailing_sku,
    strip_bullet,
    strip_leading_merged_table_header,
)

logger = logging.getLogger(__name__)

WAYFAIR_SIGNATURE = signature(
    "wayfair",
    any_of=[r"\bWayfair\b"],
    all_of=[[r"\bInvoice\s*(?:Number|#)", r"\bShipped\s+On\b|\bItems\s+to\s+be\s+Shipped\b"]],
)

_MONEY_VALUE = r"\$?\s*([\d,]+\.\d{2})\b"

WAYFAIR_HEADER_RULES = (
    rule(
        "invoice_number",
        r"\bInvoice\s*(?:Number|#)?\s*[:#]?\s*(\d{6,})\b",
        r"\bInvoice\s*[:#]?\s*(\d{6,})\b",
        missing_warning="Could not confidently find an invoice number.",
    ),
    rule(
        "order_date",
        r"\bOrder\s*Date\s*[:#]?\s*([^\n\r]+)\b",
        r"\bOrder\s*Placed\s*[:#]?\s*([^\n\r]+)\b",
        normalizer=parse_date_to_iso,
        missing_warning="Could not confidently find an order date; defaulting to today is recommended.",
    ),
    rule(
        "order_total",
        r"\bOrder\s*Total\s*[:#]?\s*" + _MONEY_VALUE,
        normalizer=normalize_money,
        missing_warning="Could not confidently find an order total; totals reconciliation will be limited.",
    ),
    rule("subtotal", r"\bSubtotal\s*[:#]?\s*" + _MONEY_VALUE, normalizer=normalize_money),
    rule(
        "shipping_delivery_total",
        r"\bShipping(?:\s*(?:&|and)\s*Delivery)?\s*[:#]?\s*" + _MONEY_VALUE,
        r"\bDelivery\s*[:#]?\s*" + _MONEY_VALUE,
        normalizer=normalize_money,
    ),
    rule("tax_total", r"\bTax(?:\s*Total)?\s*[:#]?\s*" + _MONEY_VALUE, normalizer=normalize_money),
    rule("adjustments_total", r"\bAdjustments?\s*[:#]?\s*(\(?-?\$?\s*[\d,]+\.\d{2}\)?)", normalizer=normalize_money),
)

_DASH_END_RE = re.compile(r"[-–—]$")
_PAREN_CLOSE_RE = re.compile(r"^(\d+\))")
_BARE_MONEY_RE = re.compile(r"^\$?\s*[\d,]+\.\d{2}\s*$")
_DIGITS_ONLY_RE = re.compile(r"^\d+$")
_SIZE_PREFIX_RE = re.compile(r"^Size\s*:\s*", re.IGNORECASE)

CONTINUATION_BULLET = "bullet"
CONTINUATION_PAREN_TAIL = "paren_tail"
CONTINUATION_PAREN_LEAD = "paren_lead"
CONTINUATION_SOFT = "soft"


def _join_description(base: str, fragment: str, tight: bool = False) -> str:
    base = base.strip()
    joiner = " " if tight or _DASH_END_RE.search(base) else " - "
    return f"{base}{joiner}{fragment}".strip()


@dataclass
class ScannedItem:
    """An emitted item that post-item lines may still patch; frozen into a LineItem after the scan."""
    description: str
    qty: int
    unit_price: Optional[str]
    total: str
    sku: Optional[str] = None
    subtotal: Optional[str] = None
    shipping: Optional[str] = None
    adjustment: Optional[str] = None
    tax: Optional[str] = None
    attributes: Optional[ItemAttributes] = None
    attribute_lines: List[str] = field(default_factory=list)
    shipped_on: Optional[str] = None
    section: str = SECTION_UNKNOWN

    def add_attribute_line(self, raw_line: str) -> None:
        raw_line = raw_line.strip()
        if raw_line and raw_line not in self.attribute_lines:
            self.attribute_lines.append(raw_line)

    def set_attribute(self, key: str, value: Optional[str]) -> None:
        self.attributes = (self.attributes or ItemAttributes()).with_value(key, value)
        if self.attributes.is_empty():
            self.attributes = None

    def size_line_index(self) -> Optional[int]:
        for i, line in enumerate(self.attribute_lines):
            if line.lower().startswith("size:"):
                return i
        return None

    def has_size(self) -> bool:
        return self.size_line_index() is not None or bool(self.attributes and self.attributes.size)

    def freeze(self) -> LineItem:
        return LineItem(
            description=self.description,
            qty=self.qty,
            unit_price=self.unit_price,
            total=self.total,
            sku=self.sku,
            subtotal=self.subtotal,
            shipping=self.shipping,
            adjustment=self.adjustment,
            tax=self.tax,
            attributes=self.attributes,
            attribute_lines=tuple(self.attribute_lines),
            shipped_on=self.shipped_on,
            section=self.section,
        )


def _attach_attribute(item: ScannedItem, attr: AttributeLine) -> None:
    item.add_attribute_line(attr.raw_line)
    if attr.key:
        item.set_attribute(attr.key, attr.value)


@dataclass
class LineItemDraft:
    """State for the item being assembled from lines seen since the last money row."""
    buffer_limit: int = 8
    description_parts: Deque[str] = field(init=False)
    pending_sku: Optional[str] = None
    pending_attributes: ItemAttributes = field(default_factory=ItemAttributes)
    pending_attribute_lines: List[str] = field(default_factory=list)
    # The post-item window: the previous item may still take continuation lines
    allow_loose_continuation: bool = False
    awaiting_post_money_continuation: bool = False

    def __post_init__(self):
        self.description_parts = deque(maxlen=self.buffer_limit)

    @property
    def window_open(self) -> bool:
        return self.allow_loose_continuation or self.awaiting_post_money_continuation

    def has_description(self) -> bool:
        return any(part.strip() for part in self.description_parts)

    def has_pending_attributes(self) -> bool:
        return bool(self.pending_attribute_lines) or not self.pending_attributes.is_empty()

    def has_pending(self) -> bool:
        return self.has_description() or bool(self.pending_sku) or self.has_pending_attributes()

    def description_text(self) -> str:
        return " ".join(self.description_parts).strip()

    def close_window(self) -> None:
        self.allow_loose_continuation = False
        self.awaiting_post_money_continuation = False

    def open_window(self) -> None:
        self.allow_loose_continuation = True
        self.awaiting_post_money_continuation = True

    def buffer(self, fragment: str) -> None:
        """Add description text; the oldest fragment falls off at the limit."""
        self.close_window()
        self.description_parts.append(fragment)

    def enqueue(self, fragment: Optional[str]) -> None:
        normalized = normalize_description_fragment(fragment)
        if normalized:
            self.buffer(normalized)

    def add_pending_attribute(self, attr: AttributeLine) -> None:
        self.pending_attribute_lines.append(attr.raw_line)
        if attr.key:
            self.pending_attributes = self.pending_attributes.with_value(attr.key, attr.value)

    def clear_pending(self) -> None:
        self.description_parts.clear()
        self.pending_sku = None
        self.pending_attributes = ItemAttributes()
        self.pending_attribute_lines = []

    def reset(self, keep_window: bool = False) -> None:
        # The window survives a reset only when nothing was pending
        keep_window = keep_window and self.window_open and not self.has_pending()
        self.clear_pending()
        if not keep_window:
            self.close_window()


class WayfairLineScanner:
    """
    Classifies each line and routes it to the draft, the previous item, or
    a new item. The first classification that matches consumes the line.
    """

    def __init__(self, lines: List[NormalizedLine], warnings: List[str], config):
        self.lines = lines
        self.items: List[ScannedItem] = []
        self.warnings = warnings
        self.config = config
        self.draft = LineItemDraft(buffer_limit=config.description_buffer_limit)
        self.section = SECTION_UNKNOWN
        self.shipped_on: Optional[str] = None
        # Most recent item whose SKU may still arrive after its money row
        self.last_item_awaiting_sku: Optional[ScannedItem] = None
        # Lines held while the last item awaits its SKU
        self.deferred_lines: List[str] = []
        self.deferred_item: Optional[ScannedItem] = None
        # Indices of items whose description left a parenthesis open
        self.dangling_parenthesis: Set[int] = set()

    @property
    def previous_item(self) -> Optional[ScannedItem]:
        return self.items[-1] if self.items else None

    def run(self) -> None:
        for line in self.lines:
            self.feed(line.text)

    def feed(self, line: str) -> None:
        line = line.strip()
        if self.handle_section_marker(line):
            return
        if self.handle_standalone_sku(line):
            return
        if self.handle_standalone_attribute(line):
            return
        if self.looks_like_table_header(line):
            payload = self.handle_table_header(line)
            if payload is None:
                return
            line = payload
        if is_summary_noise_line(line):
            logger.debug(f"Summary noise: {line!r}")
            self.draft.reset(keep_window=True)
            return
        if self.handle_continuation(line):
            return
        if self.handle_deferred_line(line):
            return
        if self.handle_dimension_continuation(line):
            return
        line = self.split_money_row_prefixes(line)
        if self.handle_money_row(line):
            return
        self.buffer_description(line)

    # -- section markers ----------------------------------------------------

    def handle_section_marker(self, line: str) -> bool:
        shipped_on = SHIPPED_ON_RE.search(line)
        if shipped_on:
            self.start_section(SECTION_SHIPPED, parse_date_to_iso(shipped_on.group(1)))
            return True
        if TO_BE_SHIPPED_RE.search(line):
            self.start_section(SECTION_TO_BE_SHIPPED, None)
            return True
        return False

    def start_section(self, section: str, shipped_on: Optional[str]) -> None:
        logger.debug(f"Section {section} (shipped on {shipped_on})")
        self.section = section
        self.shipped_on = shipped_on
        self.draft.reset()
        self.last_item_awaiting_sku = None
        self.clear_deferred()

    def clear_deferred(self) -> None:
        self.deferred_lines = []
        self.deferred_item = None

    # -- SKUs and attributes ------------------------------------------------

    def handle_standalone_sku(self, line: str) -> bool:
        sku = extract_standalone_sku(line)
        if not sku:
            return False

        previous = self.previous_item
        if previous is not None and previous is self.last_item_awaiting_sku and not previous.sku:
            # Lines held since the money row belong to this item after all
            if self.deferred_item is previous and self.deferred_lines:
                previous.description = _join_description(previous.description, " ".join(self.deferred_lines))
                self.clear_deferred()
            previous.sku = sku
            self.last_item_awaiting_sku = None
            logger.debug(f"Late SKU {sku} attached to item {len(self.items) - 1}")
            return True

        if not self.draft.description_parts and previous is not None and not previous.sku:
            previous.sku = sku
            if self.last_item_awaiting_sku is previous:
                self.last_item_awaiting_sku = None
            return True

        if self.draft.pending_sku:
            logger.debug(f"Ignoring SKU {sku}; draft already holds {self.draft.pending_sku}")
        else:
            self.draft.pending_sku = sku
        self.draft.close_window()
        return True

    def handle_standalone_attribute(self, line: str) -> bool:
        attr = extract_standalone_attribute(line)
        if attr is None:
            return False

        spillover = normalize_description_fragment(attr.spillover)
        if is_order_level_attribute_label(attr.label):
            self.draft.reset()
            self.draft.enqueue(spillover)
            return True

        previous = self.previous_item
        has_description = self.draft.has_description()
        attach_to_previous = previous is not None and not has_description and (
            self.draft.awaiting_post_money_continuation
            or (not self.draft.pending_sku and not self.draft.has_pending_attributes())
        )
        if attach_to_previous:
            _attach_attribute(previous, attr)
        else:
            self.draft.awaiting_post_money_continuation = False
            self.draft.add_pending_attribute(attr)

        # A title spilled into a Size cell seeds the next item
        self.draft.enqueue(spillover)
        return True

    def looks_like_table_header(self, line: str) -> bool:
        if is_table_header_line(line):
            return True
        hits = count_table_header_phrases(line, window=self.config.header_scan_window)
        return hits >= self.config.header_phrase_threshold

    def handle_table_header(self, line: str) -> Optional[str]:
        payload = strip_leading_merged_table_header(
            line,
            threshold=self.config.header_phrase_threshold,
            window=self.config.header_scan_window,
        )
        logger.debug(f"Table header: {line!r} (payload {payload!r})")
        self.draft.reset(keep_window=True)
        return payload

    # -- continuations ------------------------------------------------------

    def continuation_kind(self, line: str) -> Optional[str]:
        previous = self.previous_item
        if previous is None:
            return None
        window = self.draft.window_open
        dangling = (len(self.items) - 1) in self.dangling_parenthesis
        if dangling and is_parenthetical_tail(line):
            return CONTINUATION_PAREN_TAIL
        if dangling and window and is_parenthetical_lead(line):
            return CONTINUATION_PAREN_LEAD
        if BULLET_RE.match(line) and (window or dangling):
            return CONTINUATION_BULLET
        if window and is_soft_continuation(line):
            return CONTINUATION_SOFT
        return None

    def handle_continuation(self, line: str) -> bool:
        kind = self.continuation_kind(line)
        if kind is None or self.draft.has_pending():
            return False
        if extract_money_tokens(line) or is_item_position_indicator(line):
            return False

        fragment = strip_bullet(line) if kind == CONTINUATION_BULLET else line
        if not fragment:
            return True

        previous = self.previous_item
        index = len(self.items) - 1
        tight = kind in (CONTINUATION_PAREN_TAIL, CONTINUATION_PAREN_LEAD)
        previous.description = _join_description(previous.description, fragment, tight=tight)
        logger.debug(f"Continuation ({kind}) appended to item {index}: {fragment!r}")

        if previous is not self.last_item_awaiting_sku:
            self.draft.awaiting_post_money_continuation = False
        if has_unclosed_parenthesis(previous.description):
            self.dangling_parenthesis.add(index)
        else:
            self.dangling_parenthesis.discard(index)
            self.draft.allow_loose_continuation = False
        return True

    def handle_deferred_line(self, line: str) -> bool:
        previous = self.previous_item
        if previous is None or previous is not self.last_item_awaiting_sku:
            return False
        if not self.draft.awaiting_post_money_continuation:
            return False
        if extract_money_tokens(line) or self.continuation_kind(line) or is_item_position_indicator(line):
            return False
        self.deferred_lines.append(line)
        self.deferred_item = previous
        return True

    def handle_dimension_continuation(self, line: str) -> bool:
        previous = self.previous_item
        if previous is None or extract_money_tokens(line) or not is_dimension_continuation(line):
            return False
        size_index = previous.size_line_index()
        if size_index is None:
            return False
        previous.attribute_lines[size_index] = f"{previous.attribute_lines[size_index]} {line}"
        if previous.attributes and previous.attributes.size:
            previous.set_attribute("size", f"{previous.attributes.size} {line}")
        return True

    # -- money rows ---------------------------------------------------------

    def split_money_row_prefixes(self, line: str) -> str:
        """Move a leading SKU and merged title text off the money columns."""
        draft = self.draft
        if not draft.pending_sku:
            sku, remainder = extract_leading_sku_from_money_row(line)
            if sku:
                draft.pending_sku = sku
                line = remainder

        fragment, remainder = extract_description_fragment_before_money(line)
        if fragment:
            draft.buffer(fragment)
            line = remainder
        return line

    def handle_money_row(self, line: str) -> bool:
        draft = self.draft
        buffered = draft.description_text()
        if buffered and has_unclosed_parenthesis(buffered) and len(extract_money_tokens(line)) >= 2:
            close = _PAREN_CLOSE_RE.match(line)
            if close:
                draft.description_parts.append(close.group(1))

        buffered_for_parse = draft.description_text()
        deferred_text = " ".join(self.deferred_lines).strip()
        row = parse_money_row(line, buffered_for_parse or deferred_text)
        if row is None:
            return False

        self.emit_item(row)
        # Held lines went into this row's description or belong to nothing now
        self.clear_deferred()
        return True

    def emit_item(self, row) -> None:
        draft = self.draft
        inline = extract_inline_attributes(row.description)
        if draft.pending_sku:
            sku, description = draft.pending_sku, inline.cleaned_description
        else:
            sku, description = split_sku_prefix(inline.cleaned_description)

        attributes = ItemAttributes(
            color=draft.pending_attributes.color or inline.attributes.color,
            size=draft.pending_attributes.size or inline.attributes.size,
        )
        attribute_lines = [line.strip() for line in draft.pending_attribute_lines + inline.attribute_lines if line.strip()]

        # The title may only exist inside the Size cell that preceded this row
        recovered = None
        if not description.strip():
            for i, candidate in enumerate(attribute_lines):
                if not _SIZE_PREFIX_RE.match(candidate):
                    continue
                split = split_size_line_spillover(candidate)
                if split is None:
                    continue
                attribute_lines[i], size_value, recovered = split
                if not attributes.size or recovered in attributes.size:
                    attributes = attributes.with_value("size", size_value)
                break

        final_description = description.strip() or recovered or sku or ""
        if not final_description:
            self.warnings.append(f"Skipped a money row with no description: {row.columns.unit_price} x {row.qty}")
            logger.debug("Money row dropped: no description could be recovered")
            draft.reset()
            return

        item = ScannedItem(
            description=final_description,
            qty=row.qty,
            unit_price=row.columns.unit_price,
            total=row.columns.total,
            sku=sku,
            subtotal=row.columns.subtotal,
            shipping=row.columns.shipping,
            adjustment=row.columns.adjustment,
            tax=row.columns.tax,
            attributes=None if attributes.is_empty() else attributes,
            attribute_lines=list(dict.fromkeys(attribute_lines)),
            shipped_on=self.shipped_on,
            section=self.section,
        )
        if recovered:
            self.transfer_size_to_previous(item)

        self.items.append(item)
        index = len(self.items) - 1
        logger.debug(f"Item {index}: {item.description!r} qty={item.qty} total={item.total}")

        self.last_item_awaiting_sku = None if item.sku else item
        if has_unclosed_parenthesis(item.description):
            self.dangling_parenthesis.add(index)
        else:
            self.dangling_parenthesis.discard(index)

        draft.clear_pending()
        draft.open_window()

    def transfer_size_to_previous(self, item: ScannedItem) -> None:
        """A Size line carrying the next title sits under the previous SKU; move the size there."""
        previous = self.previous_item
        size_index = item.size_line_index()
        if previous is None or size_index is None:
            return
        if previous.has_size() or previous.section != self.section:
            return

        size_line = item.attribute_lines.pop(size_index)
        _attach_attribute(previous, AttributeLine(
            label="Size",
            value=_SIZE_PREFIX_RE.sub("", size_line).strip(),
            raw_line=size_line,
            key="size",
        ))
        if item.attributes is not None:
            item.set_attribute("size", None)

    # -- description buffering ----------------------------------------------

    def buffer_description(self, line: str) -> None:
        if _BARE_MONEY_RE.match(line) or _DIGITS_ONLY_RE.match(line):
            return
        draft = self.draft

        if not draft.pending_sku:
            sku, cleaned = split_trailing_sku(line)
            if sku:
                draft.pending_sku = sku
                line = cleaned
                draft.awaiting_post_money_continuation = False

        if not draft.pending_sku:
            sku, cleaned = split_sku_prefix(line)
            if sku:
                draft.pending_sku = sku
                draft.buffer(cleaned)
                return

        inline = extract_inline_attributes(line)
        if inline.attribute_lines:
            draft.awaiting_post_money_continuation = False
            draft.pending_attribute_lines.extend(inline.attribute_lines)
        if inline.attributes.color:
            draft.pending_attributes = draft.pending_attributes.with_value("color", inline.attributes.color)
        if inline.attributes.size:
            draft.pending_attributes = draft.pending_attributes.with_value("size", inline.attributes.size)

        description = inline.cleaned_description
        if not draft.pending_sku and description:
            sku, cleaned = split_trailing_sku(description)
            if sku:
                draft.pending_sku = sku
                description = cleaned
                draft.awaiting_post_money_continuation = False

        if description:
            draft.buffer(description)


@register_vendor
class WayfairInvoiceParser(BaseInvoiceParser):
    """Parser for Wayfair order invoices."""

    vendor = "wayfair"
    display_name = "Wayfair"
    signature = WAYFAIR_SIGNATURE
    header_rules = WAYFAIR_HEADER_RULES
    header_class = WayfairInvoiceHeader

    def build_header(self, fields):
        header = WayfairInvoiceHeader(**fields)
        total = money_to_decimal(header.order_total)
        tax = money_to_decimal(header.tax_total)
        if total is not None and tax is not None:
            header.calculated_subtotal = normalize_money(str(total - tax))
        return header

    def scan_line_items(self, lines, items, warnings):
        scanner = WayfairLineScanner(lines, warnings, self.config)
        try:
            scanner.run()
        finally:
            items.extend(item.freeze() for item in scanner.items)

    def reconcile(self, header, items):
        return reconcile_totals(
            (item.total for item in items),
            header.order_total,
            message=WAYFAIR_MISMATCH,
            tolerance=self.config.reconciliation_tolerance,
        )


def parse_wayfair_invoice_text(text: str, config=None):
    """Convenience function to parse Wayfair invoice text."""
    return WayfairInvoiceParser(config).parse(text)
