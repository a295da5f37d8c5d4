"""
Line classifiers for Wayfair invoice text.

pdf text extraction merges and reorders Wayfair table cells, so a single
visual row can arrive as several lines (title, SKU, attributes, money
columns) or several rows can collapse into one line. The helpers here
recognize each kind of fragment; the state machine in `wayfair.py` decides
where it goes.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import ItemAttributes
from .money import MONEY_TOKEN_RE, extract_money_tokens
from .money_row import extract_qty
from .text_utils import collapse_whitespace

# ---------------------------------------------------------------------------
# Section markers and noise
# ---------------------------------------------------------------------------

SHIPPED_ON_RE = re.compile(r"\bShipped\s+On\s+(.+)\b", re.IGNORECASE)
TO_BE_SHIPPED_RE = re.compile(r"\bItems\s+to\s+be\s+Shipped\b|\bTo\s+be\s+Shipped\b", re.IGNORECASE)

_SUMMARY_NOISE_RES = (
    re.compile(r"\b(Order Total|Subtotal|Tax Total|Tax|Adjustments?|Invoice|Order Date)\b", re.IGNORECASE),
    re.compile(r"\b(Ship(?:ping)?|Handling|Payment|Bill(?:ing)?|Address)\b", re.IGNORECASE),
)

_HEADER_LABEL_RES = (
    re.compile(r"^(?:Item|Unit Price|Qty|Subtotal|Adjustment|Tax|Total)$", re.IGNORECASE),
    re.compile(r"^Shipping\s*(?:and|&)\s*Delivery$", re.IGNORECASE),
    re.compile(r"^Delivery$", re.IGNORECASE),
)

_HEADER_ROW_WORDS = (
    ("Unit Price", "Qty", "Subtotal", "Total"),
    ("Shipping", "Delivery", "Adjustment", "Tax"),
)

TABLE_HEADER_PHRASES = (
    "Shipping & Delivery",
    "Shipping and Delivery",
    "Unit Price",
    "Subtotal",
    "Adjustment",
    "Delivery",
    "Item",
    "Qty",
    "Tax",
    "Total",
)

_HEADER_PREFIX_RES = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"^Item\s+",
    r"^Unit Price\s+",
    r"^Qty\s+",
    r"^Subtotal\s+",
    r"^Shipping\s*(?:and|&)\s*Delivery\s+",
    r"^Delivery\s+",
    r"^Adjustment\s+",
    r"^Tax\s+",
    r"^Total\s+",
))


def is_summary_noise_line(line: str) -> bool:
    return any(pattern.search(line) for pattern in _SUMMARY_NOISE_RES)


def is_table_header_line(line: str) -> bool:
    """Column-header fragments or a whole header row. Kept conservative."""
    s = line.strip()
    if not s:
        return False
    if any(pattern.match(s) for pattern in _HEADER_LABEL_RES):
        return True
    for words in _HEADER_ROW_WORDS:
        if all(re.search(r"\b" + re.escape(word) + r"\b", s, re.IGNORECASE) for word in words):
            return True
    return False


def count_table_header_phrases(line: str, window: int = 80) -> int:
    """Distinct header phrases in the first `window` characters of the line."""
    scan_window = collapse_whitespace(line)[:window].lower()
    return sum(1 for phrase in TABLE_HEADER_PHRASES if phrase.lower() in scan_window)


def strip_leading_merged_table_header(line: str, threshold: int = 4, window: int = 80) -> Optional[str]:
    """
    Recover item text from a line where a header row was merged in front of it.

    Only strips when at least `threshold` distinct header phrases appear in the
    first `window` characters.

    Returns:
        The remaining payload, or None when the line is header-only
    """
    s = collapse_whitespace(line)
    if not s:
        return None

    if count_table_header_phrases(s, window) < threshold:
        return None

    changed = False
    for _ in range(20):
        before = s
        for pattern in _HEADER_PREFIX_RES:
            s = pattern.sub("", s)
        s = s.strip()
        if s == before:
            break
        changed = True
    if changed and s:
        # A full header row strips down to its last label
        return None if is_table_header_line(s) else s

    # Header row not at the very start: cut after the last phrase seen near the start
    lower = line.lower()
    candidates = []
    for phrase in TABLE_HEADER_PHRASES:
        idx = lower.find(phrase.lower())
        if 0 <= idx < window:
            candidates.append(idx + len(phrase))
    if len(candidates) < threshold:
        return None

    cut = max(candidates)
    if 0 < cut < len(line) - 1:
        payload = collapse_whitespace(line[cut:])
        if payload:
            return payload
    return None


# ---------------------------------------------------------------------------
# Quotes and description fragments
# ---------------------------------------------------------------------------

DOUBLE_QUOTE_CHARS = '"“”„″‶＂'
_DOUBLE_QUOTE_RE = re.compile(f"[{DOUBLE_QUOTE_CHARS}]")
_OUTER_QUOTES_RE = re.compile(f"^[{DOUBLE_QUOTE_CHARS}]+|[{DOUBLE_QUOTE_CHARS}]+$")


def strip_outer_quotes(text: str) -> str:
    return _OUTER_QUOTES_RE.sub("", text).strip()


def normalize_description_fragment(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace and drop quotes wrapping a whole product title."""
    s = collapse_whitespace(text or "")
    if not s:
        return None
    return strip_outer_quotes(s) or s


def extract_description_fragment_before_money(line: str) -> Tuple[Optional[str], str]:
    """
    Split item text that pdf extraction merged in front of the money columns.

    A bare integer at the end of the text stays with the money columns when it
    is what makes the quantity readable ("Desk Lamp 2 $10.00 $20.00").

    Returns:
        (fragment or None, the money-column remainder)
    """
    match = MONEY_TOKEN_RE.search(line or "")
    if not match or match.start() <= 0:
        return None, line

    fragment = collapse_whitespace(line[:match.start()])
    remainder = line[match.start():].strip()
    if not fragment or not remainder:
        return None, line

    parts = fragment.split(" ")
    if len(parts) >= 2 and re.fullmatch(r"\d{1,3}", parts[-1]):
        with_qty = f"{parts[-1]} {remainder}"
        if extract_qty(remainder) is None and extract_qty(with_qty) is not None:
            fragment = " ".join(parts[:-1])
            remainder = with_qty

    if not re.search(r"[A-Za-z]", fragment):
        return None, line

    alpha_tokens = [token for token in fragment.split(" ") if re.search(r"[A-Za-z]", token)]
    if len(alpha_tokens) < 2:
        # Standalone SKU tokens and short prefixes such as "SKU" are not titles
        if is_likely_sku_token(fragment) or len(fragment) < 6:
            return None, line

    return fragment, remainder


# ---------------------------------------------------------------------------
# SKUs
# ---------------------------------------------------------------------------

_SKU_TOKEN_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z0-9]{6,20}$")
_LABELED_SKU_RE = re.compile(r"^(?:SKU|Item\s*(?:#|No\.?|Number|ID))\s*[:#]?\s*([A-Za-z0-9-]+)\s*$", re.IGNORECASE)
_LEADING_TOKEN_RE = re.compile(r"^([A-Za-z0-9-]{6,20})\s+(.+)$")


def is_likely_sku_token(token: str) -> bool:
    """Wayfair item codes look like "W004170933" or "FOW21689": letters and digits, 6-20 chars."""
    return bool(_SKU_TOKEN_RE.match((token or "").strip()))


def extract_standalone_sku(line: str) -> Optional[str]:
    s = (line or "").strip()
    if not s or extract_money_tokens(s):
        return None
    labeled = _LABELED_SKU_RE.match(s)
    if labeled:
        value = labeled.group(1).strip()
        return value if is_likely_sku_token(value) else None
    if is_likely_sku_token(s):
        return s
    return None


def extract_leading_sku_from_money_row(line: str) -> Tuple[Optional[str], str]:
    """SKU glued to the front of a money row; kept only if two money tokens remain."""
    s = collapse_whitespace(line)
    if len(extract_money_tokens(s)) < 2:
        return None, line
    match = _LEADING_TOKEN_RE.match(s)
    if not match or not is_likely_sku_token(match.group(1)):
        return None, line
    remainder = match.group(2).strip()
    if len(extract_money_tokens(remainder)) < 2:
        return None, line
    return match.group(1), remainder


def split_sku_prefix(description: str) -> Tuple[Optional[str], str]:
    s = collapse_whitespace(description)
    match = _LEADING_TOKEN_RE.match(s)
    if not match or not is_likely_sku_token(match.group(1)):
        return None, s
    return match.group(1), match.group(2).strip()


def split_trailing_sku(line: str) -> Tuple[Optional[str], str]:
    s = collapse_whitespace(line)
    if not s or extract_money_tokens(s):
        return None, s
    parts = s.split(" ")
    if len(parts) < 2 or not is_likely_sku_token(parts[-1]):
        return None, s
    return parts[-1], " ".join(parts[:-1]).strip()


# ---------------------------------------------------------------------------
# Attributes and size spillover
# ---------------------------------------------------------------------------

ORDER_LEVEL_ATTRIBUTE_PREFIXES = (
    "order ",
    "invoice",
    "payment",
    "currency",
    "tax ",
    "taxable ",
    "tax-exempt",
    "tax exempt",
    "billing",
    "bill to",
    "ship to",
    "shipping address",
    "shipping country",
    "shipping state",
    "shipping city",
    "shipping method",
)

ORDER_LEVEL_ATTRIBUTE_EXACT = frozenset((
    "order country",
    "order state",
    "order city",
    "order postal code",
    "order zip",
    "order id",
    "order number",
    "order total",
    "payment type",
    "currency",
    "tax exempt",
    "tax exemption certificate",
))

STRUCTURED_ATTRIBUTE_KEYS = ("color", "size")

_KEY_VALUE_RE = re.compile(r"^([A-Za-z][A-Za-z0-9 /&()-]{0,30})\s*:\s*(.+)$")
_SIZE_LINE_RE = re.compile(r"^Size\s*:\s*(.*)$", re.IGNORECASE)
_INLINE_ATTRIBUTE_RE = re.compile(
    r"\b(Fabric|Color|Size)\s*:\s*([^:]+?)(?=\s+(?:Fabric|Color|Size)\b|$)",
    re.IGNORECASE,
)

_MEASUREMENT_UNIT_RE = re.compile(r"\b(?:cm|mm|inch|inches|ft|foot|feet|x)\b", re.IGNORECASE)
DIMENSION_CONTINUATION_RE = re.compile(
    r"""^\s*x\s+\d+(?:\.\d+)?(?:\s*(?:"|'|inch|inches|cm|mm|ft|feet|in|L|W|H|D))?\s*$""",
    re.IGNORECASE,
)

# Trailing quoted title after a measurement, most specific first
_SPILLOVER_RES = (
    re.compile(r'"\s*([^"]*[A-Za-z][^"]*)\s*"\s*$'),
    re.compile(r'\s"([^"]*[A-Za-z][^"]*)"\s*$'),
    re.compile(r'"([^"]*[A-Za-z][^"]*)"\s*$'),
)
_QUOTED_TAIL_RE = re.compile(r'^(.*?)(?:\s+"([^"]+)"\s*)$')


@dataclass
class AttributeLine:
    label: str
    value: str
    raw_line: str
    key: Optional[str] = None
    spillover: Optional[str] = None


@dataclass
class InlineAttributes:
    cleaned_description: str
    attributes: ItemAttributes = field(default_factory=ItemAttributes)
    attribute_lines: List[str] = field(default_factory=list)


def is_order_level_attribute_label(label: str) -> bool:
    normalized = (label or "").strip().lower()
    if not normalized:
        return False
    if normalized in ORDER_LEVEL_ATTRIBUTE_EXACT:
        return True
    return normalized.startswith(ORDER_LEVEL_ATTRIBUTE_PREFIXES)


def _looks_like_measurement(text: str) -> bool:
    return bool(re.search(r"\d", text) or _MEASUREMENT_UNIT_RE.search(text))


def _looks_descriptive(text: str) -> bool:
    if len(text) < 4 or not re.search(r"[A-Za-z]", text):
        return False
    return not DIMENSION_CONTINUATION_RE.match(text)


def split_attribute_spillover(label: str, value: str) -> Tuple[str, Optional[str]]:
    """
    Separate the next item's quoted title from a `Size:` value.

    Some invoices merge the following row's title into the size cell, e.g.
    `138" L x 105.96" W " Vintage Landscape - DCXXXIV "`. The measurement
    stays; the quoted title is returned as spillover.

    Returns:
        (cleaned value, spillover or None)
    """
    trimmed = collapse_whitespace(value)
    if not trimmed or label.strip().lower() != "size":
        return trimmed, None

    # Same length as `trimmed`, so match offsets carry over
    canonical = _DOUBLE_QUOTE_RE.sub('"', trimmed)

    for pattern in _SPILLOVER_RES:
        match = pattern.search(canonical)
        if not match:
            continue
        base = trimmed[:match.start()].strip()
        candidate = strip_outer_quotes(match.group(1).strip())
        if base and _looks_like_measurement(base) and _looks_descriptive(candidate):
            return base, candidate

    match = _QUOTED_TAIL_RE.match(canonical)
    if match:
        base = trimmed[:len(match.group(1))].strip()
        candidate = strip_outer_quotes(match.group(2).strip())
        if base and _looks_like_measurement(base) and _looks_descriptive(candidate):
            return base, candidate

    return trimmed, None


def extract_standalone_attribute(line: str) -> Optional[AttributeLine]:
    """A `Key: Value` line such as "Fabric: Linen" or "Size: King"."""
    s = (line or "").strip()
    if not s:
        return None

    # Size values can hold decimal measurements that look like money
    if not _SIZE_LINE_RE.match(s) and extract_money_tokens(s):
        return None

    match = _KEY_VALUE_RE.match(s)
    if not match:
        return None

    label = collapse_whitespace(match.group(1))
    value = match.group(2).strip()
    if not value:
        return None

    cleaned, spillover = split_attribute_spillover(label, value)
    key = label.lower() if label.lower() in STRUCTURED_ATTRIBUTE_KEYS else None
    return AttributeLine(
        label=label,
        value=cleaned,
        raw_line=f"{label}: {cleaned}".strip(),
        key=key,
        spillover=spillover,
    )


def split_size_line_spillover(line: str) -> Optional[Tuple[str, str, str]]:
    """
    Returns:
        (cleaned "Size: ..." line, size value, spillover title) or None
    """
    s = collapse_whitespace(line)
    match = _SIZE_LINE_RE.match(s)
    if not match or not match.group(1):
        return None
    cleaned, spillover = split_attribute_spillover("Size", match.group(1))
    spillover = normalize_description_fragment(spillover)
    cleaned = collapse_whitespace(cleaned)
    if not spillover or not cleaned:
        return None
    return f"Size: {cleaned}", cleaned, spillover


def extract_inline_attributes(description: str) -> InlineAttributes:
    """Pull `Fabric:`, `Color:` and `Size:` pairs out of a description line."""
    s = collapse_whitespace(description)
    # Stray header word prepended by pdf line reconstruction
    s = re.sub(r"^Delivery\s+", "", s, flags=re.IGNORECASE)

    result = InlineAttributes(cleaned_description=s)
    matches = list(_INLINE_ATTRIBUTE_RE.finditer(s))
    if not matches:
        return result

    for match in matches:
        label = match.group(1).strip()
        value = re.sub(r"[,\s]+$", "", match.group(2).strip())
        if not value:
            continue
        raw_line = f"{collapse_whitespace(label)}: {collapse_whitespace(value)}"
        if raw_line not in result.attribute_lines:
            result.attribute_lines.append(raw_line)
        if label.lower() in STRUCTURED_ATTRIBUTE_KEYS:
            result.attributes = result.attributes.with_value(label.lower(), value)

    result.cleaned_description = collapse_whitespace(_INLINE_ATTRIBUTE_RE.sub(" ", s))
    return result


# ---------------------------------------------------------------------------
# Continuations
# ---------------------------------------------------------------------------

CONTINUATION_LEADING_WORDS = frozenset((
    "and", "with", "for", "of", "set", "pair", "per", "by", "in", "on", "to", "the",
))

BULLET_RE = re.compile(r"^[-–•]")
_BULLET_PREFIX_RE = re.compile(r"^[-–•]\s*")
_POSITION_INDICATOR_RE = re.compile(r"^\(?\d+\s+of\s+\d+\)?\.?$")
_PARENTHETICAL_TAIL_CHARS_RE = re.compile(r"^[A-Za-z0-9()\[\] ,./'&-]+$")


def strip_bullet(line: str) -> str:
    return _BULLET_PREFIX_RE.sub("", line).strip()


def is_soft_continuation(line: str) -> bool:
    """Line opening with a connective ("and", "with", ...) or a "("."""
    cleaned = re.sub(r"^[^A-Za-z0-9(]+", "", (line or "").strip())
    if not cleaned:
        return False
    first = cleaned.split()[0].lower()
    return first.startswith("(") or first in CONTINUATION_LEADING_WORDS


def is_parenthetical_lead(line: str) -> bool:
    """Short text opening a parenthesis it does not close, e.g. "Rug (Set"."""
    s = collapse_whitespace(line)
    if not s or len(s) > 120:
        return False
    if "(" not in s or ")" in s or re.search(r"[:@]", s):
        return False
    prefix = s[:s.index("(")].strip()
    if not prefix or len(prefix) > 30 or len(prefix.split()) > 4:
        return False
    return True


def is_parenthetical_tail(line: str) -> bool:
    """Short text closing a parenthesis, e.g. "of 2)"."""
    s = collapse_whitespace(line)
    if not s or len(s) > 60 or ")" not in s or re.search(r"[:@]", s):
        return False
    return bool(_PARENTHETICAL_TAIL_CHARS_RE.match(s))


def is_dimension_continuation(line: str) -> bool:
    return bool(DIMENSION_CONTINUATION_RE.match(collapse_whitespace(line)))


def is_item_position_indicator(line: str) -> bool:
    """"1 of 3", "(2 of 2)": position within a set, never description text."""
    return bool(_POSITION_INDICATOR_RE.match(collapse_whitespace(line)))
