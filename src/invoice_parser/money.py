"""
Money normalization and money-token extraction.

Every amount the parsers emit is a canonical signed two-decimal string such as
``"1234.50"`` or ``"-12.34"``. Arithmetic is done with Decimal.
"""

import re
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Everything that is not a digit, separator, sign, parenthesis or currency symbol.
_NON_MONEY_CHARS_RE = re.compile(r"[^\d.,\-()$€£¥]")

# "$12.34", "-$12.34", "(12.34)", "($12.34)", "1,234.50"
MONEY_TOKEN_RE = re.compile(r"(?:\(\s*\$?\s*[\d,]+\.\d{2}\s*\)|-?\$?\s*[\d,]+\.\d{2})")


def money_to_decimal(text: Optional[str]) -> Optional[Decimal]:
    """Parse currency text into a Decimal rounded to cents.

    Parenthesized values and values carrying a minus sign are negative.
    Returns None when nothing numeric can be recovered.
    """
    if text is None:
        return None

    cleaned = _NON_MONEY_CHARS_RE.sub("", str(text))
    if not cleaned:
        return None

    negative = (cleaned.startswith("(") and cleaned.endswith(")")) or "-" in cleaned

    # Drop thousands separators, signs, parentheses and symbols
    digits = re.sub(r"[^\d.]", "", cleaned)
    if not digits:
        return None

    try:
        value = Decimal(digits).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.debug(f"Unparseable money value: {text!r}")
        return None

    if negative:
        value = -value
    if value == 0:
        value = abs(value)
    return value


def normalize_money(text: Optional[str]) -> Optional[str]:
    """Normalize currency text into a two-decimal string, e.g. "($12.34)" -> "-12.34"."""
    value = money_to_decimal(text)
    if value is None:
        return None
    return format(value, "f")


def money_to_number(text: Optional[str]) -> Optional[float]:
    value = money_to_decimal(text)
    return float(value) if value is not None else None


def abs_money(text: Optional[str]) -> Optional[str]:
    value = money_to_decimal(text)
    if value is None:
        return None
    return format(abs(value), "f")


def extract_money_tokens(line: str) -> List[str]:
    """Return every money-shaped substring of a line, normalized, in order."""
    tokens = []
    for raw in MONEY_TOKEN_RE.findall(line or ""):
        normalized = normalize_money(raw)
        if normalized:
            tokens.append(normalized)
    return tokens


def strip_money_tokens(line: str) -> str:
    """Remove money-shaped substrings, leaving the surrounding text."""
    return MONEY_TOKEN_RE.sub("", line or "").strip()


def format_dollars(value: Decimal) -> str:
    return f"${value.quantize(CENTS, rounding=ROUND_HALF_UP):.2f}"
