"""
Money-row recognition: quantity extraction and money column assignment.

A money row is a line carrying at least two money tokens and a quantity. It
is the only hard anchor in the line-item scan; everything else is attached
to the nearest money row.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from .money import MONEY_TOKEN_RE, abs_money, extract_money_tokens

_MONEY = r"\$?\s*[\d,]+\.\d{2}"

_QTY_LABEL_RE = re.compile(r"\bQty\b\s*[:#]?\s*(\d{1,3})\b", re.IGNORECASE)
# "<unit price> <qty> <subtotal>"
_QTY_BETWEEN_MONEY_RE = re.compile(_MONEY + r"\s+(\d{1,3})\s+" + _MONEY)
# "... <qty> <unit price> <total>"; the qty must not be the cents of an amount
_QTY_BEFORE_TRAILING_MONEY_RE = re.compile(
    r"^(.*?)(?<![.,$\d])\b(\d{1,3})\b\s+" + _MONEY + r"\s+" + _MONEY + r"\s*$"
)


@dataclass
class MoneyColumns:
    unit_price: str
    total: str
    subtotal: Optional[str] = None
    shipping: Optional[str] = None
    adjustment: Optional[str] = None
    tax: Optional[str] = None


@dataclass
class MoneyRow:
    qty: int
    columns: MoneyColumns
    description: str


def extract_qty(line: str) -> Optional[int]:
    """
    Find the quantity on a money row.

    Priority: explicit "Qty:" label, an integer strictly between two money
    tokens, then an integer immediately before the two trailing money tokens.
    """
    for pattern, group in (
        (_QTY_LABEL_RE, 1),
        (_QTY_BETWEEN_MONEY_RE, 1),
        (_QTY_BEFORE_TRAILING_MONEY_RE, 2),
    ):
        match = pattern.search(line)
        if match:
            qty = int(match.group(group))
            if qty > 0:
                return qty
    return None


def assign_columns(tokens: List[str]) -> Optional[MoneyColumns]:
    """Map an ordered money-token list onto invoice columns.

    unit price is always first and total always last. Subtotal needs three
    tokens and tax needs four. The tokens between subtotal and tax are read
    as shipping/adjustment: a negative one is the adjustment (stored
    positive), otherwise the first is shipping and the second adjustment.
    A third middle token is ignored.
    """
    n = len(tokens)
    if n < 2:
        return None

    columns = MoneyColumns(unit_price=tokens[0], total=tokens[-1])
    if n >= 3:
        columns.subtotal = tokens[1]
    if n >= 4:
        columns.tax = tokens[-2]

    middle = tokens[2:-2] if n >= 5 else []
    if middle:
        negative_idx = next((i for i, t in enumerate(middle) if t.startswith("-")), None)
        if negative_idx is not None:
            columns.adjustment = abs_money(middle[negative_idx])
            remaining = [t for i, t in enumerate(middle) if i != negative_idx]
            columns.shipping = remaining[0] if remaining else None
        elif len(middle) >= 2:
            columns.shipping = middle[0]
            columns.adjustment = abs_money(middle[1])
        else:
            columns.shipping = middle[0]
    return columns


def description_before_money(line: str) -> str:
    """Letter-bearing text in front of the first money token, if any."""
    match = MONEY_TOKEN_RE.search(line)
    prefix = line[:match.start()] if match else line
    prefix = prefix.strip()
    return prefix if re.search(r"[A-Za-z]", prefix) else ""


def parse_money_row(line: str, buffered_description: str = "") -> Optional[MoneyRow]:
    """Recognize a money row and read its columns.

    The description comes from the buffered fragments, falling back to text
    in front of the money columns. It may be empty here; callers decide how
    to recover one.
    """
    tokens = extract_money_tokens(line)
    if len(tokens) < 2:
        return None

    qty = extract_qty(line)
    if not qty:
        return None

    columns = assign_columns(tokens)
    description = (buffered_description or "").strip() or description_before_money(line)
    return MoneyRow(qty=qty, columns=columns, description=description)
