"""
Totals reconciliation between parsed line items and the invoice header.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from .config import DEFAULT_CONFIG
from .money import format_dollars, money_to_decimal

logger = logging.getLogger(__name__)

AMAZON_MISMATCH = "Calculated total ({calculated}) does not match order total ({expected}) (diff {diff})"
WAYFAIR_MISMATCH = "Line totals ({calculated}) do not match order total ({expected}). Difference: {diff}."


def sum_money(values: Iterable[Optional[str]]) -> Decimal:
    """Sum money strings; unparseable or missing values count as zero."""
    total = Decimal("0")
    for value in values:
        amount = money_to_decimal(value)
        if amount is not None:
            total += amount
    return total


def reconcile_totals(
    item_totals: Iterable[Optional[str]],
    header_total: Optional[str],
    extras: Iterable[Optional[str]] = (),
    message: str = WAYFAIR_MISMATCH,
    tolerance: Decimal = DEFAULT_CONFIG.reconciliation_tolerance,
) -> Optional[str]:
    """
    Compare summed item totals (plus any extras such as tax or shipping)
    against the header total.

    Returns:
        A single warning when the difference exceeds the tolerance, else None
    """
    expected = money_to_decimal(header_total)
    if expected is None:
        return None

    calculated = sum_money(item_totals) + sum_money(extras)
    diff = abs(calculated - expected)
    if diff <= tolerance:
        return None

    logger.info(f"Totals mismatch: calculated={calculated} expected={expected} diff={diff}")
    return message.format(
        calculated=format_dollars(calculated),
        expected=format_dollars(expected),
        diff=format_dollars(diff),
    )
