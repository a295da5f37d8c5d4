"""
Tunable thresholds shared by the vendor parsers.
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ParserConfig:
    """Parser thresholds. Defaults reproduce the production behavior."""

    # Max allowed |sum(item totals) - header total| before a warning is raised.
    reconciliation_tolerance: Decimal = Decimal("0.05")
    # Description fragments kept while waiting for a money row; oldest dropped.
    description_buffer_limit: int = 8
    # Distinct table-header phrases needed before a merged header is stripped.
    header_phrase_threshold: int = 4
    # Only the start of a line is scanned for merged table-header phrases.
    header_scan_window: int = 80
    # An Amazon line counts as "just a price" when this little text remains.
    amazon_price_line_slack: int = 15


DEFAULT_CONFIG = ParserConfig()
