"""
Shared parse pipeline for vendor invoice parsers.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_CONFIG, ParserConfig
from .header_rules import HeaderRule, VendorSignature, extract_header_fields
from .models import LineItem, ParseResult
from .text_utils import NormalizedLine, normalize_lines

logger = logging.getLogger(__name__)

NO_ITEMS_WARNING = "No line items were detected. The PDF may be image-based or the template changed."


class BaseInvoiceParser:
    """
    Signature check -> header rules -> line-item scan -> reconciliation.

    Subclasses provide the vendor signature, the header rule table, the header
    model and the line-item scan. `parse` never raises for malformed input:
    every failure becomes a warning on a partial result.
    """

    vendor: str = ""
    display_name: str = ""
    signature: VendorSignature
    header_rules: Sequence[HeaderRule] = ()
    header_class: Any = None

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or DEFAULT_CONFIG

    @property
    def not_vendor_warning(self) -> str:
        article = "an" if self.display_name[:1].lower() in "aeiou" else "a"
        return f"Not {article} {self.display_name} invoice"

    def detect(self, text: str) -> bool:
        return self.signature.matches(text)

    def build_header(self, fields: Dict[str, str]) -> Any:
        return self.header_class(**fields)

    def scan_line_items(self, lines: List[NormalizedLine], items: List[LineItem], warnings: List[str]) -> None:
        """Append parsed items to `items` (and scan warnings to `warnings`)."""
        raise NotImplementedError

    def reconcile(self, header: Any, items: List[LineItem]) -> Optional[str]:
        raise NotImplementedError

    def parse(self, text: str) -> ParseResult:
        """
        Parse raw invoice text into header fields, line items and warnings.

        Args:
            text: Text already extracted from the vendor's PDF

        Returns:
            ParseResult for this vendor
        """
        text = text or ""
        logger.info(f"Parsing {len(text)} characters as a {self.display_name} invoice")

        if not self.detect(text):
            logger.info(f"{self.display_name} signature not found; skipping line-item scan")
            return ParseResult(
                vendor=self.vendor,
                header=self.header_class(),
                warnings=(self.not_vendor_warning,),
            )

        fields, warnings = extract_header_fields(text, self.header_rules)
        header = self.build_header(fields)

        items: List[LineItem] = []
        try:
            self.scan_line_items(normalize_lines(text), items, warnings)
        except Exception as e:
            # Keep whatever was parsed before the failure; callers always get a draft.
            logger.exception(f"{self.display_name} line-item scan failed")
            warnings.append(f"Line item parsing stopped early after {len(items)} item(s): {e}")

        if not items:
            warnings.append(NO_ITEMS_WARNING)

        mismatch = self.reconcile(header, items)
        if mismatch:
            warnings.append(mismatch)

        logger.info(f"Found {len(items)} line items with {len(warnings)} warning(s)")
        return ParseResult(
            vendor=self.vendor,
            header=header,
            line_items=tuple(items),
            warnings=tuple(warnings),
        )
