"""
Vendor Invoice Parser

Turns text extracted from Amazon and Wayfair invoice PDFs into normalized
line items, header totals and reviewer warnings.
"""

__version__ = "1.0.0"

from .config import DEFAULT_CONFIG, ParserConfig
from .models import (
    AmazonInvoiceHeader,
    ItemAttributes,
    LineItem,
    ParseResult,
    WayfairInvoiceHeader,
)
from .amazon import AmazonInvoiceParser, parse_amazon_invoice_text
from .wayfair import WayfairInvoiceParser, parse_wayfair_invoice_text
from .registry import detect_vendor, get_parser, parse_invoice_text

__all__ = [
    "DEFAULT_CONFIG",
    "ParserConfig",
    "AmazonInvoiceHeader",
    "WayfairInvoiceHeader",
    "ItemAttributes",
    "LineItem",
    "ParseResult",
    "AmazonInvoiceParser",
    "WayfairInvoiceParser",
    "parse_amazon_invoice_text",
    "parse_wayfair_invoice_text",
    "parse_invoice_text",
    "detect_vendor",
    "get_parser",
]
