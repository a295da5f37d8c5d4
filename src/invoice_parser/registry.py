"""
Vendor parser registry and auto-detection.

Vendor modules register their parser class with `@register_vendor`; the
package `__init__` imports them so the registry is populated on import.
"""

import logging
from typing import Dict, List, Optional, Type

from .config import ParserConfig
from .models import ParseResult

logger = logging.getLogger(__name__)

AUTO = "auto"

# Detection order matters: more specific signatures first
_REGISTRY: Dict[str, Type] = {}


class UnknownVendorError(ValueError):
    """Raised when a vendor name has no registered parser."""


def register_vendor(parser_class):
    """Class decorator adding a BaseInvoiceParser subclass to the registry."""
    _REGISTRY[parser_class.vendor] = parser_class
    return parser_class


def available_vendors() -> List[str]:
    return list(_REGISTRY)


def get_parser(vendor: str, config: Optional[ParserConfig] = None):
    """
    Instantiate the parser registered for a vendor.

    Raises:
        UnknownVendorError: If no parser is registered under that name
    """
    try:
        parser_class = _REGISTRY[vendor.lower()]
    except KeyError:
        raise UnknownVendorError(
            f"Unknown vendor {vendor!r}; expected one of: {', '.join(available_vendors())}"
        ) from None
    return parser_class(config)


def detect_vendor(text: str) -> Optional[str]:
    """Return the first vendor whose signature matches the text, or None."""
    for vendor, parser_class in _REGISTRY.items():
        if parser_class.signature.matches(text):
            logger.debug(f"Detected vendor: {vendor}")
            return vendor
    return None


def parse_invoice_text(text: str, vendor: str = AUTO, config: Optional[ParserConfig] = None) -> ParseResult:
    """
    Parse invoice text with the named vendor parser, or detect the vendor.

    Args:
        text: Raw extracted invoice text
        vendor: A registered vendor name or "auto"
        config: Optional parser thresholds

    Returns:
        ParseResult. When no vendor matches in auto mode, the result carries
        a single warning and no items.
    """
    if vendor == AUTO:
        detected = detect_vendor(text)
        if detected is None:
            logger.warning("No vendor signature matched the invoice text")
            return ParseResult(
                vendor="unknown",
                header=None,
                warnings=(f"Unrecognized invoice; supported vendors: {', '.join(available_vendors())}",),
            )
        vendor = detected
    return get_parser(vendor, config).parse(text)
