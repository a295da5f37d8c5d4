"""
Data models for the vendor invoice parser.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional, Tuple

SECTION_SHIPPED = "shipped"
SECTION_TO_BE_SHIPPED = "to_be_shipped"
SECTION_UNKNOWN = "unknown"


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _compact_dict(obj: Any) -> Dict[str, Any]:
    """Dataclass -> camelCase dict, dropping empty optional values."""
    data = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if isinstance(value, (list, tuple, dict)):
            if not value:
                continue
            if isinstance(value, tuple):
                value = list(value)
        if hasattr(value, "to_dict"):
            value = value.to_dict()
            if not value:
                continue
        data[_camel(f.name)] = value
    return data


@dataclass(frozen=True)
class ItemAttributes:
    """Structured attributes promoted out of `Key: Value` lines."""
    color: Optional[str] = None
    size: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.color or self.size)

    def with_value(self, key: str, value: Optional[str]) -> "ItemAttributes":
        return replace(self, **{key: value})

    def to_dict(self) -> Dict[str, str]:
        return _compact_dict(self)


@dataclass(frozen=True)
class LineItem:
    """A single purchased line on a vendor invoice. Final once parsing returns."""
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
    attribute_lines: Tuple[str, ...] = ()
    shipped_on: Optional[str] = None
    section: str = SECTION_UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return _compact_dict(self)


@dataclass
class AmazonInvoiceHeader:
    order_number: Optional[str] = None
    order_placed_date: Optional[str] = None  # YYYY-MM-DD
    grand_total: Optional[str] = None
    project_code: Optional[str] = None
    payment_method: Optional[str] = None
    tax: Optional[str] = None
    shipping: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact_dict(self)


@dataclass
class WayfairInvoiceHeader:
    invoice_number: Optional[str] = None
    order_date: Optional[str] = None  # YYYY-MM-DD
    order_total: Optional[str] = None
    subtotal: Optional[str] = None
    shipping_delivery_total: Optional[str] = None
    tax_total: Optional[str] = None
    adjustments_total: Optional[str] = None
    calculated_subtotal: Optional[str] = None  # order total - tax total

    def to_dict(self) -> Dict[str, Any]:
        return _compact_dict(self)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one parse call: header fields, ordered items and warnings."""
    vendor: str
    header: Any
    line_items: Tuple[LineItem, ...] = ()
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"vendor": self.vendor}
        if self.header is not None:
            data.update(self.header.to_dict())
        data["lineItems"] = [item.to_dict() for item in self.line_items]
        data["warnings"] = list(self.warnings)
        return data
