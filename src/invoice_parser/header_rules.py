"""
Declarative header-field rules and vendor signatures.

Each vendor parser owns a table of HeaderRule entries (field -> patterns ->
normalizer). Keeping the patterns in one precompiled table per vendor makes
the vendor differences easy to diff and test in isolation.
"""

import re
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Sequence, Tuple

logger = logging.getLogger(__name__)

SELECT_FIRST = "first"
SELECT_LAST = "last"


def _strip_value(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


@dataclass(frozen=True)
class HeaderRule:
    """One invoice-level field.

    `patterns` are tried in order and the first one that matches wins. Each
    pattern either captures the value in group 1 or, when `render` is given,
    the match object is handed to `render` to build the value.
    """
    field: str
    patterns: Tuple[Pattern, ...]
    normalizer: Callable[[str], Optional[str]] = _strip_value
    select: str = SELECT_FIRST
    missing_warning: Optional[str] = None
    render: Optional[Callable[["re.Match"], str]] = None

    def _raw_value(self, match: "re.Match") -> Optional[str]:
        if self.render is not None:
            return self.render(match)
        value = match.group(1)
        return value.strip() if value else None

    def extract(self, text: str) -> Optional[str]:
        for pattern in self.patterns:
            if self.select == SELECT_LAST:
                match = None
                for match in pattern.finditer(text):
                    pass
            else:
                match = pattern.search(text)
            if not match:
                continue
            raw = self._raw_value(match)
            if not raw:
                continue
            value = self.normalizer(raw)
            if value:
                return value
        return None


def rule(field: str, *patterns: str, flags: int = re.IGNORECASE, **kwargs) -> HeaderRule:
    """Build a HeaderRule from pattern strings, compiling them once."""
    return HeaderRule(field=field, patterns=tuple(re.compile(p, flags) for p in patterns), **kwargs)


def extract_header_fields(text: str, rules: Sequence[HeaderRule]) -> Tuple[Dict[str, str], List[str]]:
    """
    Run a vendor rule table over the full invoice text.

    Args:
        text: Raw invoice text
        rules: The vendor's rule table

    Returns:
        (fields found, warnings for missing fields that require one)
    """
    found: Dict[str, str] = {}
    warnings: List[str] = []
    for header_rule in rules:
        value = header_rule.extract(text or "")
        if value:
            found[header_rule.field] = value
        elif header_rule.missing_warning:
            warnings.append(header_rule.missing_warning)
    logger.debug(f"Header fields found: {sorted(found)}")
    return found, warnings


@dataclass(frozen=True)
class VendorSignature:
    """Cheap check that the text comes from the expected vendor template.

    Matches when any pattern of `any_of` matches, or when every pattern of one
    of the `all_of` groups matches.
    """
    vendor: str
    any_of: Tuple[Pattern, ...] = ()
    all_of: Tuple[Tuple[Pattern, ...], ...] = ()

    def matches(self, text: str) -> bool:
        text = text or ""
        if any(p.search(text) for p in self.any_of):
            return True
        return any(group and all(p.search(text) for p in group) for group in self.all_of)


def signature(vendor: str, any_of: Sequence[str] = (), all_of: Sequence[Sequence[str]] = ()) -> VendorSignature:
    return VendorSignature(
        vendor=vendor,
        any_of=tuple(re.compile(p, re.IGNORECASE) for p in any_of),
        all_of=tuple(tuple(re.compile(p, re.IGNORECASE) for p in group) for group in all_of),
    )
