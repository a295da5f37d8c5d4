"""
Date normalization into ISO-8601 calendar dates (YYYY-MM-DD).
"""

import re
import logging
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_MDY_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
_MONTH_NAME_RE = re.compile(
    r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\s+(\d{1,2}),\s*(\d{4})\b",
    re.IGNORECASE,
)
_YEAR_RE = re.compile(r"\b\d{4}\b")

# Fixed default so fields dateutil cannot find never depend on today's date.
_DATEUTIL_DEFAULT = datetime(2000, 1, 1)


def _safe_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_date_to_iso(value: Optional[str]) -> Optional[str]:
    """Normalize invoice date text such as "01/05/2026" or "January 5, 2026".

    Tries M/D/YYYY, then "Month D, YYYY", then dateutil on text that carries
    a four-digit year. Returns None if nothing parses.
    """
    s = (value or "").strip()
    if not s:
        return None

    m = _MDY_RE.search(s)
    if m:
        month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if 1 <= month <= 12 and 1 <= day <= 31:
            iso = _safe_date(year, month, day)
            if iso:
                return iso

    m = _MONTH_NAME_RE.search(s)
    if m:
        month = _MONTHS.get(m.group(1).lower()[:3])
        day, year = int(m.group(2)), int(m.group(3))
        if month and 1 <= day <= 31:
            iso = _safe_date(year, month, day)
            if iso:
                return iso

    if not _YEAR_RE.search(s):
        return None

    try:
        parsed = date_parser.parse(s, default=_DATEUTIL_DEFAULT)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date {s!r}: {e}")
        return None
    return parsed.date().isoformat()
