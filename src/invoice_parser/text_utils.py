"""
Line preprocessing for extracted PDF text.
"""

import re
from typing import List, NamedTuple

_WHITESPACE_RE = re.compile(r"\s+")
_LINE_BREAK_RE = re.compile(r"\r?\n")


class NormalizedLine(NamedTuple):
    index: int
    text: str


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def normalize_lines(text: str) -> List[NormalizedLine]:
    """
    Split raw text into whitespace-collapsed, non-empty lines.

    Args:
        text: Raw text produced by the PDF text extractor

    Returns:
        Lines in original order, numbered from 0 after empties are dropped
    """
    collapsed = (collapse_whitespace(raw) for raw in _LINE_BREAK_RE.split(text or ""))
    return [NormalizedLine(i, line) for i, line in enumerate(line for line in collapsed if line)]


def has_unclosed_parenthesis(text: str) -> bool:
    balance = 0
    for char in text or "":
        if char == "(":
            balance += 1
        elif char == ")" and balance > 0:
            balance -= 1
    return balance > 0
