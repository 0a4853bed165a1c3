"""
Display width of text fields, counted the way a Japanese UI lays them out.

Full-width code points (CJK ideographs, hiragana, katakana, full-width forms,
and East-Asian "ambiguous" characters, which Japanese fonts render wide)
count 2. Everything else, including ASCII and half-width katakana, counts 1.
"""

import unicodedata
from typing import Optional

from .errors import FieldIssue, IssueKind, error

WIDE_CATEGORIES = frozenset({"F", "W", "A"})

# Max width in half-width units. Half of it is the full-width character count.
FIELD_WIDTH_LIMITS = {
    "major_category": 50,
    "middle_category": 50,
    "minor_category": 50,
    "optional_category": 50,
    "work_type": 16,
    "name": 50,
    "specification": 50,
    "unit": 6,
    "remarks": 50,
}


def char_width(char: str) -> int:
    return 2 if unicodedata.east_asian_width(char) in WIDE_CATEGORIES else 1


def width_of(text: str) -> int:
    """Total display width of a string."""
    return sum(char_width(c) for c in text or "")


def validate_max_width(text: str, max_width: int, field: str = "value") -> Optional[FieldIssue]:
    """None if text fits in max_width, else a LENGTH_EXCEEDED issue naming the limit."""
    if width_of(text) <= max_width:
        return None
    return error(
        field,
        IssueKind.LENGTH_EXCEEDED,
        f"{field} must be at most {max_width // 2} full-width "
        f"or {max_width} half-width characters",
        limit=str(max_width),
    )


def validate_field_width(field: str, text: str) -> Optional[FieldIssue]:
    """Width check against the field's configured limit. Unlimited fields pass."""
    max_width = FIELD_WIDTH_LIMITS.get(field)
    if max_width is None:
        return None
    return validate_max_width(text, max_width, field)
