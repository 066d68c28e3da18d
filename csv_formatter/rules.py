"""
Deterministic formatting rules.

This file exists to make the cleaning rules explicit and enforceable.
"""

import re
from enum import Enum

DELIMITER = ","
QUOTE = '"'
BOM = "\ufeff"
LINE_TERMINATOR = "\n"

# Zero-width space, non-joiner, joiner and the byte-order mark
HIDDEN_CHARS_RE = re.compile(r"[\u200b-\u200d\ufeff]")

PHONE_RE = re.compile(r"\+?[0-9\s\-()]{7,20}")
PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15
NON_DIGIT_RE = re.compile(r"[^0-9]")

SHORT_YEAR_DATE_RE = re.compile(r"([0-9]{1,2})[/\-]([0-9]{1,2})[/\-]([0-9]{2,4})")
YEAR_FIRST_DATE_RE = re.compile(r"([0-9]{4})[/\-]([0-9]{1,2})[/\-]([0-9]{1,2})")

# Two-digit years below the pivot land in 20xx, the rest in 19xx
TWO_DIGIT_YEAR_PIVOT = 50


class DateOrder(str, Enum):
    """Field order used for dates whose year comes last."""
    MDY = "MDY"
    DMY = "DMY"
