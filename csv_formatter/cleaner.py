"""
Cell cleanup for parsed tables.

Stages run in a fixed order, each exactly once:
- sanitize: strip hidden characters, then surrounding whitespace
- deduplicate: keep the first occurrence of each exact row
- normalize: reformat phone numbers and dates cell by cell

Normalization relies on sanitized cells, so the order matters.
"""

from __future__ import annotations

import datetime
from typing import Optional, Set

import structlog

from .parser import Row, Table
from .rules import (
    HIDDEN_CHARS_RE,
    NON_DIGIT_RE,
    PHONE_MAX_DIGITS,
    PHONE_MIN_DIGITS,
    PHONE_RE,
    SHORT_YEAR_DATE_RE,
    TWO_DIGIT_YEAR_PIVOT,
    YEAR_FIRST_DATE_RE,
    DateOrder,
)

logger = structlog.get_logger(__name__)


def sanitize_cell(cell: str) -> str:
    return HIDDEN_CHARS_RE.sub("", cell).strip()


def sanitize(table: Table) -> Table:
    return [tuple(sanitize_cell(cell) for cell in row) for row in table]


def deduplicate(table: Table) -> Table:
    """Drop exact repeats of earlier rows, keeping first-seen order."""
    seen: Set[Row] = set()
    unique: Table = []
    for row in table:
        if row in seen:
            continue
        seen.add(row)
        unique.append(row)
    return unique


def format_phone(cell: str) -> Optional[str]:
    """Return the cell as (DDD) DDD-DDDD, or None if it does not look like a phone number."""
    if not PHONE_RE.fullmatch(cell):
        return None
    digits = NON_DIGIT_RE.sub("", cell)
    if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
        return None
    last10 = digits[-10:]
    return f"({last10[:3]}) {last10[3:6]}-{last10[6:]}"


def _expand_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        year += 2000 if year < TWO_DIGIT_YEAR_PIVOT else 1900
    return year


def parse_date(cell: str, date_order: DateOrder = DateOrder.MDY) -> Optional[datetime.date]:
    """
    Read a numeric date with a fixed field order.

    Year-first cells are always year/month/day. Cells ending in the year use
    date_order to tell month from day. Returns None when the cell is not a
    date or names a day that does not exist (e.g. 2023-02-30).
    """
    match = YEAR_FIRST_DATE_RE.fullmatch(cell)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = SHORT_YEAR_DATE_RE.fullmatch(cell)
        if not match:
            return None
        first, second, raw_year = match.groups()
        year = _expand_year(raw_year)
        if date_order is DateOrder.DMY:
            day, month = int(first), int(second)
        else:
            month, day = int(first), int(second)

    try:
        return datetime.date(year, month, day)
    except ValueError:
        return None


def normalize_cell(cell: str, date_order: DateOrder = DateOrder.MDY) -> str:
    # Phone wins over date when a cell could be read as both
    phone = format_phone(cell)
    if phone is not None:
        return phone

    date = parse_date(cell, date_order)
    if date is not None:
        return date.isoformat()

    return cell


def normalize(table: Table, date_order: DateOrder = DateOrder.MDY) -> Table:
    return [tuple(normalize_cell(cell, date_order) for cell in row) for row in table]


def clean(table: Table, date_order: DateOrder = DateOrder.MDY) -> Table:
    sanitized = sanitize(table)
    unique = deduplicate(sanitized)
    cleaned = normalize(unique, date_order)

    logger.debug(
        "table_cleaned",
        rows_in=len(table),
        duplicates_removed=len(sanitized) - len(unique),
        rows_out=len(cleaned),
    )
    return cleaned
