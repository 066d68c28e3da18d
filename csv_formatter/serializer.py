from __future__ import annotations

from .parser import Row, Table
from .rules import DELIMITER, LINE_TERMINATOR, QUOTE

_NEEDS_QUOTING = (DELIMITER, QUOTE, "\n", "\r")


def escape_cell(cell: str) -> str:
    escaped = cell.replace(QUOTE, QUOTE * 2)
    if any(ch in cell for ch in _NEEDS_QUOTING):
        return f"{QUOTE}{escaped}{QUOTE}"
    return escaped


def serialize_row(row: Row) -> str:
    return DELIMITER.join(escape_cell(cell) for cell in row)


def serialize(table: Table) -> str:
    """Render rows as comma-separated, LF-joined CSV with no trailing newline."""
    return LINE_TERMINATOR.join(serialize_row(row) for row in table)
