"""
Quote-aware CSV tokenizer.

A two-state machine (unquoted / quoted) scans the text one character at a
time with one character of lookahead. Every decision lives in TRANSITIONS,
including the quirk that a quote appearing mid-field while unquoted switches
modes instead of being kept as a literal.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Tuple

import structlog

from .rules import BOM, DELIMITER, QUOTE

logger = structlog.get_logger(__name__)

Row = Tuple[str, ...]
Table = List[Row]


class State(Enum):
    UNQUOTED = "unquoted"
    QUOTED = "quoted"


class Token(Enum):
    QUOTE = "quote"
    ESCAPED_QUOTE = "escaped_quote"
    DELIMITER = "delimiter"
    NEWLINE = "newline"
    CHAR = "char"


class Action(Enum):
    APPEND = "append"            # append the lexeme to the current cell
    APPEND_QUOTE = "append_quote"  # append a single literal quote
    SKIP = "skip"                # consume without emitting
    END_CELL = "end_cell"
    END_ROW = "end_row"


TRANSITIONS: Dict[Tuple[State, Token], Tuple[Action, State]] = {
    (State.UNQUOTED, Token.QUOTE): (Action.SKIP, State.QUOTED),
    (State.UNQUOTED, Token.DELIMITER): (Action.END_CELL, State.UNQUOTED),
    (State.UNQUOTED, Token.NEWLINE): (Action.END_ROW, State.UNQUOTED),
    (State.UNQUOTED, Token.CHAR): (Action.APPEND, State.UNQUOTED),
    (State.QUOTED, Token.ESCAPED_QUOTE): (Action.APPEND_QUOTE, State.QUOTED),
    (State.QUOTED, Token.QUOTE): (Action.SKIP, State.UNQUOTED),
    (State.QUOTED, Token.DELIMITER): (Action.APPEND, State.QUOTED),
    (State.QUOTED, Token.NEWLINE): (Action.APPEND, State.QUOTED),
    (State.QUOTED, Token.CHAR): (Action.APPEND, State.QUOTED),
}


def _next_token(text: str, i: int, state: State) -> Tuple[Token, int]:
    """Classify the input at position i. Returns the token and how many characters it consumes."""
    char = text[i]
    next_char = text[i + 1] if i + 1 < len(text) else ""

    if char == QUOTE:
        if state is State.QUOTED and next_char == QUOTE:
            return Token.ESCAPED_QUOTE, 2
        return Token.QUOTE, 1
    if char == DELIMITER:
        return Token.DELIMITER, 1
    if char == "\r" and next_char == "\n":
        return Token.NEWLINE, 2
    if char in ("\r", "\n"):
        return Token.NEWLINE, 1
    return Token.CHAR, 1


def _is_blank(row: Row) -> bool:
    # BOMs count as whitespace
    return all(cell.replace(BOM, "").strip() == "" for cell in row)


def parse(text: str) -> Table:
    """
    Split text into rows of string cells.

    Never raises: unterminated quotes are closed at end of input, and rows
    whose cells are all empty or whitespace are dropped.
    """
    table: Table = []
    cells: List[str] = []
    buffer: List[str] = []
    state = State.UNQUOTED
    blank_rows = 0

    def close_row() -> None:
        nonlocal blank_rows
        cells.append("".join(buffer))
        buffer.clear()
        row = tuple(cells)
        cells.clear()
        if _is_blank(row):
            blank_rows += 1
        else:
            table.append(row)

    i = 0
    while i < len(text):
        token, width = _next_token(text, i, state)
        action, state = TRANSITIONS[(state, token)]

        if action is Action.APPEND:
            buffer.append(text[i:i + width])
        elif action is Action.APPEND_QUOTE:
            buffer.append(QUOTE)
        elif action is Action.END_CELL:
            cells.append("".join(buffer))
            buffer.clear()
        elif action is Action.END_ROW:
            close_row()

        i += width

    if buffer or cells:
        close_row()

    logger.debug("csv_parsed", rows=len(table), blank_rows_dropped=blank_rows)
    return table
