"""Cell identifier helpers: A1 <-> (row, col) conversion and range expansion.

Rows and columns are zero-based.  Column letters use bijective base-26
(``A`` = 0, ``Z`` = 25, ``AA`` = 26), rows are written 1-based.
"""

from __future__ import annotations

import re

MAX_ROWS = 10_000
MAX_COLS = 10_000

_A1_RE = re.compile(r"^([A-Z]+)(\d+)$")


class InvalidIdentifierError(ValueError):
    """Raised when a string is not a valid ``LETTERS`` + ``DIGITS`` identifier."""


def column_letter(col: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    if col < 0:
        raise ValueError(f"Column index must be >= 0, got {col}")
    letters = ""
    n = col + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """'A' -> 0, 'Z' -> 25, 'AA' -> 26."""
    n = 0
    for ch in letters:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def rowcol_to_a1(row: int, col: int) -> str:
    """Encode a zero-based (row, col) pair as an identifier like ``AB100``."""
    if row < 0:
        raise ValueError(f"Row index must be >= 0, got {row}")
    return f"{column_letter(col)}{row + 1}"


def a1_to_rowcol(ref: str) -> tuple[int, int]:
    """Decode an identifier like ``AB100`` into a zero-based (row, col) pair.

    Raises InvalidIdentifierError for anything that is not uppercase letters
    followed by a positive row number.
    """
    m = _A1_RE.match(ref)
    if not m:
        raise InvalidIdentifierError(f"Invalid cell identifier: {ref!r}")
    row = int(m.group(2)) - 1
    if row < 0:
        raise InvalidIdentifierError(f"Row must be >= 1: {ref!r}")
    return row, column_index(m.group(1))


def cells_in_range(start: str, end: str) -> list[str]:
    """Every identifier in the rectangle spanned by two corners, row-major.

    The corners may be given in any order.
    """
    start_row, start_col = a1_to_rowcol(start)
    end_row, end_col = a1_to_rowcol(end)

    r_min, r_max = min(start_row, end_row), max(start_row, end_row)
    c_min, c_max = min(start_col, end_col), max(start_col, end_col)

    return [
        rowcol_to_a1(r, c)
        for r in range(r_min, r_max + 1)
        for c in range(c_min, c_max + 1)
    ]


def offset_cell(
    ref: str,
    d_row: int,
    d_col: int,
    max_rows: int = MAX_ROWS,
    max_cols: int = MAX_COLS,
) -> str:
    """Move *ref* by (d_row, d_col), clamped to the ``max_rows`` x ``max_cols`` grid."""
    row, col = a1_to_rowcol(ref)
    row = min(max(row + d_row, 0), max_rows - 1)
    col = min(max(col + d_col, 0), max_cols - 1)
    return rowcol_to_a1(row, col)
