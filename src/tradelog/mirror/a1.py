"""A1 notation helpers.

Supports the range shapes the mirror uses: ``Sheet``, ``Sheet!A1``,
``Sheet!B7``, ``Sheet!A:C``, ``Sheet!A1:C`` and ``Sheet!A2:N2``.
Rows and columns are 0-based internally; an end of ``None`` means
unbounded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"^([A-Za-z]*)(\d*)$")


@dataclass(frozen=True)
class A1Range:
    sheet: str
    start_row: int = 0
    start_col: int = 0
    end_row: int | None = None  # inclusive
    end_col: int | None = None  # inclusive

    def contains_col(self, col: int) -> bool:
        return col >= self.start_col and (self.end_col is None or col <= self.end_col)

    def contains_row(self, row: int) -> bool:
        return row >= self.start_row and (self.end_row is None or row <= self.end_row)


def column_letter(index: int) -> str:
    """0 -> ``A``, 25 -> ``Z``, 26 -> ``AA``."""
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def column_index(letters: str) -> int:
    n = 0
    for ch in letters.upper():
        n = n * 26 + (ord(ch) - 64)
    return n - 1


def cell_ref(sheet: str, row: int, col: int) -> str:
    """``cell_ref("Config", 4, 1)`` -> ``"Config!B5"``."""
    return f"{sheet}!{column_letter(col)}{row + 1}"


def _split_cell(ref: str) -> tuple[int | None, int | None]:
    m = _CELL_RE.match(ref.strip())
    if not m or not (m.group(1) or m.group(2)):
        raise ValueError(f"Invalid A1 cell reference: {ref!r}")
    col = column_index(m.group(1)) if m.group(1) else None
    row = int(m.group(2)) - 1 if m.group(2) else None
    return row, col


def parse_a1(range_: str) -> A1Range:
    """Parse an A1 range string.

    Raises ``ValueError`` for references this module does not understand.
    """
    sheet, sep, ref = range_.rpartition("!")
    if not sep:
        return A1Range(sheet=_unquote(range_))
    sheet = _unquote(sheet)

    start_ref, colon, end_ref = ref.partition(":")
    start_row, start_col = _split_cell(start_ref)

    if not colon:
        # A single cell, or a single column/row
        return A1Range(
            sheet=sheet,
            start_row=start_row or 0,
            start_col=start_col or 0,
            end_row=start_row,
            end_col=start_col,
        )

    end_row, end_col = _split_cell(end_ref)
    return A1Range(
        sheet=sheet,
        start_row=start_row or 0,
        start_col=start_col or 0,
        end_row=end_row,
        end_col=end_col,
    )


def _unquote(sheet: str) -> str:
    if len(sheet) >= 2 and sheet[0] == sheet[-1] == "'":
        return sheet[1:-1].replace("''", "'")
    return sheet
