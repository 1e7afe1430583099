"""In-memory spreadsheet book.

Implements the ``ISheetsClient`` contract locally so the reconciliation
algorithms can be exercised without a network.  Behaviour follows the
remote API where the mirror depends on it:

* cells are stored as text (numbers formatted as they would display);
* ``get_values`` drops trailing empty cells and rows;
* ``append_values`` writes after the last non-empty row of the range;
* an unknown spreadsheet id fails with status 404, an unknown tab with 400.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Sequence

from tradelog.core.errors import SheetsApiError
from tradelog.core.interfaces import Rows

from .a1 import A1Range, parse_a1

logger = logging.getLogger(__name__)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


class InMemorySheetBook:
    """Spreadsheets keyed by id, each a dict of tab name -> grid of text."""

    def __init__(self) -> None:
        self._books: dict[str, dict[str, list[list[str]]]] = {}
        self._failures: dict[str, list[SheetsApiError]] = {}
        self.calls: list[tuple[str, str]] = []  # (method, range or id)

    # -- setup helpers --------------------------------------------------------

    def create_spreadsheet(self, spreadsheet_id: str, tabs: Sequence[str] = ()) -> None:
        book = self._books.setdefault(spreadsheet_id, {})
        for tab in tabs:
            book.setdefault(tab, [])

    def grid(self, spreadsheet_id: str, tab: str) -> list[list[str]]:
        """Raw grid copy, trailing empties trimmed like ``get_values``."""
        return _trim([list(r) for r in self._books[spreadsheet_id][tab]])

    def fail_next(self, method: str, error: SheetsApiError) -> None:
        """Make the next call to *method* raise *error*."""
        self._failures.setdefault(method, []).append(error)

    def call_count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)

    # -- ISheetsClient --------------------------------------------------------

    async def get_sheet_titles(self, spreadsheet_id: str) -> list[str]:
        self._enter("get_sheet_titles", spreadsheet_id)
        return list(self._book(spreadsheet_id))

    async def create_tab(self, spreadsheet_id: str, name: str) -> None:
        self._enter("create_tab", name)
        book = self._book(spreadsheet_id)
        if name in book:
            raise SheetsApiError(f'A sheet with the name "{name}" already exists.', status=400)
        book[name] = []

    async def get_values(self, spreadsheet_id: str, range_: str) -> Rows:
        self._enter("get_values", range_)
        rng, grid = self._resolve(spreadsheet_id, range_)
        out: list[list[str]] = []
        for r, row in enumerate(grid):
            if not rng.contains_row(r):
                continue
            out.append([v for c, v in enumerate(row) if rng.contains_col(c)])
        return _trim(out)

    async def clear_values(self, spreadsheet_id: str, range_: str) -> None:
        self._enter("clear_values", range_)
        rng, grid = self._resolve(spreadsheet_id, range_)
        for r, row in enumerate(grid):
            if not rng.contains_row(r):
                continue
            for c in range(len(row)):
                if rng.contains_col(c):
                    row[c] = ""

    async def update_values(self, spreadsheet_id: str, range_: str, rows: Rows) -> None:
        self._enter("update_values", range_)
        rng, grid = self._resolve(spreadsheet_id, range_)
        self._write(grid, rng.start_row, rng.start_col, rows)

    async def batch_update_values(
        self, spreadsheet_id: str, data: Sequence[tuple[str, Rows]]
    ) -> None:
        self._enter("batch_update_values", ",".join(r for r, _ in data))
        # Resolve every range first so a bad one leaves nothing half-written
        resolved = [(self._resolve(spreadsheet_id, r), rows) for r, rows in data]
        for (rng, grid), rows in resolved:
            self._write(grid, rng.start_row, rng.start_col, rows)

    async def append_values(self, spreadsheet_id: str, range_: str, rows: Rows) -> None:
        self._enter("append_values", range_)
        rng, grid = self._resolve(spreadsheet_id, range_)
        last = -1
        for r, row in enumerate(grid):
            if any(v for c, v in enumerate(row) if rng.contains_col(c)):
                last = r
        self._write(grid, max(last + 1, rng.start_row), rng.start_col, rows)

    # -- internals ------------------------------------------------------------

    def _enter(self, method: str, target: str) -> None:
        self.calls.append((method, target))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _book(self, spreadsheet_id: str) -> dict[str, list[list[str]]]:
        book = self._books.get(spreadsheet_id)
        if book is None:
            raise SheetsApiError("Requested entity was not found.", status=404)
        return book

    def _resolve(self, spreadsheet_id: str, range_: str) -> tuple[A1Range, list[list[str]]]:
        book = self._book(spreadsheet_id)
        try:
            rng = parse_a1(range_)
        except ValueError as exc:
            raise SheetsApiError(f"Unable to parse range: {range_}", status=400) from exc
        grid = book.get(rng.sheet)
        if grid is None:
            raise SheetsApiError(f"Unable to parse range: {range_}", status=400)
        return rng, grid

    @staticmethod
    def _write(grid: list[list[str]], row0: int, col0: int, rows: Rows) -> None:
        for i, values in enumerate(rows):
            r = row0 + i
            while len(grid) <= r:
                grid.append([])
            row = grid[r]
            for j, value in enumerate(values):
                c = col0 + j
                while len(row) <= c:
                    row.append("")
                row[c] = _to_text(value)


def _trim(rows: list[list[str]]) -> list[list[str]]:
    out = []
    for row in rows:
        end = len(row)
        while end and row[end - 1] == "":
            end -= 1
        out.append(row[:end])
    while out and not out[-1]:
        out.pop()
    return out
