"""Protocol interfaces for the journal's external collaborators.

Implementations can be swapped (memory / file / remote) without
changing callers.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

Cell = Any
Rows = list[list[Cell]]


# ---------------------------------------------------------------------------
# Key-value persistence
# ---------------------------------------------------------------------------

@runtime_checkable
class IKeyValueStore(Protocol):
    """String key-value persistence (browser-storage semantics)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


# ---------------------------------------------------------------------------
# Remote tabular store
# ---------------------------------------------------------------------------

@runtime_checkable
class ISheetsClient(Protocol):
    """Spreadsheet-like tabular store addressed with A1 ranges.

    Every method raises :class:`~tradelog.core.errors.SheetsApiError`
    on failure.  ``get_values`` omits trailing empty rows and cells.
    """

    async def get_sheet_titles(self, spreadsheet_id: str) -> list[str]: ...

    async def create_tab(self, spreadsheet_id: str, name: str) -> None: ...

    async def get_values(self, spreadsheet_id: str, range_: str) -> Rows: ...

    async def clear_values(self, spreadsheet_id: str, range_: str) -> None: ...

    async def update_values(
        self, spreadsheet_id: str, range_: str, rows: Rows
    ) -> None: ...

    async def batch_update_values(
        self, spreadsheet_id: str, data: Sequence[tuple[str, Rows]]
    ) -> None: ...

    async def append_values(
        self, spreadsheet_id: str, range_: str, rows: Rows
    ) -> None: ...
