"""Taxonomy mirror sync.

The taxonomy sheet is columnar and positional: one column per
vocabulary (regions, structures, triggers) under a header row, values
stacked top to bottom with no relation between cells of the same row.
That is why this sync merges per column instead of upserting per row:

* ``fetch_and_merge`` unions each remote column into the local
  vocabulary; if anything changed locally, the whole sheet is rewritten
  from the merged state (clear, then write row-aligned by index).  A
  sheet whose header row is missing is rewritten as well.
* ``append_tag`` adds one row holding the new value in its column and
  blanks elsewhere.
* ``remove_tag`` clears the single cell holding the value, leaving the
  other two columns of that row intact.

Every method raises :class:`~tradelog.core.errors.MirrorError`; whether a
failure is surfaced or only logged is the caller's decision.
"""

from __future__ import annotations

import logging

from tradelog.core.enums import TagKind
from tradelog.core.interfaces import ISheetsClient
from tradelog.journal.taxonomy import TagTaxonomy
from tradelog.mirror.a1 import cell_ref

from .mirror import call_remote, header_matches

logger = logging.getLogger(__name__)

TAXONOMY_HEADER: list[str] = ["Regiões", "Estruturas", "Gatilhos"]


def taxonomy_rows(taxonomy: TagTaxonomy) -> list[list[str]]:
    """Header plus value rows, the shorter columns padded with blanks."""
    columns = [taxonomy.values(kind) for kind in TagKind]
    depth = max((len(c) for c in columns), default=0)
    rows = [list(TAXONOMY_HEADER)]
    for i in range(depth):
        rows.append([c[i] if i < len(c) else "" for c in columns])
    return rows


class TaxonomyMirrorSync:
    """Keeps the taxonomy sheet and the local :class:`TagTaxonomy` merged.

    Parameters
    ----------
    client:
        Tabular collaborator implementing ``ISheetsClient``.
    spreadsheet_id:
        Target spreadsheet.
    sheet_name:
        Tab holding the taxonomy (default ``"Config"``).
    """

    def __init__(
        self,
        client: ISheetsClient,
        spreadsheet_id: str,
        sheet_name: str = "Config",
    ) -> None:
        self._client = client
        self._spreadsheet_id = spreadsheet_id
        self._sheet = sheet_name

    @property
    def _columns(self) -> str:
        return f"{self._sheet}!A:C"

    async def fetch_and_merge(self, taxonomy: TagTaxonomy) -> bool:
        """Merge the remote vocabularies into *taxonomy*.

        Creates and fills the tab when it does not exist yet.  When the
        merge changed any local vocabulary, or the sheet lost its header,
        the remote sheet is rewritten to match.  Returns whether
        *taxonomy* changed.
        """
        titles = await call_remote(
            "read spreadsheet metadata",
            self._client.get_sheet_titles(self._spreadsheet_id),
            not_found_is_fatal=True,
        )
        if self._sheet not in titles:
            logger.info("Creating taxonomy tab %r", self._sheet)
            await self.push(taxonomy, create_tab=True)
            return False

        values = await call_remote(
            "read taxonomy sheet",
            self._client.get_values(self._spreadsheet_id, self._columns),
        )
        remote: dict[TagKind, set[str]] = {kind: set() for kind in TagKind}
        for row in values[1:]:
            for kind in TagKind:
                if kind.column < len(row) and row[kind.column]:
                    remote[kind].add(str(row[kind.column]))

        changed = False
        for kind in TagKind:
            if taxonomy.merge(kind, remote[kind]):
                changed = True

        # A cleared sheet left behind by a failed rewrite has no header
        header_ok = header_matches(values[0] if values else [], TAXONOMY_HEADER)
        if changed:
            logger.info("Taxonomy merged with mirror: %r", taxonomy)
            await self.push(taxonomy)
        elif not header_ok:
            logger.warning("Taxonomy sheet %r has no header, rewriting it", self._sheet)
            await self.push(taxonomy)
        return changed

    async def push(self, taxonomy: TagTaxonomy, *, create_tab: bool = False) -> None:
        """Rewrite the whole sheet from *taxonomy* (clear, then write)."""
        if create_tab:
            await call_remote(
                "create taxonomy sheet",
                self._client.create_tab(self._spreadsheet_id, self._sheet),
            )
        await call_remote(
            "clear taxonomy sheet",
            self._client.clear_values(self._spreadsheet_id, f"{self._sheet}!A1:C"),
        )
        await call_remote(
            "write taxonomy sheet",
            self._client.update_values(
                self._spreadsheet_id, f"{self._sheet}!A1", taxonomy_rows(taxonomy),
            ),
        )

    async def append_tag(self, kind: TagKind, value: str) -> None:
        """Append one row with *value* in its column, blanks elsewhere."""
        row = ["", "", ""]
        row[kind.column] = value
        await call_remote(
            "append taxonomy value",
            self._client.append_values(self._spreadsheet_id, self._columns, [row]),
        )

    async def remove_tag(self, kind: TagKind, value: str) -> bool:
        """Clear the first cell in *kind*'s column equal to *value*.

        Returns False (and logs) when the value is not on the sheet.
        """
        values = await call_remote(
            "read taxonomy sheet",
            self._client.get_values(self._spreadsheet_id, self._columns),
        )
        for row_idx in range(1, len(values)):
            row = values[row_idx]
            if kind.column < len(row) and row[kind.column] == value:
                await call_remote(
                    "clear taxonomy value",
                    self._client.clear_values(
                        self._spreadsheet_id,
                        cell_ref(self._sheet, row_idx, kind.column),
                    ),
                )
                return True
        logger.warning("Tag %r not found in %s column, nothing cleared", value, kind.value)
        return False
