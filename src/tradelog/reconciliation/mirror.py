"""Mirror reconciler: converges the remote ledger sheet on the local ledger.

One pass is an upsert keyed by trade id:

1. Ensure the ledger tab exists (create it when missing).
2. Snapshot the tab and check its header row column-for-column.
3. With a valid header, index remote data rows by the id in column A.
4. Local trades found in the index become row updates, the rest appends.
5. Rewrite the header if needed, send all updates in one batch call and
   all new rows in one append call.

Remote rows without a local counterpart are never touched: the sheet is
an append-only history and local deletes do not reach it.  Re-running a
pass with no local change rewrites identical values and appends nothing,
which is what makes a failed pass safe to retry.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Sequence, TypeVar

from tradelog.core.errors import (
    MirrorError,
    MirrorTransientError,
    SheetsApiError,
    SpreadsheetNotFoundError,
)
from tradelog.core.interfaces import ISheetsClient, Rows
from tradelog.journal.metrics import parse_number
from tradelog.journal.record import Trade
from tradelog.observability.logger import new_sync_id, set_sync_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

LEDGER_HEADER: list[str] = [
    "ID", "Ativo", "# Operação", "Lado", "Data", "Lotes", "Preço Entrada",
    "Preço Saída", "Pontos", "Resultado R$", "Região", "Estrutura", "Gatilho", "Notas",
]

_INT_RE = re.compile(r"^[+-]?\d+(\.0+)?$")


# ---------------------------------------------------------------------------
# Row codec
# ---------------------------------------------------------------------------

def trade_to_row(trade: Trade) -> list[Any]:
    """Positional row matching :data:`LEDGER_HEADER`."""
    return [
        trade.id, trade.asset, _cell(trade.trade_number), trade.side, trade.date,
        _cell(trade.lots), _cell(trade.entry_price), _cell(trade.exit_price),
        _cell(trade.points), _cell(trade.result),
        trade.region, trade.structure, trade.trigger, trade.notes or "",
    ]


def row_to_trade(row: Sequence[Any]) -> Trade | None:
    """Parse one remote data row.

    Returns ``None`` when the id or trade number is not an integer or the
    asset or date is empty.
    """
    cells = [str(v) if v is not None else "" for v in row]
    cells += [""] * (len(LEDGER_HEADER) - len(cells))

    trade_id = _parse_int(cells[0])
    number = _parse_int(cells[2])
    if trade_id is None or number is None or not cells[1] or not cells[4]:
        logger.warning("Skipping invalid mirror row: %s", list(row))
        return None

    return Trade(
        id=trade_id,
        asset=cells[1],
        trade_number=number,
        side=cells[3],
        date=cells[4],
        lots=parse_number(cells[5]),
        entry_price=parse_number(cells[6]),
        exit_price=parse_number(cells[7]),
        points=parse_number(cells[8]),
        result=parse_number(cells[9]),
        region=cells[10],
        structure=cells[11],
        trigger=cells[12],
        notes=cells[13],
    )


def _cell(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return ""
    return value


def _parse_int(text: str) -> int | None:
    text = text.strip()
    return int(float(text)) if _INT_RE.match(text) else None


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class SyncOutcome:
    """Result of one reconciliation pass.

    A failed pass (only returned by background callers) has ``ok=False``
    and carries the failed ``operation`` and ``error`` message.
    """

    ok: bool = True
    updated: int = 0
    appended: int = 0
    header_rewritten: bool = False
    operation: str = ""
    error: str = ""

    @classmethod
    def failed(cls, exc: MirrorError) -> SyncOutcome:
        return cls(ok=False, operation=exc.operation, error=str(exc))


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------

class MirrorReconciler:
    """Upsert/append reconciliation of the ledger against one sheet tab.

    Parameters
    ----------
    client:
        Tabular collaborator implementing ``ISheetsClient``.
    spreadsheet_id:
        Target spreadsheet.
    sheet_name:
        Tab holding the ledger (default ``"Trades"``).
    """

    def __init__(
        self,
        client: ISheetsClient,
        spreadsheet_id: str,
        sheet_name: str = "Trades",
    ) -> None:
        self._client = client
        self._spreadsheet_id = spreadsheet_id
        self._sheet = sheet_name

    @property
    def sheet_name(self) -> str:
        return self._sheet

    async def reconcile(self, trades: Sequence[Trade]) -> SyncOutcome:
        """Run one pass over *trades* (ledger order).

        Raises
        ------
        SpreadsheetNotFoundError
            The spreadsheet itself does not exist.
        MirrorTransientError
            Any other remote failure.  Steps already applied stay applied.
        """
        new_sync_id()
        try:
            await self.ensure_tab()

            values = await self._call("read ledger sheet", self._client.get_values(
                self._spreadsheet_id, self._sheet,
            ))
            header_valid = header_matches(values[0] if values else [], LEDGER_HEADER)
            index = build_row_index(values) if header_valid else {}

            updates: list[tuple[str, Rows]] = []
            appends: Rows = []
            for trade in trades:
                row_number = index.get(str(trade.id))
                if row_number is not None:
                    updates.append((f"{self._sheet}!A{row_number}", [trade_to_row(trade)]))
                else:
                    appends.append(trade_to_row(trade))

            if not header_valid:
                await self._call("write ledger header", self._client.update_values(
                    self._spreadsheet_id, f"{self._sheet}!A1", [list(LEDGER_HEADER)],
                ))
            if updates:
                await self._call("update ledger rows", self._client.batch_update_values(
                    self._spreadsheet_id, updates,
                ))
            if appends:
                await self._call("append ledger rows", self._client.append_values(
                    self._spreadsheet_id, self._sheet, appends,
                ))

            outcome = SyncOutcome(
                updated=len(updates),
                appended=len(appends),
                header_rewritten=not header_valid,
            )
            logger.info(
                "Mirror sync complete: %d updated, %d appended%s",
                outcome.updated, outcome.appended,
                " (header rewritten)" if outcome.header_rewritten else "",
            )
            return outcome
        finally:
            set_sync_id("")

    async def fetch_trades(self) -> list[Trade]:
        """Read every valid trade row from the ledger tab.

        A missing tab, or one without the expected header, yields no trades.
        """
        titles = await self._call_metadata()
        if self._sheet not in titles:
            return []
        values = await self._call("read ledger sheet", self._client.get_values(
            self._spreadsheet_id, self._sheet,
        ))
        if not values or not header_matches(values[0], LEDGER_HEADER):
            return []
        return [t for t in (row_to_trade(r) for r in values[1:] if r) if t is not None]

    async def ensure_tab(self) -> None:
        titles = await self._call_metadata()
        if self._sheet not in titles:
            logger.info("Creating mirror tab %r", self._sheet)
            await self._call("create ledger sheet", self._client.create_tab(
                self._spreadsheet_id, self._sheet,
            ))

    # -- internals ------------------------------------------------------------

    async def _call_metadata(self) -> list[str]:
        return await call_remote(
            "read spreadsheet metadata",
            self._client.get_sheet_titles(self._spreadsheet_id),
            not_found_is_fatal=True,
        )

    async def _call(self, operation: str, aw: Awaitable[T]) -> T:
        return await call_remote(operation, aw)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def header_matches(actual: Sequence[Any], expected: Sequence[str]) -> bool:
    """Exact column-for-column match of the first len(expected) cells."""
    return all(
        i < len(actual) and str(actual[i]) == label
        for i, label in enumerate(expected)
    )


def build_row_index(values: Rows) -> dict[str, int]:
    """Map trade id (as text) to its 1-based sheet row.

    Row 1 is the header.  A repeated id maps to its last occurrence.
    """
    index: dict[str, int] = {}
    for offset, row in enumerate(values[1:]):
        if row and str(row[0]):
            index[str(row[0])] = offset + 2
    return index


async def call_remote(
    operation: str,
    aw: Awaitable[T],
    *,
    not_found_is_fatal: bool = False,
) -> T:
    """Await a collaborator call, translating failures to mirror errors."""
    try:
        return await aw
    except SheetsApiError as exc:
        if not_found_is_fatal and exc.status == 404:
            raise SpreadsheetNotFoundError(
                operation, "spreadsheet not found, check the spreadsheet id",
            ) from exc
        raise MirrorTransientError(operation, str(exc)) from exc
