"""Ledger store — the ordered collection of trades for one session.

Insertion order is the order used by CSV export and mirror
reconciliation.  The descending-date view returned by :meth:`Ledger.list`
is for display only.

Removal is local.  Nothing here talks to the mirror, and callers must
not propagate deletes to it: the remote copy is an append-only history.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Any, Iterable, Iterator

from .filters import TradeFilter
from .record import Trade

logger = logging.getLogger(__name__)

# Fields an update may never overwrite
_IMMUTABLE_FIELDS = frozenset({"id", "trade_number"})


class Ledger:
    """Ordered, id-keyed trade collection."""

    def __init__(self, trades: Iterable[Trade] = ()) -> None:
        self._trades: list[Trade] = list(trades)

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    @property
    def trades(self) -> list[Trade]:
        """Snapshot in ledger (insertion) order."""
        return list(self._trades)

    def get(self, trade_id: int) -> Trade | None:
        for trade in self._trades:
            if trade.id == trade_id:
                return trade
        return None

    def ids(self) -> set[int]:
        return {t.id for t in self._trades}

    def next_trade_number(self) -> int:
        """``max(trade_number) + 1``, or 1 for an empty ledger.

        Imported rows whose number did not parse (NaN) are ignored.
        """
        numbers = [
            int(t.trade_number) for t in self._trades
            if not (isinstance(t.trade_number, float) and math.isnan(t.trade_number))
        ]
        return max(numbers) + 1 if numbers else 1

    def list(self, trade_filter: TradeFilter | None = None) -> list[Trade]:
        """Filtered view sorted by descending date (display order)."""
        flt = trade_filter or TradeFilter()
        view = [t for t in self._trades if flt.matches(t)]
        view.sort(key=lambda t: t.date, reverse=True)
        return view

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self) -> Iterator[Trade]:
        return iter(list(self._trades))

    def __contains__(self, trade_id: object) -> bool:
        return any(t.id == trade_id for t in self._trades)

    # ------------------------------------------------------------------ #
    # Mutations                                                            #
    # ------------------------------------------------------------------ #

    def add(self, trade: Trade) -> None:
        """Append *trade*.  Id uniqueness is the id factory's job."""
        self._trades.append(trade)

    def update(self, trade_id: int, patch: dict[str, Any]) -> Trade | None:
        """Replace the matching record with *patch* applied.

        ``id`` and ``trade_number`` are preserved.  Returns the new record,
        or ``None`` (without raising) when the id is absent.
        """
        changes = {k: v for k, v in patch.items() if k not in _IMMUTABLE_FIELDS}
        for idx, trade in enumerate(self._trades):
            if trade.id == trade_id:
                updated = dataclasses.replace(trade, **changes)
                self._trades[idx] = updated
                return updated
        return None

    def remove(self, trade_id: int) -> bool:
        """Delete the matching record.  Returns whether one was removed."""
        before = len(self._trades)
        self._trades = [t for t in self._trades if t.id != trade_id]
        return len(self._trades) != before

    def replace_all(self, trades: Iterable[Trade]) -> None:
        """Swap the whole collection (used when loading from the mirror)."""
        self._trades = list(trades)

    def merge_imported(self, imported: Iterable[Trade]) -> list[Trade]:
        """Append imported trades whose id is not already present.

        The ledger is then sorted by ascending id.  Re-importing the same
        trades is a no-op.  Returns the trades actually added.
        """
        existing = self.ids()
        added: list[Trade] = []
        for trade in imported:
            if trade.id in existing:
                continue
            existing.add(trade.id)
            added.append(trade)

        if added:
            self._trades.extend(added)
            self._trades.sort(key=lambda t: t.id)
            logger.info("Merged %d imported trade(s) into ledger", len(added))
        return added
