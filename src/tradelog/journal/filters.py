"""Transient projections over the ledger for display and statistics."""

from __future__ import annotations

from dataclasses import dataclass

from tradelog.core.enums import ResultFilter, Side

from .record import Trade


@dataclass(frozen=True)
class TradeFilter:
    """Display filter.  ``None`` selectors match every trade.

    ``asset`` is a case-insensitive substring; ``date`` an exact ISO date.
    """

    asset: str = ""
    side: Side | None = None
    date: str = ""
    result: ResultFilter = ResultFilter.ALL
    region: str | None = None
    structure: str | None = None
    trigger: str | None = None

    def matches(self, trade: Trade) -> bool:
        if self.asset and self.asset.lower() not in trade.asset.lower():
            return False
        if self.side is not None and trade.side != self.side:
            return False
        if self.date and trade.date != self.date:
            return False
        if self.result == ResultFilter.GAIN and not trade.result > 0:
            return False
        if self.result == ResultFilter.LOSS and not trade.result <= 0:
            return False
        if self.region is not None and trade.region != self.region:
            return False
        if self.structure is not None and trade.structure != self.structure:
            return False
        if self.trigger is not None and trade.trigger != self.trigger:
            return False
        return True
