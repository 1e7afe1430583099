"""Dashboard statistics over a (usually filtered) set of trades."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .metrics import round2
from .record import Trade


@dataclass(frozen=True)
class LedgerStats:
    trades: int
    gains: int
    total_result: float
    total_points: float
    win_rate: float  # percent, 0-100


def summarize(trades: Iterable[Trade]) -> LedgerStats:
    """Totals and win rate.  A gain is any trade with ``result > 0``."""
    rows = list(trades)
    gains = sum(1 for t in rows if t.result > 0)
    total = len(rows)
    return LedgerStats(
        trades=total,
        gains=gains,
        total_result=round2(sum(t.result for t in rows)),
        total_points=round2(sum(t.points for t in rows)),
        win_rate=round(gains / total * 100, 1) if total else 0.0,
    )
