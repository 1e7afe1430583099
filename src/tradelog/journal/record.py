"""Trade record — the core data model.

A Trade captures one discretionary trade as logged by the user: the
instrument, direction, size, entry and exit prices, the derived point
and monetary result, and the three categorical tags (region, structure,
trigger) that classify the setup.

``id`` is the identity used for every reconciliation; it is assigned
once at creation and never changes.  ``trade_number`` is a display
sequence and may repeat after CSV imports.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from tradelog.core.enums import Side, TradeStatus

# Python attribute -> camelCase key used by the persisted ledger blob
_BLOB_KEYS: dict[str, str] = {
    "id": "id",
    "asset": "asset",
    "trade_number": "tradeNumber",
    "side": "side",
    "date": "date",
    "lots": "lots",
    "entry_price": "entryPrice",
    "exit_price": "exitPrice",
    "points": "points",
    "result": "result",
    "region": "region",
    "structure": "structure",
    "trigger": "trigger",
    "notes": "notes",
}


@dataclass
class Trade:
    """One logged trade.

    Parameters
    ----------
    id : int
        Clock-derived unique identifier; the reconciliation key.
    trade_number : int
        Per-ledger sequence number.  May be NaN for rows imported from a
        file whose number column did not parse.
    side : str
        :class:`Side` value (``"Compra"`` / ``"Venda"``).
    date : str
        ISO ``YYYY-MM-DD`` calendar date.
    """

    id: int
    asset: str
    trade_number: int | float
    side: str
    date: str
    lots: float
    entry_price: float
    exit_price: float
    points: float
    result: float
    region: str = ""
    structure: str = ""
    trigger: str = ""
    notes: str = ""

    # ------------------------------------------------------------------ #
    # Computed properties                                                  #
    # ------------------------------------------------------------------ #

    @property
    def status(self) -> TradeStatus:
        """Gain / loss / break-even classification."""
        if self.result > 0:
            return TradeStatus.GAIN
        if self.result < 0:
            return TradeStatus.LOSS
        return TradeStatus.BREAKEVEN

    # ------------------------------------------------------------------ #
    # Blob serialization                                                   #
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """camelCase mapping used by the persisted ledger blob."""
        data = asdict(self)
        data["side"] = _side_text(self.side)
        return {_BLOB_KEYS[k]: v for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Trade:
        """Inverse of :meth:`to_dict`.  Raises ``KeyError`` / ``TypeError``
        when a required key is missing."""
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            key = _BLOB_KEYS[f.name]
            if key in data:
                kwargs[f.name] = data[key]
        if kwargs.get("notes") is None:
            kwargs["notes"] = ""
        kwargs["id"] = int(kwargs["id"])
        return cls(**kwargs)


def _side_text(side: Any) -> str:
    return side.value if isinstance(side, Side) else str(side)
