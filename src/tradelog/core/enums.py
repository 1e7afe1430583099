"""Enumerations shared across the journal."""

from __future__ import annotations

from enum import Enum


class Side(str, Enum):
    """Trade direction.

    Values are the labels persisted in the ledger blob, the CSV file and
    the remote mirror, so they must not change.
    """

    BUY = "Compra"
    SELL = "Venda"

    @classmethod
    def parse(cls, raw: str) -> Side:
        """Accept the stored label or an English alias, case-insensitively."""
        text = raw.strip().lower()
        for side, aliases in _SIDE_ALIASES.items():
            if text in aliases:
                return side
        raise ValueError(f"Unknown side: {raw!r}")


_SIDE_ALIASES: dict[Side, tuple[str, ...]] = {
    Side.BUY: ("compra", "buy", "long"),
    Side.SELL: ("venda", "sell", "short"),
}


class TagKind(str, Enum):
    """The three categorical vocabularies of the taxonomy."""

    REGIONS = "regions"
    STRUCTURES = "structures"
    TRIGGERS = "triggers"

    @property
    def trade_field(self) -> str:
        """Name of the Trade attribute holding a value of this kind."""
        return _TRADE_FIELD[self]

    @property
    def column(self) -> int:
        """Zero-based column of this kind in the taxonomy sheet."""
        return _COLUMN[self]


_TRADE_FIELD = {
    TagKind.REGIONS: "region",
    TagKind.STRUCTURES: "structure",
    TagKind.TRIGGERS: "trigger",
}

_COLUMN = {
    TagKind.REGIONS: 0,
    TagKind.STRUCTURES: 1,
    TagKind.TRIGGERS: 2,
}


class TradeStatus(str, Enum):
    GAIN = "gain"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class ResultFilter(str, Enum):
    """Result-sign selector used by trade filters."""

    ALL = "all"
    GAIN = "gain"    # result > 0
    LOSS = "loss"    # result <= 0
