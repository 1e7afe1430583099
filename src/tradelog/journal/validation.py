"""Trade input validation.

Pure functions over a structured input record: no form or widget
lookups.  Every field is checked and all problems are reported at once
through :class:`~tradelog.core.errors.TradeValidationError`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from tradelog.core.enums import Side, TagKind
from tradelog.core.errors import TradeValidationError

from .metrics import parse_number
from .taxonomy import TagTaxonomy

REQUIRED = "This field is required."
NOT_A_NUMBER = "Enter a valid number."
NOT_POSITIVE = "Must be greater than zero."
NOT_A_DATE = "Enter a date as YYYY-MM-DD."
NOT_A_SIDE = "Side must be Compra/Venda (buy/sell)."
NOT_REGISTERED = "Option not registered. Add it before logging the trade."


@dataclass(frozen=True)
class TradeInput:
    """Raw values as typed by the user."""

    asset: str
    side: str
    date: str
    lots: str
    entry_price: str
    exit_price: str
    region: str
    structure: str
    trigger: str
    notes: str = ""


@dataclass(frozen=True)
class ValidatedTrade:
    asset: str
    side: Side
    date: str
    lots: float
    entry_price: float
    exit_price: float
    region: str
    structure: str
    trigger: str
    notes: str = ""

    def tag(self, kind: TagKind) -> str:
        return getattr(self, kind.trade_field)


def _number(raw: str, errors: dict[str, str], name: str) -> float:
    if not raw.strip():
        errors[name] = REQUIRED
        return math.nan
    value = parse_number(raw)
    if math.isnan(value):
        errors[name] = NOT_A_NUMBER
    return value


def validate_trade_input(
    data: TradeInput,
    taxonomy: TagTaxonomy,
    *,
    require_registered_tags: bool = False,
) -> ValidatedTrade:
    """Validate and normalise *data*.

    Raises
    ------
    TradeValidationError
        With one message per offending field.
    """
    errors: dict[str, str] = {}

    asset = data.asset.strip()
    if not asset:
        errors["asset"] = REQUIRED

    side: Side | None = None
    if not data.side.strip():
        errors["side"] = REQUIRED
    else:
        try:
            side = Side.parse(data.side)
        except ValueError:
            errors["side"] = NOT_A_SIDE

    trade_date = data.date.strip()
    if not trade_date:
        errors["date"] = REQUIRED
    else:
        try:
            trade_date = date.fromisoformat(trade_date).isoformat()
        except ValueError:
            errors["date"] = NOT_A_DATE

    lots = _number(data.lots, errors, "lots")
    if "lots" not in errors and lots <= 0:
        errors["lots"] = NOT_POSITIVE
    entry_price = _number(data.entry_price, errors, "entry_price")
    exit_price = _number(data.exit_price, errors, "exit_price")

    tags: dict[TagKind, str] = {}
    for kind in TagKind:
        value = getattr(data, kind.trade_field).strip()
        tags[kind] = value
        if not value:
            errors[kind.trade_field] = REQUIRED
        elif require_registered_tags and not taxonomy.contains(kind, value):
            errors[kind.trade_field] = NOT_REGISTERED

    if errors:
        raise TradeValidationError(errors)

    assert side is not None
    return ValidatedTrade(
        asset=asset,
        side=side,
        date=trade_date,
        lots=lots,
        entry_price=entry_price,
        exit_price=exit_price,
        region=tags[TagKind.REGIONS],
        structure=tags[TagKind.STRUCTURES],
        trigger=tags[TagKind.TRIGGERS],
        notes=data.notes.strip(),
    )
