"""Derived trade metrics and locale-aware number parsing.

Both functions are pure.  ``compute_metrics`` assumes validated inputs
and lets NaN flow through; ``parse_number`` returns NaN for anything it
cannot read so callers can reject the input instead of storing zero.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from tradelog.core.enums import Side

# Monetary value of one point per contract (mini-dollar futures).
CONTRACT_MULTIPLIER = 10

_CENT = Decimal("0.01")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True)
class TradeMetrics:
    points: float
    result: float


def round2(value: float) -> float:
    """Round to two decimals, halves away from zero.

    Goes through the shortest decimal repr of *value* so ``1.005``
    rounds to ``1.01`` as written, not as stored in binary.
    """
    if math.isnan(value) or math.isinf(value):
        return value
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def compute_metrics(
    side: Side | str,
    lots: float,
    entry_price: float,
    exit_price: float,
) -> TradeMetrics:
    """Point and monetary result of a trade.

    ``points`` is the favourable price move (exit - entry for a buy,
    entry - exit for a sell); ``result`` is points x lots x
    :data:`CONTRACT_MULTIPLIER`.  Both are rounded to cents.
    """
    if side == Side.BUY:
        points = exit_price - entry_price
    else:
        points = entry_price - exit_price
    result = points * lots * CONTRACT_MULTIPLIER
    return TradeMetrics(points=round2(points), result=round2(result))


def parse_number(text: Any) -> float:
    """Parse a user-entered number in either pt-BR or en-US notation.

    * Both ``,`` and ``.`` present: whichever comes last is the decimal
      point, the other is a thousands separator
      (``"1.234,56"`` and ``"1,234.56"`` both give ``1234.56``).
    * Only ``,``: decimal comma (``"12,5"`` gives ``12.5``).
    * Only ``.`` or neither: plain decimal.

    Returns NaN for empty, non-string, or unparseable input.
    """
    if not isinstance(text, str) or not text:
        return math.nan

    sanitized = text.strip()
    has_comma = "," in sanitized
    has_dot = "." in sanitized

    if has_comma and has_dot:
        if sanitized.rfind(",") > sanitized.rfind("."):
            sanitized = sanitized.replace(".", "").replace(",", ".", 1)
        else:
            sanitized = sanitized.replace(",", "")
    elif has_comma:
        sanitized = sanitized.replace(",", ".", 1)

    if not _DECIMAL_RE.match(sanitized):
        return math.nan
    return float(sanitized)
