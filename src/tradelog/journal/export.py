"""Ledger CSV codec — bulk export and idempotent import.

The wire format is deliberately simple: comma-joined values with no
quoting or escaping.  A comma inside a free-text field (asset, tags,
notes) shifts the columns of that row, and the decoder then skips the
row as malformed.

Header labels are human-readable for a few columns; the decoder maps
them back and passes unknown headers through as raw field names, so a
file written with plain field names imports just as well.

Usage::

    codec = LedgerCsvCodec()
    text = codec.encode(ledger.trades)
    decoded = codec.decode(text)
    added = ledger.merge_imported(decoded.trades)
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from tradelog.core.errors import CsvImportError

from .record import Trade

logger = logging.getLogger(__name__)

# (field name, header label) in column order
CSV_COLUMNS: list[tuple[str, str]] = [
    ("id", "id"),
    ("asset", "asset"),
    ("tradeNumber", "tradeNumber"),
    ("side", "side"),
    ("date", "date"),
    ("lots", "Contratos/Quantidade"),
    ("entryPrice", "entryPrice"),
    ("exitPrice", "exitPrice"),
    ("points", "Resultado Pontos"),
    ("result", "Resultado Monetário/R$"),
    ("region", "region"),
    ("structure", "structure"),
    ("trigger", "trigger"),
    ("notes", "notes"),
]

_LABEL_TO_FIELD: dict[str, str] = {label: name for name, label in CSV_COLUMNS}

_INT_RE = re.compile(r"^[+-]?\d+$")


def format_cell(value: Any) -> str:
    """Render a value the way the exported file expects it.

    Integral floats drop the ``.0`` suffix and NaN is written as ``NaN``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if hasattr(value, "value"):  # enum members
        return str(value.value)
    return str(value)


def parse_int(text: str) -> int | None:
    text = text.strip()
    return int(text) if _INT_RE.match(text) else None


def parse_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return math.nan


@dataclass
class DecodeResult:
    """Outcome of :meth:`LedgerCsvCodec.decode`.

    ``skipped_lines`` holds 1-based file line numbers that were dropped
    (field-count mismatch or non-integer id).
    """

    trades: list[Trade] = field(default_factory=list)
    skipped_lines: list[int] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.skipped_lines)


class LedgerCsvCodec:
    """Encode a ledger to delimited text and decode it back."""

    def __init__(self, *, delimiter: str = ",") -> None:
        self._sep = delimiter

    # ------------------------------------------------------------------ #
    # Encode                                                               #
    # ------------------------------------------------------------------ #

    def header(self) -> str:
        return self._sep.join(label for _, label in CSV_COLUMNS)

    def encode(self, trades: Iterable[Trade]) -> str:
        """One header line plus one line per trade, in the given order."""
        lines = [self.header()]
        for trade in trades:
            row = trade.to_dict()
            lines.append(self._sep.join(format_cell(row.get(name)) for name, _ in CSV_COLUMNS))
        return "\n".join(lines)

    # ------------------------------------------------------------------ #
    # Decode                                                               #
    # ------------------------------------------------------------------ #

    def decode(self, text: str) -> DecodeResult:
        """Parse CSV text into trades.

        Lines whose field count differs from the header's are skipped with
        a warning.  Rows without an integer id are dropped.  Any other
        numeric column that does not parse becomes NaN.

        Raises
        ------
        CsvImportError
            If the text is empty or has no header line.
        """
        lines = text.strip().splitlines()
        if not lines or not lines[0].strip():
            raise CsvImportError("Invalid CSV: no header line")

        headers = [
            _LABEL_TO_FIELD.get(h.strip(), h.strip())
            for h in lines[0].split(self._sep)
        ]

        result = DecodeResult()
        for line_no, line in enumerate(lines[1:], start=2):
            values = line.split(self._sep)
            if len(values) != len(headers):
                logger.warning(
                    "Skipping malformed CSV line %d (%d fields, expected %d): %s",
                    line_no, len(values), len(headers), line,
                )
                result.skipped_lines.append(line_no)
                continue

            raw = {h: v.strip() for h, v in zip(headers, values)}
            trade = self._row_to_trade(raw)
            if trade is None:
                logger.warning("Skipping CSV line %d: id is not an integer", line_no)
                result.skipped_lines.append(line_no)
                continue
            result.trades.append(trade)

        return result

    def _row_to_trade(self, raw: dict[str, str]) -> Trade | None:
        trade_id = parse_int(raw.get("id", ""))
        if trade_id is None:
            return None
        number = parse_int(raw.get("tradeNumber", ""))
        return Trade(
            id=trade_id,
            asset=raw.get("asset", ""),
            trade_number=number if number is not None else math.nan,
            side=raw.get("side", ""),
            date=raw.get("date", ""),
            lots=parse_float(raw.get("lots", "")),
            entry_price=parse_float(raw.get("entryPrice", "")),
            exit_price=parse_float(raw.get("exitPrice", "")),
            points=parse_float(raw.get("points", "")),
            result=parse_float(raw.get("result", "")),
            region=raw.get("region", ""),
            structure=raw.get("structure", ""),
            trigger=raw.get("trigger", ""),
            notes=raw.get("notes", ""),
        )
