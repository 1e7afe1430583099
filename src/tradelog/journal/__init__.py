"""Trade journal — local ledger, derived metrics, taxonomy and CSV codec.

Key components
--------------
Trade            One logged trade (identity + derived metrics + tags)
compute_metrics  Points and monetary result from side, size and prices
parse_number     pt-BR / en-US tolerant number parser
TagTaxonomy      Region / structure / trigger vocabularies
Ledger           Ordered, id-keyed trade store
TradeFilter      Display projection over the ledger
LedgerCsvCodec   CSV export and idempotent import
"""

from .export import DecodeResult, LedgerCsvCodec
from .filters import TradeFilter
from .ledger import Ledger
from .metrics import CONTRACT_MULTIPLIER, TradeMetrics, compute_metrics, parse_number
from .record import Trade
from .stats import LedgerStats, summarize
from .taxonomy import DEFAULT_TAXONOMY, TagTaxonomy, merge_vocabulary
from .validation import TradeInput, ValidatedTrade, validate_trade_input

__all__ = [
    "Trade",
    "TradeMetrics",
    "compute_metrics",
    "parse_number",
    "CONTRACT_MULTIPLIER",
    "TagTaxonomy",
    "DEFAULT_TAXONOMY",
    "merge_vocabulary",
    "Ledger",
    "TradeFilter",
    "LedgerStats",
    "summarize",
    "LedgerCsvCodec",
    "DecodeResult",
    "TradeInput",
    "ValidatedTrade",
    "validate_trade_input",
]
