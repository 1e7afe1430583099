"""Reconciliation layer — converges the remote mirror on local state.

MirrorReconciler     Upsert/append sync of the ledger (never deletes remotely)
TaxonomyMirrorSync   Per-column merge of the tag vocabularies
SingleFlight         One running + one queued serialization of sync passes
SyncOutcome          Result of one reconciliation pass
"""

from tradelog.reconciliation.mirror import (
    LEDGER_HEADER,
    MirrorReconciler,
    SyncOutcome,
    row_to_trade,
    trade_to_row,
)
from tradelog.reconciliation.single_flight import SingleFlight
from tradelog.reconciliation.taxonomy_sync import TAXONOMY_HEADER, TaxonomyMirrorSync

__all__ = [
    "LEDGER_HEADER",
    "TAXONOMY_HEADER",
    "MirrorReconciler",
    "SingleFlight",
    "SyncOutcome",
    "TaxonomyMirrorSync",
    "row_to_trade",
    "trade_to_row",
]
