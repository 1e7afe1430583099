"""Ledger and taxonomy blob persistence.

Both blobs are JSON strings stored under fixed keys.  There is no schema
versioning: a blob that fails to parse is treated as absent and the
caller gets the default (empty ledger, default taxonomy).
"""

from __future__ import annotations

import json
import logging

from tradelog.core.interfaces import IKeyValueStore
from tradelog.journal.record import Trade
from tradelog.journal.taxonomy import TagTaxonomy

logger = logging.getLogger(__name__)

TRADES_KEY = "trades"
TAXONOMY_KEY = "regOptions"


class StatePersistence:
    """Load/save the application state through a key-value store."""

    def __init__(self, store: IKeyValueStore) -> None:
        self._store = store

    # -- ledger -------------------------------------------------------------

    def load_trades(self) -> list[Trade]:
        blob = self._store.get(TRADES_KEY)
        if not blob:
            return []
        try:
            raw = json.loads(blob)
            if not isinstance(raw, list):
                raise TypeError("ledger blob must be a list")
            return [Trade.from_dict(item) for item in raw]
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("Malformed ledger blob ignored: %s", exc)
            return []

    def save_trades(self, trades: list[Trade]) -> None:
        self._store.set(
            TRADES_KEY,
            json.dumps([t.to_dict() for t in trades], ensure_ascii=False),
        )

    # -- taxonomy -----------------------------------------------------------

    def load_taxonomy(self) -> TagTaxonomy:
        blob = self._store.get(TAXONOMY_KEY)
        if not blob:
            return TagTaxonomy()
        try:
            return TagTaxonomy.from_dict(json.loads(blob))
        except (ValueError, TypeError) as exc:
            logger.warning("Malformed taxonomy blob ignored: %s", exc)
            return TagTaxonomy()

    def save_taxonomy(self, taxonomy: TagTaxonomy) -> None:
        self._store.set(TAXONOMY_KEY, json.dumps(taxonomy.to_dict(), ensure_ascii=False))
