"""Journal service — the single controller that owns application state.

Every user action goes through here: the ledger and taxonomy are
mutated synchronously (and persisted) before any remote call is issued,
so a mirror pass always reflects the state at the moment of the action.

Remote failures come in two flavours, chosen by the caller rather than
by a flag:

* ``sync_interactive`` / ``sync_taxonomy_interactive`` / ``load_from_mirror``
  raise :class:`~tradelog.core.errors.MirrorError`.
* ``sync_background`` / ``sync_taxonomy_background`` and every mirror
  side effect of a ledger or taxonomy mutation log the failure and
  carry on.

Usage::

    service = JournalService.from_settings(load_settings("tradelog.toml"))
    await service.connect()
    trade = await service.add_trade(TradeInput(...))
    outcome = await service.sync_interactive()
    await service.close()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Iterable

from tradelog.core.clock import IClock
from tradelog.core.config import Settings
from tradelog.core.enums import TagKind
from tradelog.core.errors import ConfigError, InsightError, MirrorError, TradeNotFoundError
from tradelog.core.ids import TradeIdFactory
from tradelog.core.interfaces import IKeyValueStore, ISheetsClient
from tradelog.journal.export import LedgerCsvCodec
from tradelog.journal.filters import TradeFilter
from tradelog.journal.insight import (
    GeminiInsightGenerator,
    IInsightGenerator,
    InsightResult,
    split_reply,
)
from tradelog.journal.ledger import Ledger
from tradelog.journal.metrics import compute_metrics
from tradelog.journal.record import Trade
from tradelog.journal.stats import LedgerStats, summarize
from tradelog.journal.taxonomy import TagTaxonomy
from tradelog.journal.validation import TradeInput, ValidatedTrade, validate_trade_input
from tradelog.mirror.google_sheets import GoogleSheetsClient
from tradelog.reconciliation.mirror import MirrorReconciler, SyncOutcome
from tradelog.reconciliation.single_flight import SingleFlight
from tradelog.reconciliation.taxonomy_sync import TaxonomyMirrorSync
from tradelog.storage.kv import JsonFileKeyValueStore
from tradelog.storage.state import StatePersistence

logger = logging.getLogger(__name__)


@dataclass
class JournalState:
    """Everything the session holds in memory."""

    ledger: Ledger = field(default_factory=Ledger)
    taxonomy: TagTaxonomy = field(default_factory=TagTaxonomy)


@dataclass
class ImportResult:
    imported: int
    duplicates: int
    skipped_lines: list[int] = field(default_factory=list)


@dataclass
class MirrorSession:
    """Reconcilers bound to one spreadsheet."""

    ledger: MirrorReconciler
    taxonomy: TaxonomyMirrorSync
    client: ISheetsClient
    owns_client: bool = False


class JournalService:
    """Controller for the ledger, taxonomy, CSV codec and mirror.

    Parameters
    ----------
    persistence:
        Blob persistence for ledger and taxonomy.
    state:
        Initial in-memory state.  ``None`` loads it from *persistence*.
    mirror:
        Optional mirror session; without it every sync is skipped.
    insight:
        Optional insight generator.
    clock:
        Clock used to derive trade ids.
    require_registered_tags:
        Reject unknown tag values instead of registering them.
    """

    def __init__(
        self,
        persistence: StatePersistence,
        *,
        state: JournalState | None = None,
        mirror: MirrorSession | None = None,
        insight: IInsightGenerator | None = None,
        clock: IClock | None = None,
        require_registered_tags: bool = False,
    ) -> None:
        self._persistence = persistence
        self._state = state or JournalState(
            ledger=Ledger(persistence.load_trades()),
            taxonomy=persistence.load_taxonomy(),
        )
        self._mirror = mirror
        self._insight = insight
        self._require_registered = require_registered_tags
        self._codec = LedgerCsvCodec()
        self._ids = TradeIdFactory(clock)
        for trade in self._state.ledger:
            self._ids.observe(trade.id)
        self._sync_flight: SingleFlight[SyncOutcome] = SingleFlight(self._reconcile_pass)

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        kv_store: IKeyValueStore | None = None,
        sheets_client: ISheetsClient | None = None,
        insight: IInsightGenerator | None = None,
        clock: IClock | None = None,
    ) -> JournalService:
        """Build a fully wired service from configuration.

        Parameters
        ----------
        settings:
            Loaded settings.
        kv_store:
            Overrides the JSON state file from ``settings.storage``.
        sheets_client:
            Overrides the Google Sheets client (the mirror must still be
            enabled and have a spreadsheet id).
        insight:
            Overrides the Gemini generator from ``settings.insight``.
        clock:
            Clock used for trade ids.

        Raises
        ------
        ConfigError
            Mirror enabled without a spreadsheet id or access token, or
            insight enabled without an API key.
        """
        persistence = StatePersistence(kv_store or JsonFileKeyValueStore(settings.storage.path))

        mirror: MirrorSession | None = None
        if settings.mirror.enabled:
            cfg = settings.mirror
            owns_client = sheets_client is None
            if sheets_client is None:
                settings.validate_mirror()
                sheets_client = GoogleSheetsClient(
                    cfg.access_token,
                    timeout=cfg.timeout,
                    max_retries=cfg.max_retries,
                )
            elif not cfg.spreadsheet_id:
                raise ConfigError("Mirror is enabled but no spreadsheet id is configured.")
            mirror = MirrorSession(
                ledger=MirrorReconciler(sheets_client, cfg.spreadsheet_id, cfg.ledger_sheet),
                taxonomy=TaxonomyMirrorSync(sheets_client, cfg.spreadsheet_id, cfg.taxonomy_sheet),
                client=sheets_client,
                owns_client=owns_client,
            )

        if insight is None and settings.insight.enabled:
            if not settings.insight.api_key:
                raise ConfigError(
                    f"Insight is enabled but {settings.insight.api_key_env} is not set."
                )
            insight = GeminiInsightGenerator(
                settings.insight.api_key,
                model=settings.insight.model,
                timeout=settings.insight.timeout,
            )

        return cls(
            persistence,
            mirror=mirror,
            insight=insight,
            clock=clock,
            require_registered_tags=settings.journal.require_registered_tags,
        )

    async def close(self) -> None:
        if self._mirror is not None and self._mirror.owns_client:
            close = getattr(self._mirror.client, "close", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> JournalService:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def ledger(self) -> Ledger:
        return self._state.ledger

    @property
    def taxonomy(self) -> TagTaxonomy:
        return self._state.taxonomy

    @property
    def mirror_connected(self) -> bool:
        return self._mirror is not None

    def list_trades(self, trade_filter: TradeFilter | None = None) -> list[Trade]:
        return self.ledger.list(trade_filter)

    def stats(self, trade_filter: TradeFilter | None = None) -> LedgerStats:
        return summarize(self.ledger.list(trade_filter))

    # ------------------------------------------------------------------
    # Ledger actions
    # ------------------------------------------------------------------

    async def add_trade(self, data: TradeInput) -> Trade:
        """Validate, create and store a new trade, then push it remotely."""
        valid = validate_trade_input(
            data, self.taxonomy, require_registered_tags=self._require_registered,
        )
        trade = Trade(
            id=self._ids.next_id(),
            trade_number=self.ledger.next_trade_number(),
            **self._trade_fields(valid),
        )
        self.ledger.add(trade)
        new_tags = self._register_tags([trade])
        self._save(taxonomy=bool(new_tags))
        logger.info("Trade %d added (#%s %s)", trade.id, trade.trade_number, trade.asset)

        await self._after_ledger_change(new_tags)
        return trade

    async def update_trade(self, trade_id: int, data: TradeInput) -> Trade:
        """Re-validate and overwrite a trade, keeping id and trade number."""
        if trade_id not in self.ledger:
            raise TradeNotFoundError(trade_id)
        valid = validate_trade_input(
            data, self.taxonomy, require_registered_tags=self._require_registered,
        )
        updated = self.ledger.update(trade_id, self._trade_fields(valid))
        assert updated is not None
        new_tags = self._register_tags([updated])
        self._save(taxonomy=bool(new_tags))
        logger.info("Trade %d updated", trade_id)

        await self._after_ledger_change(new_tags)
        return updated

    def delete_trade(self, trade_id: int) -> None:
        """Remove a trade locally.  The mirror keeps its row."""
        if not self.ledger.remove(trade_id):
            raise TradeNotFoundError(trade_id)
        self._save(taxonomy=False)
        logger.info("Trade %d deleted locally (mirror row kept)", trade_id)

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def export_csv(self) -> str:
        return self._codec.encode(self.ledger.trades)

    async def import_csv(self, text: str) -> ImportResult:
        """Merge trades from CSV text; ids already present are ignored."""
        decoded = self._codec.decode(text)
        added = self.ledger.merge_imported(decoded.trades)
        result = ImportResult(
            imported=len(added),
            duplicates=len(decoded.trades) - len(added),
            skipped_lines=decoded.skipped_lines,
        )
        if not added:
            logger.info("CSV import: no new trades (%d duplicate(s))", result.duplicates)
            return result

        for trade in added:
            self._ids.observe(trade.id)
        new_tags = self._register_tags(added)
        self._save(taxonomy=bool(new_tags))
        logger.info(
            "CSV import: %d new, %d duplicate(s), %d line(s) skipped",
            result.imported, result.duplicates, len(result.skipped_lines),
        )
        await self._after_ledger_change(new_tags)
        return result

    # ------------------------------------------------------------------
    # Taxonomy actions
    # ------------------------------------------------------------------

    async def add_tag(self, kind: TagKind, value: str) -> bool:
        value = value.strip()
        if not self.taxonomy.add(kind, value):
            return False
        self._persistence.save_taxonomy(self.taxonomy)
        if self._mirror is not None:
            await self._best_effort(self._mirror.taxonomy.append_tag(kind, value))
        return True

    async def remove_tag(self, kind: TagKind, value: str) -> bool:
        value = value.strip()
        if not self.taxonomy.remove(kind, value):
            return False
        self._persistence.save_taxonomy(self.taxonomy)
        if self._mirror is not None:
            await self._best_effort(self._mirror.taxonomy.remove_tag(kind, value))
        return True

    # ------------------------------------------------------------------
    # Mirror
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Run the taxonomy merge that follows connection establishment."""
        return await self.sync_taxonomy_background()

    async def sync_interactive(self) -> SyncOutcome:
        """Reconcile the ledger with the mirror, raising on failure."""
        self._require_mirror()
        return await self._sync_flight.run()

    async def sync_background(self) -> SyncOutcome:
        """Reconcile the ledger with the mirror, logging any failure."""
        if self._mirror is None:
            return SyncOutcome(ok=False, operation="sync", error="mirror not connected")
        try:
            return await self._sync_flight.run()
        except MirrorError as exc:
            logger.error("Background mirror sync failed: %s", exc)
            return SyncOutcome.failed(exc)

    async def sync_taxonomy_interactive(self) -> bool:
        """Merge taxonomy with the mirror, raising on failure."""
        mirror = self._require_mirror()
        return await self._merge_taxonomy(mirror)

    async def sync_taxonomy_background(self) -> bool:
        if self._mirror is None:
            return False
        try:
            return await self._merge_taxonomy(self._mirror)
        except MirrorError as exc:
            logger.error("Background taxonomy sync failed: %s", exc)
            return False

    async def load_from_mirror(self) -> int:
        """Replace the local ledger with the mirror's trades."""
        mirror = self._require_mirror()
        trades = await mirror.ledger.fetch_trades()
        self.ledger.replace_all(trades)
        for trade in trades:
            self._ids.observe(trade.id)
        self._save(taxonomy=False)
        logger.info("Loaded %d trade(s) from mirror", len(trades))
        return len(trades)

    # ------------------------------------------------------------------
    # Insight
    # ------------------------------------------------------------------

    async def request_insight(self, trade_id: int) -> InsightResult | None:
        """Generate an insight; its summary part becomes the trade's notes.

        Returns ``None`` when no generator is configured or generation
        failed.  A failure never affects the trade itself.
        """
        trade = self.ledger.get(trade_id)
        if trade is None:
            raise TradeNotFoundError(trade_id)
        if self._insight is None:
            return None

        try:
            text = await self._insight.generate(trade)
        except InsightError as exc:
            logger.error("Insight for trade %d failed: %s", trade_id, exc)
            return None

        result = split_reply(text)
        if result.summary and self.ledger.update(trade_id, {"notes": result.summary}):
            self._save(taxonomy=False)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _trade_fields(valid: ValidatedTrade) -> dict[str, Any]:
        metrics = compute_metrics(valid.side, valid.lots, valid.entry_price, valid.exit_price)
        return {
            "asset": valid.asset,
            "side": valid.side.value,
            "date": valid.date,
            "lots": valid.lots,
            "entry_price": valid.entry_price,
            "exit_price": valid.exit_price,
            "points": metrics.points,
            "result": metrics.result,
            "region": valid.region,
            "structure": valid.structure,
            "trigger": valid.trigger,
            "notes": valid.notes,
        }

    def _register_tags(self, trades: Iterable[Trade]) -> list[tuple[TagKind, str]]:
        """Add any tag value the trades use but the taxonomy lacks."""
        added: list[tuple[TagKind, str]] = []
        for trade in trades:
            for kind in TagKind:
                value = getattr(trade, kind.trade_field) or ""
                if self.taxonomy.add(kind, value):
                    added.append((kind, value.strip()))
        return added

    def _save(self, *, taxonomy: bool) -> None:
        self._persistence.save_trades(self.ledger.trades)
        if taxonomy:
            self._persistence.save_taxonomy(self.taxonomy)

    async def _after_ledger_change(self, new_tags: list[tuple[TagKind, str]]) -> None:
        if self._mirror is None:
            return
        await self.sync_background()
        for kind, value in new_tags:
            await self._best_effort(self._mirror.taxonomy.append_tag(kind, value))

    async def _reconcile_pass(self) -> SyncOutcome:
        assert self._mirror is not None
        return await self._mirror.ledger.reconcile(self.ledger.trades)

    async def _merge_taxonomy(self, mirror: MirrorSession) -> bool:
        before = self.taxonomy.to_dict()
        try:
            changed = await mirror.taxonomy.fetch_and_merge(self.taxonomy)
        except MirrorError:
            # Merged values are kept even when the rewrite failed
            if self.taxonomy.to_dict() != before:
                self._persistence.save_taxonomy(self.taxonomy)
            raise
        if changed:
            self._persistence.save_taxonomy(self.taxonomy)
        return changed

    async def _best_effort(self, aw: Awaitable[Any]) -> None:
        try:
            await aw
        except MirrorError as exc:
            logger.error("Taxonomy mirror update failed: %s", exc)

    def _require_mirror(self) -> MirrorSession:
        if self._mirror is None:
            raise ConfigError("No mirror connected; enable [mirror] in the configuration.")
        return self._mirror
