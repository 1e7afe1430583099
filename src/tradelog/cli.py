"""CLI entry point for the trading journal."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import click

from .core.config import load_settings
from .core.enums import ResultFilter, Side, TagKind
from .core.errors import CsvImportError, JournalError, TradeNotFoundError, TradeValidationError
from .journal.export import format_cell
from .journal.filters import TradeFilter
from .journal.record import Trade
from .journal.validation import TradeInput
from .observability.logger import setup_logging
from .service import JournalService

T = TypeVar("T")


@click.group()
@click.option("--config", default="tradelog.toml", help="Config file path")
@click.pass_context
def main(ctx: click.Context, config: str) -> None:
    """Discretionary trading journal."""
    settings = load_settings(config)
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    ctx.obj = settings


def _run(ctx: click.Context, action: Callable[[JournalService], Awaitable[T]]) -> T:
    """Open a service session, run *action* and map journal errors to exit codes."""

    async def session() -> T:
        async with JournalService.from_settings(ctx.obj) as service:
            return await action(service)

    try:
        return asyncio.run(session())
    except TradeValidationError as exc:
        for name, message in exc.field_errors.items():
            click.echo(f"  {name}: {message}", err=True)
        raise click.ClickException("Trade rejected.") from exc
    except JournalError as exc:
        raise click.ClickException(str(exc)) from exc


def _format_trade(trade: Trade) -> str:
    return (
        f"{trade.id}  #{format_cell(trade.trade_number):<4} {trade.date}  "
        f"{trade.asset:<8} {trade.side:<6} {format_cell(trade.lots):>4} x "
        f"{format_cell(trade.entry_price)} -> {format_cell(trade.exit_price)}  "
        f"pts {format_cell(trade.points)}  R$ {format_cell(trade.result)}  "
        f"[{trade.region} / {trade.structure} / {trade.trigger}]"
    )


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------

_SIDES = click.Choice(["compra", "venda", "buy", "sell", "long", "short"], case_sensitive=False)


@main.command()
@click.option("--asset", required=True)
@click.option("--side", required=True, type=_SIDES)
@click.option("--date", "date_", required=True, help="Trade date (YYYY-MM-DD)")
@click.option("--lots", required=True)
@click.option("--entry", required=True, help="Entry price")
@click.option("--exit", "exit_", required=True, help="Exit price")
@click.option("--region", required=True)
@click.option("--structure", required=True)
@click.option("--trigger", required=True)
@click.option("--notes", default="")
@click.option("--insight", is_flag=True, help="Ask for an insight after saving")
@click.pass_context
def add(
    ctx: click.Context,
    asset: str,
    side: str,
    date_: str,
    lots: str,
    entry: str,
    exit_: str,
    region: str,
    structure: str,
    trigger: str,
    notes: str,
    insight: bool,
) -> None:
    """Log a new trade."""
    data = TradeInput(
        asset=asset, side=side, date=date_, lots=lots, entry_price=entry,
        exit_price=exit_, region=region, structure=structure, trigger=trigger,
        notes=notes,
    )

    async def action(service: JournalService) -> None:
        trade = await service.add_trade(data)
        click.echo(_format_trade(trade))
        if insight:
            result = await service.request_insight(trade.id)
            if result is not None:
                click.echo(f"\n{result.insight}")

    _run(ctx, action)


@main.command()
@click.argument("trade_id", type=int)
@click.option("--asset")
@click.option("--side", type=_SIDES)
@click.option("--date", "date_", help="Trade date (YYYY-MM-DD)")
@click.option("--lots")
@click.option("--entry", help="Entry price")
@click.option("--exit", "exit_", help="Exit price")
@click.option("--region")
@click.option("--structure")
@click.option("--trigger")
@click.option("--notes")
@click.pass_context
def edit(ctx: click.Context, trade_id: int, **changes: str | None) -> None:
    """Edit a trade.  Omitted options keep their current value."""

    async def action(service: JournalService) -> None:
        current = service.ledger.get(trade_id)
        if current is None:
            raise TradeNotFoundError(trade_id)

        def pick(key: str, value: Any) -> str:
            given = changes.get(key)
            return given if given is not None else format_cell(value)

        data = TradeInput(
            asset=pick("asset", current.asset),
            side=pick("side", current.side),
            date=pick("date_", current.date),
            lots=pick("lots", current.lots),
            entry_price=pick("entry", current.entry_price),
            exit_price=pick("exit_", current.exit_price),
            region=pick("region", current.region),
            structure=pick("structure", current.structure),
            trigger=pick("trigger", current.trigger),
            notes=pick("notes", current.notes),
        )
        trade = await service.update_trade(trade_id, data)
        click.echo(_format_trade(trade))

    _run(ctx, action)


@main.command()
@click.argument("trade_id", type=int)
@click.pass_context
def delete(ctx: click.Context, trade_id: int) -> None:
    """Delete a trade locally (the mirror keeps its row)."""

    async def action(service: JournalService) -> None:
        service.delete_trade(trade_id)
        click.echo(f"Deleted trade {trade_id}.")

    _run(ctx, action)


def _filter_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option("--asset", default="", help="Asset substring"),
        click.option("--side", type=_SIDES, default=None),
        click.option("--date", "date_", default="", help="Exact date (YYYY-MM-DD)"),
        click.option(
            "--result", type=click.Choice([r.value for r in ResultFilter]), default="all",
        ),
        click.option("--region", default=None),
        click.option("--structure", default=None),
        click.option("--trigger", default=None),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _build_filter(
    asset: str,
    side: str | None,
    date_: str,
    result: str,
    region: str | None,
    structure: str | None,
    trigger: str | None,
) -> TradeFilter:
    return TradeFilter(
        asset=asset,
        side=Side.parse(side) if side else None,
        date=date_,
        result=ResultFilter(result),
        region=region,
        structure=structure,
        trigger=trigger,
    )


@main.command("list")
@_filter_options
@click.pass_context
def list_(ctx: click.Context, **filters: Any) -> None:
    """List trades, newest first."""
    flt = _build_filter(**filters)

    async def action(service: JournalService) -> None:
        trades = service.list_trades(flt)
        if not trades:
            click.echo("No trades found.")
        for trade in trades:
            click.echo(_format_trade(trade))

    _run(ctx, action)


@main.command()
@_filter_options
@click.pass_context
def stats(ctx: click.Context, **filters: Any) -> None:
    """Show totals and win rate."""
    flt = _build_filter(**filters)

    async def action(service: JournalService) -> None:
        s = service.stats(flt)
        click.echo(f"  Trades:        {s.trades}")
        click.echo(f"  Gains:         {s.gains}")
        click.echo(f"  Win rate:      {s.win_rate:.1f}%")
        click.echo(f"  Total points:  {s.total_points:+.2f}")
        click.echo(f"  Total R$:      {s.total_result:+.2f}")

    _run(ctx, action)


@main.command()
@click.argument("trade_id", type=int)
@click.pass_context
def insight(ctx: click.Context, trade_id: int) -> None:
    """Generate an insight for a trade and store its summary as notes."""

    async def action(service: JournalService) -> None:
        result = await service.request_insight(trade_id)
        if result is None:
            click.echo("No insight available (generator disabled or failed).")
            return
        click.echo(result.insight)

    _run(ctx, action)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_(ctx: click.Context, path: str) -> None:
    """Merge trades from a CSV file."""

    async def action(service: JournalService) -> None:
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CsvImportError(f"Cannot import {path}: not UTF-8 text ({exc.reason})") from exc
        result = await service.import_csv(text)
        click.echo(
            f"Imported {result.imported} trade(s), {result.duplicates} already present, "
            f"{len(result.skipped_lines)} line(s) skipped."
        )

    _run(ctx, action)


@main.command()
@click.option("--output", "-o", default=None, help="Write to file instead of stdout")
@click.pass_context
def export(ctx: click.Context, output: str | None) -> None:
    """Export the ledger as CSV."""

    async def action(service: JournalService) -> None:
        text = service.export_csv()
        if output:
            Path(output).write_text(text + "\n", encoding="utf-8")
            click.echo(f"Exported {len(service.ledger)} trade(s) to {output}.")
        else:
            click.echo(text)

    _run(ctx, action)


# ---------------------------------------------------------------------------
# Mirror
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Push the ledger to the spreadsheet mirror."""

    async def action(service: JournalService) -> None:
        await service.connect()
        outcome = await service.sync_interactive()
        click.echo(
            f"Mirror updated: {outcome.updated} row(s) rewritten, "
            f"{outcome.appended} appended"
            + (" (header rewritten)." if outcome.header_rewritten else ".")
        )

    _run(ctx, action)


@main.command()
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def pull(ctx: click.Context, yes: bool) -> None:
    """Replace the local ledger with the mirror's trades."""
    if not yes:
        click.confirm("This replaces every local trade. Continue?", abort=True)

    async def action(service: JournalService) -> None:
        count = await service.load_from_mirror()
        click.echo(f"Loaded {count} trade(s) from the mirror.")

    _run(ctx, action)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

_KINDS = click.Choice([k.value for k in TagKind])


@main.group()
def tags() -> None:
    """Manage region, structure and trigger vocabularies."""


@tags.command("list")
@click.pass_context
def tags_list(ctx: click.Context) -> None:
    """Show every vocabulary."""

    async def action(service: JournalService) -> None:
        for kind in TagKind:
            click.echo(f"{kind.value}:")
            for value in service.taxonomy.values(kind):
                click.echo(f"  {value}")

    _run(ctx, action)


@tags.command("add")
@click.argument("kind", type=_KINDS)
@click.argument("value")
@click.pass_context
def tags_add(ctx: click.Context, kind: str, value: str) -> None:
    """Register a tag value."""

    async def action(service: JournalService) -> None:
        if await service.add_tag(TagKind(kind), value):
            click.echo(f"Added {value!r} to {kind}.")
        else:
            click.echo(f"{value!r} is blank or already in {kind}.")

    _run(ctx, action)


@tags.command("remove")
@click.argument("kind", type=_KINDS)
@click.argument("value")
@click.pass_context
def tags_remove(ctx: click.Context, kind: str, value: str) -> None:
    """Remove a tag value."""

    async def action(service: JournalService) -> None:
        if await service.remove_tag(TagKind(kind), value):
            click.echo(f"Removed {value!r} from {kind}.")
        else:
            click.echo(f"{value!r} is not in {kind}.")

    _run(ctx, action)


@tags.command("sync")
@click.pass_context
def tags_sync(ctx: click.Context) -> None:
    """Merge vocabularies with the spreadsheet mirror."""

    async def action(service: JournalService) -> None:
        changed = await service.sync_taxonomy_interactive()
        click.echo("Vocabularies merged." if changed else "Vocabularies already in sync.")

    _run(ctx, action)
