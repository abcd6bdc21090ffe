# logam_mulia/cli/runner.py

"""Headless CLI runner around the async price pipeline."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from logam_mulia.config.settings import Settings
from logam_mulia.errors import (
    FetchFailure,
    PersistenceFailure,
    UnsupportedSource,
)
from logam_mulia.models.price_record import PriceWithDelta, ScrapeResult
from logam_mulia.renderers.feed_renderer import (
    error_envelope,
    error_rss,
    format_rupiah,
    to_json_envelope,
    to_rss,
)
from logam_mulia.services.price_pipeline import PricePipeline

logger = logging.getLogger("logam_mulia.cli")

# Stderr console for status messages so stdout stays clean for JSON/RSS
_err = Console(stderr=True)


def _change_markup(change: int) -> str:
    if change > 0:
        return f"[green]▲ {format_rupiah(change)}[/green]"
    if change < 0:
        return f"[red]▼ {format_rupiah(-change)}[/red]"
    return "[dim]—[/dim]"


def _print_table(result: ScrapeResult) -> None:
    """Render a Rich table of prices (and deltas, if computed) to stdout."""
    rows: list[PriceWithDelta] = (
        result.deltas
        if result.deltas is not None
        else [PriceWithDelta(record=r) for r in result.records]
    )
    table = Table(
        title=(
            f"{result.source} - updated "
            f"{result.published_at or 'N/A'}"
        ),
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("Type", style="magenta")
    table.add_column("Weight", justify="right")
    table.add_column("Sell", justify="right", style="green")
    table.add_column("Buy", justify="right")
    if result.deltas is not None:
        table.add_column("Δ Sell", justify="right")
        table.add_column("Δ Buy", justify="right")

    for row in rows:
        r = row.record
        cells = [
            r.category,
            f"{r.weight:g} {r.unit}",
            format_rupiah(r.sell_price),
            format_rupiah(r.buy_price) if r.has_buy_price else "N/A",
        ]
        if result.deltas is not None:
            cells.append(_change_markup(row.sell_change))
            cells.append(_change_markup(row.buy_change))
        table.add_row(*cells)

    Console().print(table)


def _write_json(payload: object) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def list_sources() -> int:
    """Print the registered sources."""
    table = Table(title="Supported Sites", title_style="bold cyan")
    table.add_column("Id", style="bold")
    table.add_column("Label")
    table.add_column("URL", style="dim", overflow="fold")
    for src in Settings.AVAILABLE_SOURCES:
        table.add_row(src["id"], src["label"], src["url"])
    Console().print(table)
    return 0


async def cli_scrape(
    site: str,
    category: str | None,
    output_format: str,
    with_deltas: bool,
    pipeline: PricePipeline | None = None,
) -> int:
    """Scrape one site and print it; returns an exit code (0=ok, 1=fail)."""
    owns_pipeline = pipeline is None
    pipeline = pipeline or PricePipeline()
    _err.print(
        f"[bold]Scraping:[/bold] {site}"
        + (f"  [dim]category={category}[/dim]" if category else "")
    )

    try:
        result = await pipeline.run(
            site, category=category, with_deltas=with_deltas
        )
    except (UnsupportedSource, FetchFailure) as exc:
        logger.error("Scrape failed for %s: %s", site, exc)
        _err.print(f"[red]Error: {exc}[/red]")
        if output_format == "json":
            _write_json(error_envelope(site, exc))
        elif output_format == "rss":
            sys.stdout.write(error_rss(site, exc) + "\n")
        return 1
    finally:
        await pipeline.drain()
        if owns_pipeline:
            pipeline.close()

    if not result.records:
        _err.print("[yellow]No prices found.[/yellow]")

    detail = (
        f" ({result.excluded_count} outside category)"
        if result.excluded_count
        else ""
    )
    _err.print(
        f"[green]✓ {len(result.records)} prices"
        f" of {result.total_before_filter}{detail}[/green]"
    )

    if output_format == "table":
        _print_table(result)
    elif output_format == "rss":
        sys.stdout.write(to_rss(result) + "\n")
    else:
        _write_json(to_json_envelope(result))

    return 0 if result.records else 1


def run_history(
    site: str,
    category: str | None,
    weight: float,
    limit: int | None = None,
    pipeline: PricePipeline | None = None,
) -> int:
    """Print the stored history of one price series."""
    if not category:
        _err.print("[red]--history needs --category[/red]")
        return 1

    pipeline = pipeline or PricePipeline()
    try:
        snapshots = pipeline.history(site, category, weight, limit)
    except (UnsupportedSource, PersistenceFailure) as exc:
        _err.print(f"[red]Error: {exc}[/red]")
        return 1
    finally:
        pipeline.close()

    if not snapshots:
        _err.print("[yellow]No history recorded yet.[/yellow]")
        return 0

    table = Table(
        title=f"{site} / {category} / {weight:g} gram",
        title_style="bold cyan",
    )
    table.add_column("Observed", style="dim")
    table.add_column("Page updated")
    table.add_column("Sell", justify="right", style="green")
    table.add_column("Buy", justify="right")
    for snap in snapshots:
        table.add_row(
            snap.observed_at.strftime("%Y-%m-%d %H:%M"),
            snap.published_at or "—",
            format_rupiah(snap.sell_price),
            format_rupiah(snap.buy_price) if snap.has_buy_price else "N/A",
        )
    Console().print(table)
    return 0
