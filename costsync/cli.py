"""CostSync CLI.

Commands:
- show: Load a record once and print its derived figures
- render: Fill the bound elements of an HTML presentation once
- watch: Keep refreshing and rewrite the presentation on every change
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from costsync.config import AppConfig, get_config
from costsync.context import CostSync
from costsync.core.logging import configure_logging
from costsync.derivation import derive, is_distribution_slide, is_service_slide
from costsync.errors import LoadError
from costsync.formatting import format_amount, format_number
from costsync.models import Record
from costsync.pipeline import CycleResult
from costsync.signature import signature
from costsync.sources.loader import SourceLoader
from costsync.sources.local import LocalFileSource, PathPicker, PromptPicker
from costsync.sources.remote import RemoteSource
from costsync.surfaces.html import HtmlSurface

app = typer.Typer(
    name="costsync",
    help="CostSync - live cost figures for sales presentations",
    no_args_is_help=True,
)

console = Console()


def _config(source: str | None, interval: int | None = None, no_refresh: bool = False) -> AppConfig:
    config = get_config()
    if source:
        config = replace(config, source=replace(config.source, url=source))
    if interval is not None:
        config = replace(config, refresh=replace(config.refresh, interval_ms=interval))
    if no_refresh:
        config = replace(config, refresh=replace(config.refresh, enabled=False))
    return config


def _print_record(record: Record) -> None:
    fmt = record.format_config
    for slide_id, slide in record.slides.items():
        if is_distribution_slide(slide):
            table = Table(title=f"{slide_id} - channel distribution")
            table.add_column("Channel")
            table.add_column("Investment", justify="right")
            table.add_column("Leads", justify="right")
            table.add_column("Cost per lead", justify="right")
            for name, channel in slide["distribution"].items():
                if not isinstance(channel, dict):
                    continue
                table.add_row(
                    name,
                    str(format_amount(channel.get("investment"), fmt)),
                    str(format_number(channel.get("leads"), fmt)),
                    str(format_number(channel.get("costPerLead", "-"), fmt)),
                )
            table.add_row(
                "[bold]Total[/bold]",
                str(format_amount(slide["totalInvestment"], fmt)),
                str(format_number(slide["totalLeads"], fmt)),
                str(format_number(slide["costPerLead"], fmt)),
            )
            console.print(table)

        if is_service_slide(slide):
            table = Table(title=f"{slide_id} - investment totals")
            table.add_column("Figure")
            table.add_column("Amount", justify="right")
            for key, value in slide["totals"].items():
                table.add_row(key, str(format_amount(value, fmt)))
            console.print(table)


@app.command()
def show(
    source: str | None = typer.Option(None, "--source", help="Record endpoint URL"),
    file: Path | None = typer.Option(None, "--file", help="Read a local JSON record instead"),
):
    """Load a record once and print its derived figures."""
    config = _config(source)
    configure_logging(config.log_level, config.json_logs)

    async def _show():
        remote = RemoteSource(
            config.source.url,
            data_version=config.source.data_version,
            timeout=config.source.timeout_seconds,
        )
        local = LocalFileSource(PathPicker(file) if file else None)
        loader = SourceLoader(remote, local)
        try:
            return await loader.load(force_local_picker=file is not None)
        finally:
            await loader.close()

    try:
        record = asyncio.run(_show())
    except LoadError as e:
        console.print(f"[bold red]✗ Could not load record:[/bold red] {e}")
        raise typer.Exit(code=1)

    derive(record)
    _print_record(record)
    console.print(f"[dim]signature {signature(record)}[/dim]")


@app.command()
def render(
    presentation: Path = typer.Argument(..., help="HTML presentation with data-cost-* bindings"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Output file (default: stdout)"),
    source: str | None = typer.Option(None, "--source", help="Record endpoint URL"),
    select: bool = typer.Option(False, "--select", help="Prompt for a local record file"),
):
    """Fill the bound elements of an HTML presentation once."""
    config = _config(source, no_refresh=True)
    configure_logging(config.log_level, config.json_logs)
    surface = HtmlSurface.from_file(presentation)

    async def _render() -> bool:
        picker = PromptPicker() if select else None
        async with CostSync(config, surface, surface.discover_bindings(), picker=picker) as sync:
            if select:
                return await sync.select_local_file()
            return await sync.initialize()

    if not asyncio.run(_render()):
        console.print("[bold red]✗ No cost record could be loaded[/bold red]")
        raise typer.Exit(code=1)

    if out is None:
        typer.echo(surface.render())
    else:
        surface.write(out)
        console.print(f"[bold green]✓[/bold green] Wrote {out}")


@app.command()
def watch(
    presentation: Path = typer.Argument(..., help="HTML presentation with data-cost-* bindings"),
    out: Path = typer.Option(..., "--out", "-o", help="Output file rewritten on every change"),
    source: str | None = typer.Option(None, "--source", help="Record endpoint URL"),
    interval: int | None = typer.Option(None, "--interval", help="Poll interval in ms (min 1000)"),
):
    """Keep refreshing and rewrite the presentation whenever the record changes."""
    config = _config(source, interval=interval)
    configure_logging(config.log_level, config.json_logs)
    if not config.refresh.enabled:
        console.print("[yellow]Auto-refresh is disabled (COSTSYNC_AUTO_REFRESH_ENABLED)[/yellow]")

    surface = HtmlSurface.from_file(presentation)

    def _write(result: CycleResult) -> None:
        surface.write(out)
        console.print(f"[green]✓[/green] {result.message}, {result.rendered} values -> {out}")

    async def _watch() -> bool:
        async with CostSync(config, surface, surface.discover_bindings()) as sync:
            sync.pipeline.listeners.append(_write)
            if not await sync.initialize():
                return False
            while sync.scheduler.running:
                await asyncio.sleep(1)
            return True

    try:
        ok = asyncio.run(_watch())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")
        return

    if not ok:
        console.print("[bold red]✗ No cost record could be loaded[/bold red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
