"""CLI commands for local backups under `learnsync backup`."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from ..config.constants import PROGRESS_COLLECTION
from ..config.settings import get_backup_interval
from ..services.auto_backup import AutoBackupScheduler
from ..utils.output import console, print_json
from ._helpers import build_coordinator, exit_on_failure, get_settings, handle_command_error

app = typer.Typer(help="Create and inspect local backups")


@app.command()
@handle_command_error("creating backup")
def create(
    ctx: typer.Context,
    collection: str = typer.Argument(PROGRESS_COLLECTION, help="Collection to back up"),
) -> None:
    """Snapshot a collection, replacing its previous backup."""
    coordinator = build_coordinator(get_settings(ctx))
    result = asyncio.run(coordinator.create_backup(collection))
    exit_on_failure(result)
    console.print(f"[green]Backup complete:[/green] {result.items} {collection} items")
    console.print(f"  Key: {coordinator.backup_key(collection)}")


@app.command()
@handle_command_error("reading backup")
def info(
    ctx: typer.Context,
    collection: str = typer.Argument(PROGRESS_COLLECTION, help="Collection to inspect"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show when the current backup was taken and how many items it holds."""
    coordinator = build_coordinator(get_settings(ctx))
    meta = coordinator.read_backup_metadata(collection)
    if meta is None:
        console.print(f"No backup found for {collection}.")
        raise typer.Exit(1)

    if json_output:
        print_json(meta)
        return
    console.print(f"Backup of {collection}: {meta.get('item_count', '?')} items")
    console.print(f"  Taken: {meta.get('timestamp', '?')}")


@app.command()
@handle_command_error("running auto-backup")
def auto(
    ctx: typer.Context,
    collection: str = typer.Argument(PROGRESS_COLLECTION, help="Collection to back up"),
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Seconds between backups (default 300)"
    ),
    ticks: Optional[int] = typer.Option(
        None, "--ticks", "-n", help="Stop after this many backups (default: run until Ctrl-C)"
    ),
) -> None:
    """Back up a collection periodically in the foreground."""
    settings = get_settings(ctx)
    interval_seconds = settings.backup_interval_seconds
    if interval is not None:
        interval_seconds = get_backup_interval(interval)
    coordinator = build_coordinator(settings)
    scheduler = AutoBackupScheduler(
        coordinator,
        interval_seconds=interval_seconds,
        collection=collection,
        max_ticks=ticks,
        run_immediately=True,
    )

    async def _run() -> None:
        scheduler.start()
        try:
            await scheduler.wait()
        finally:
            await scheduler.stop()

    console.print(f"Backing up {collection} every {interval_seconds:g}s (Ctrl-C to stop)")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")

    console.print(
        f"Backups: {scheduler.completed} completed, "
        f"{scheduler.skipped} skipped, {scheduler.failed} failed"
    )
    if scheduler.failed:
        raise typer.Exit(1)
