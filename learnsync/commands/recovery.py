"""CLI commands for refreshing, recovering, repairing and validating data."""

from __future__ import annotations

import asyncio

import typer
from rich.markup import escape
from rich.table import Table

from ..config.constants import EFFICIENCY_METRIC_ID, PROGRESS_COLLECTION
from ..utils.output import console, print_json
from ._helpers import build_coordinator, exit_on_failure, get_settings, handle_command_error


def _signal_reload() -> None:
    console.print("[yellow]Application state reload required[/yellow]")


def _counts_table(title: str, counts: dict[str, int]) -> Table:
    table = Table(title=title)
    table.add_column("Collection", style="cyan")
    table.add_column("Items", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    return table


@handle_command_error("refreshing data")
def refresh(ctx: typer.Context) -> None:
    """Sync from the remote store and reload every collection."""
    coordinator = build_coordinator(get_settings(ctx), on_reload=_signal_reload)
    result = asyncio.run(coordinator.force_refresh())
    exit_on_failure(result)

    console.print(_counts_table("Collections", result.counts))
    for failure in result.failures:
        console.print(
            f"[yellow]Failed to load {failure.collection}: {escape(failure.cause)}[/yellow]"
        )


@handle_command_error("recovering data")
def recover(
    ctx: typer.Context,
    collection: str = typer.Argument(PROGRESS_COLLECTION, help="Collection to recover"),
) -> None:
    """Restore a collection from the remote store or the local backup.

    Examples:
        learnsync recover               # Recover progress records
        learnsync recover notes         # Recover notes
    """
    coordinator = build_coordinator(get_settings(ctx))
    result = asyncio.run(coordinator.recover_collection(collection))
    exit_on_failure(result)
    console.print(
        f"[green]Recovered {result.recovered} {collection} items from {result.source}[/green]"
    )


@handle_command_error("repairing metric")
def repair(
    ctx: typer.Context,
    metric: str = typer.Option(EFFICIENCY_METRIC_ID, "--metric", "-m", help="Dashboard figure id"),
) -> None:
    """Reset a corrupt dashboard figure to its safe default."""
    coordinator = build_coordinator(get_settings(ctx))
    result = asyncio.run(coordinator.repair_derived_metric(metric))
    exit_on_failure(result)
    if result.repaired:
        console.print(f"[green]{result.message}[/green] (was {result.previous_value})")
    else:
        console.print(result.message)


@handle_command_error("validating data")
def validate(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Report item counts and known data problems."""
    coordinator = build_coordinator(get_settings(ctx))
    result = asyncio.run(coordinator.validate_integrity())
    exit_on_failure(result)
    report = result.report
    assert report is not None

    if json_output:
        print_json(report.to_dict())
        return

    console.print(_counts_table("Data integrity", report.counts))
    if not report.issues:
        console.print("[green]No issues found[/green]")
    for issue in report.issues:
        console.print(f"[red]•[/red] {issue}")
