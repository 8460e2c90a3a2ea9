#!/usr/bin/env python3
"""
Main CLI entry point for learnsync
"""

from pathlib import Path
from typing import Optional

import typer

from learnsync import __version__
from learnsync.commands import backup, bench, recovery
from learnsync.config.settings import load_settings
from learnsync.exceptions import ConfigurationError
from learnsync.utils.logging import setup_logging
from learnsync.utils.output import console


def version():
    """Show learnsync version"""
    typer.echo(f"learnsync version {__version__}")


def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", envvar="LEARNSYNC_DATA_DIR", help="Local data directory"
    ),
    remote_dir: Optional[Path] = typer.Option(
        None, "--remote-dir", envvar="LEARNSYNC_REMOTE_DIR", help="Remote mirror directory"
    ),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", envvar="LEARNSYNC_USER", help="Authenticated user name"
    ),
):
    """
    learnsync - recovery, backup and benchmark tools for learning-progress data

    [bold]Examples:[/bold]

    Check data integrity:
        [cyan]learnsync validate[/cyan]

    Back up progress records:
        [cyan]learnsync backup create[/cyan]

    Restore progress after a failure:
        [cyan]learnsync recover progress[/cyan]
    """
    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive", err=True)
        raise typer.Exit(1)

    setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = load_settings(data_dir=data_dir, remote_dir=remote_dir, user=user)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1) from None

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def create_app() -> typer.Typer:
    """Create and configure the main CLI application"""
    app = typer.Typer(no_args_is_help=True, rich_markup_mode="rich")
    app.callback()(main)

    app.command()(recovery.refresh)
    app.command()(recovery.recover)
    app.command()(recovery.repair)
    app.command()(recovery.validate)
    app.add_typer(backup.app, name="backup")
    app.add_typer(bench.app, name="bench")
    app.command()(version)
    return app


# Create the app instance
app = create_app()


def run():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    run()
