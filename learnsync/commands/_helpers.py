"""Shared command helpers.

This module provides:
- build_coordinator(): Compose the file-backed collaborators from settings
- get_settings(): Settings stored on the typer context by the main callback
- exit_on_failure(): Print a failed result and exit
- @handle_command_error: Consistent error handling decorator
"""

from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import typer
from rich.markup import escape

from ..config.settings import Settings, load_settings
from ..exceptions import LearnsyncError
from ..services.local_store import (
    FileBlobStorage,
    HybridDataStore,
    JsonCollectionStore,
    StaticIdentity,
)
from ..services.recovery_service import RecoveryCoordinator
from ..services.recovery_types import OperationResult
from ..utils.output import console

F = TypeVar("F", bound=Callable[..., Any])


def get_settings(ctx: typer.Context) -> Settings:
    """Return the settings resolved by the main callback, loading defaults if absent."""
    obj = ctx.find_root().obj
    if isinstance(obj, dict) and isinstance(obj.get("settings"), Settings):
        return obj["settings"]
    return load_settings()


def build_data_store(settings: Settings) -> HybridDataStore:
    remote = JsonCollectionStore(settings.remote_dir) if settings.remote_dir else None
    return HybridDataStore(JsonCollectionStore(settings.data_dir), remote)


def build_coordinator(
    settings: Settings,
    on_reload: Optional[Callable[[], None]] = None,
) -> RecoveryCoordinator:
    """Wire a RecoveryCoordinator to the file-backed stores described by settings."""
    return RecoveryCoordinator(
        data_store=build_data_store(settings),
        identity=StaticIdentity(settings.user),
        blob_storage=FileBlobStorage(settings.blob_dir),
        on_reload=on_reload,
    )


def exit_on_failure(result: OperationResult) -> None:
    """Print a failed result in red and exit with status 1."""
    if result.success:
        return
    kind = f" ({result.error_kind.value})" if result.error_kind else ""
    console.print(f"[red]Error{kind}: {escape(result.message)}[/red]")
    raise typer.Exit(1)


def handle_command_error(operation: str, *, exit_code: int = 1) -> Callable[[F], F]:
    """Decorator for consistent error handling in CLI commands.

    Example:
        @app.command()
        @handle_command_error("validating data")
        def validate(ctx: typer.Context):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except typer.Abort:
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0) from None
            except (LearnsyncError, ValueError) as e:
                console.print(f"[red]Error {operation}: {escape(str(e))}[/red]")
                raise typer.Exit(exit_code) from e

        return wrapper  # type: ignore[return-value]

    return decorator
