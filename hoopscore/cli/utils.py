"""CLI utilities for HoopScore."""

import functools
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from hoopscore.core.errors import HoopScoreError, VideoError

console = Console()

VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v"}

F = TypeVar("F", bound=Callable[..., Any])


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def handle_errors(func: F) -> F:
    """Decorator to handle common errors in CLI commands."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HoopScoreError as e:
            console.print(f"\n[red]Error:[/red] {escape(e.message)}")
            if e.hint:
                console.print(f"[dim]Hint: {escape(e.hint)}[/dim]")
            raise typer.Exit(1)
        except FileNotFoundError as e:
            console.print(f"\n[red]Error:[/red] File not found: {e.filename or e}")
            raise typer.Exit(1)
        except PermissionError as e:
            console.print(f"\n[red]Error:[/red] Permission denied: {e.filename}")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            raise typer.Exit(130)
        except MemoryError:
            console.print("\n[red]Error:[/red] Out of memory")
            console.print("[dim]Hint: Try a lower --fps or enable --downscale[/dim]")
            raise typer.Exit(1)
        except Exception as e:
            console.print(f"\n[red]Unexpected error:[/red] {type(e).__name__}: {escape(str(e))}")
            console.print("[dim]Run with --verbose and --debug for more detail[/dim]")
            raise typer.Exit(1)

    return wrapper  # type: ignore[return-value]


def validate_video_file(path: Path) -> None:
    """Validate that a video file exists and looks like a video."""
    if not path.exists():
        raise VideoError(
            f"Video file not found: {path}",
            hint="Check the file path and try again"
        )

    if not path.is_file():
        raise VideoError(
            f"Not a file: {path}",
            hint="Provide a path to a video file, not a directory"
        )

    if path.suffix.lower() not in VIDEO_EXTENSIONS:
        raise VideoError(
            f"Unsupported video format: {path.suffix}",
            hint=f"Supported formats: {', '.join(sorted(VIDEO_EXTENSIONS))}"
        )
