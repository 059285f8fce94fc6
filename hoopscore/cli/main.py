"""Main CLI entry point for HoopScore."""

import typer
from rich.console import Console

from hoopscore.cli.commands.analyze import analyze as analyze_command
from hoopscore.cli.commands.config import show_config as config_command
from hoopscore.cli.utils import setup_logging

app = typer.Typer(
    name="hoopscore",
    help="Basketball game video analysis CLI - estimate the final score of a pickup game",
    no_args_is_help=True,
)

console = Console()

# Register commands
app.command(name="analyze")(analyze_command)
app.command(name="config")(config_command)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """HoopScore - Basketball game video analysis CLI."""
    setup_logging(verbose)
    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


if __name__ == "__main__":
    app()
