"""Config command - show the effective configuration."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax

from hoopscore.cli.utils import handle_errors
from hoopscore.core.config import HoopScoreConfig, get_config

console = Console()


@handle_errors
def show_config(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="YAML configuration file to load instead of the default locations",
    ),
):
    """Print the effective configuration (defaults, YAML file and HOOPSCORE_* env vars) as YAML."""
    config = HoopScoreConfig.from_yaml(config_file) if config_file else get_config()
    console.print(Syntax(config.to_yaml(), "yaml"))
