"""Analyze command - estimate the final score of a recorded game."""

import json
import shlex
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from hoopscore.analysis.analyzer import GameAnalyzer
from hoopscore.cli.utils import handle_errors, validate_video_file
from hoopscore.core.config import (
    ExternalClassifierConfig,
    HoopScoreConfig,
    VideoConfig,
    describe_validation_error,
    get_config,
)
from hoopscore.core.errors import ConfigError
from hoopscore.output.summary import SummaryReporter, format_time

console = Console()


def build_config(
    base: HoopScoreConfig,
    fps: Optional[float] = None,
    downscale: Optional[bool] = None,
    downscale_factor: Optional[float] = None,
    classifier: Optional[str] = None,
    classifier_timeout: Optional[float] = None,
    debug: bool = False,
) -> HoopScoreConfig:
    """Apply command-line overrides on top of a loaded configuration."""
    video_values = base.video.model_dump()
    if fps is not None:
        video_values["target_fps"] = fps
    if downscale is not None:
        video_values["downscale"] = downscale
    if downscale_factor is not None:
        video_values["downscale_factor"] = downscale_factor

    external_values = base.external_classifier.model_dump()
    if classifier is not None:
        external_values["command"] = shlex.split(classifier) or None
    if classifier_timeout is not None:
        external_values["timeout_seconds"] = classifier_timeout

    try:
        video_config = VideoConfig(**video_values)
        external_config = ExternalClassifierConfig(**external_values)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid option value {describe_validation_error(e)}",
            hint="--fps and --classifier-timeout must be positive, --downscale-factor between 0 and 1",
        ) from e

    return base.model_copy(
        update={
            "video": video_config,
            "external_classifier": external_config,
            "debug": base.debug or debug,
        }
    )


@handle_errors
def analyze(
    video: Path = typer.Argument(
        ...,
        help="Path to input video file",
    ),
    fps: Optional[float] = typer.Option(
        None,
        "--fps", "-f",
        help="Frames per second to analyze (higher = slower, more accurate)",
    ),
    downscale: Optional[bool] = typer.Option(
        None,
        "--downscale/--no-downscale",
        help="Downscale frames before detection",
    ),
    downscale_factor: Optional[float] = typer.Option(
        None,
        "--downscale-factor",
        help="Scale factor applied when downscaling (0-1]",
    ),
    classifier: Optional[str] = typer.Option(
        None,
        "--classifier",
        help="External classifier command; receives the frame image path as its last argument",
    ),
    classifier_timeout: Optional[float] = typer.Option(
        None,
        "--classifier-timeout",
        help="Seconds to wait for the external classifier",
    ),
    limit: Optional[float] = typer.Option(
        None,
        "--limit", "-l",
        help="Only analyze first N seconds of video (for testing)",
    ),
    output_json: Optional[Path] = typer.Option(
        None,
        "--json",
        help="Write the result as JSON to this file",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="YAML configuration file (default: ./hoopscore.yaml if present)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Include tracebacks for skipped frames",
    ),
):
    """
    Estimate the final score of a recorded basketball game.

    Looks for the ball near either basket, attributes each scoring window
    to a team by jersey colors (or an external classifier), and keeps a
    guarded running score.

    Examples:
        hoopscore analyze game.mp4
        hoopscore analyze game.mp4 --fps 5 --no-downscale
        hoopscore analyze game.mp4 --classifier "python classify.py"
        hoopscore analyze game.mp4 --json result.json
    """
    validate_video_file(video)

    base = HoopScoreConfig.from_yaml(config_file) if config_file else get_config()
    config = build_config(
        base,
        fps=fps,
        downscale=downscale,
        downscale_factor=downscale_factor,
        classifier=classifier,
        classifier_timeout=classifier_timeout,
        debug=debug,
    )

    console.print(f"\n[bold]HoopScore[/bold] - Game Score Estimation")
    console.print(f"Input: [cyan]{video}[/cyan]")
    console.print(f"Target rate: [yellow]{config.video.target_fps:g} fps[/yellow]")
    if config.video.downscale:
        console.print(f"Downscale: [yellow]{config.video.downscale_factor:g}x[/yellow]")
    if config.external_classifier.command:
        console.print(
            f"Classifier: [yellow]{shlex.join(config.external_classifier.command)}[/yellow] "
            f"(timeout {config.external_classifier.timeout_seconds:g}s)"
        )
    if limit:
        console.print(f"Limit: [yellow]{format_time(limit)} ({limit:.1f}s)[/yellow]")
    console.print()

    reporter = SummaryReporter(
        console=console,
        progress_interval=config.reporting.progress_interval,
        max_key_moments=config.reporting.max_key_moments,
    )
    analyzer = GameAnalyzer(config=config, reporter=reporter)
    result = analyzer.analyze(video, limit_seconds=limit)

    if output_json:
        with open(output_json, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        console.print(f"\nResult saved to: [cyan]{output_json}[/cyan]")
