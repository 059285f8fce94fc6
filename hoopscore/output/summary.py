"""Progress lines and the final score summary."""

from rich.console import Console
from rich.table import Table

from hoopscore.core.memory import get_memory_info
from hoopscore.core.models import GameResult, Team, VideoInfo

TEAM_NAMES = {
    Team.TEAM_A: "Team A",
    Team.TEAM_B: "Team B",
}


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS or HH:MM:SS."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:05.2f}"
    return f"{minutes}:{secs:05.2f}"


class SummaryReporter:
    """
    Observational output for an analysis run.

    Progress lines are printed every `progress_interval` processed frames;
    the final summary is printed once when the stream ends. Nothing here is
    consumed programmatically.
    """

    def __init__(
        self,
        console: Console | None = None,
        progress_interval: int = 100,
        max_key_moments: int = 10,
        show_memory: bool = True,
    ):
        self.console = console or Console()
        self.progress_interval = max(1, progress_interval)
        self.max_key_moments = max_key_moments
        self.show_memory = show_memory

    def start(self, info: VideoInfo, frame_skip: int) -> None:
        c = self.console
        c.print(f"Video: {info.width}x{info.height}, {info.fps:.1f} FPS, {info.frame_count:,} frames")
        c.print(f"Duration: {format_time(info.duration)} ({info.duration:.1f}s)")
        c.print(f"Analyzing every {frame_skip} frame(s)")
        c.print()

    def should_report(self, frames_processed: int) -> bool:
        return frames_processed > 0 and frames_processed % self.progress_interval == 0

    def progress(
        self,
        info: VideoInfo,
        frame_idx: int,
        game_time: float,
        team_a_score: int,
        team_b_score: int,
        total_baskets: int,
    ) -> None:
        """Print one progress line."""
        pct = (frame_idx / info.frame_count * 100) if info.frame_count > 0 else 0.0
        line = (
            f"Progress: {min(pct, 100.0):5.1f}% | "
            f"Game time: {format_time(game_time)} / {format_time(info.duration)} | "
            f"Score: A {team_a_score} - {team_b_score} B | "
            f"Baskets: {total_baskets}"
        )
        if self.show_memory:
            line += f" | Memory: {get_memory_info()['rss_mb']:.0f}MB"
        self.console.print(f"[dim]{line}[/dim]")

    def summary(self, result: GameResult) -> None:
        """Print the final score summary."""
        c = self.console
        c.print()
        if result.cancelled:
            c.print("[bold yellow]Analysis cancelled - partial result[/bold yellow]")
        else:
            c.print("[bold green]Game Analysis Complete![/bold green]")
        c.print()

        table = Table(title="Final Score")
        table.add_column("Team", style="cyan")
        table.add_column("Points", style="green", justify="right")
        table.add_row(TEAM_NAMES[Team.TEAM_A], str(result.team_a_score))
        table.add_row(TEAM_NAMES[Team.TEAM_B], str(result.team_b_score))
        c.print(table)
        c.print()

        winner = result.winner
        if winner is None:
            c.print("[bold]It's a tie![/bold]")
        else:
            c.print(f"[bold]{TEAM_NAMES[winner]} wins![/bold]")
        c.print()

        c.print("[bold]Summary:[/bold]")
        c.print(f"  Game duration:    {format_time(result.duration)}")
        c.print(f"  Total baskets:    {result.total_baskets}")
        c.print(f"  Scoring pace:     {result.scoring_pace:.1f} baskets/min")
        c.print(
            f"  Ball possession:  Team A {result.team_a_possession:.0f}% - "
            f"Team B {result.team_b_possession:.0f}%"
        )
        c.print(f"  Rejected events:  {result.rejected_events}")
        c.print(f"  Confidence:       {result.confidence_score:.0f}%")

        if result.events:
            c.print()
            c.print("[bold]Key moments:[/bold]")
            for event in result.events[: self.max_key_moments]:
                c.print(f"  {format_time(event.game_time)} - {event.description}")

        c.print()
        c.print("[bold]Processing:[/bold]")
        c.print(f"  Frames analyzed:  {result.frames_processed:,}")
        if result.frames_failed:
            c.print(f"  Frames skipped:   {result.frames_failed:,}")
        c.print(f"  Processing time:  {format_time(result.processing_time)}")
        c.print(f"  Speed:            {result.processing_fps:.1f} frames/s")
