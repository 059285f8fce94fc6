"""Running ball-possession share from jersey counts."""

from dataclasses import dataclass


@dataclass
class PossessionTracker:
    """
    Exponential moving average of each team's share of visible players.

    Every sampled frame with at least one counted player moves the shares
    `1 - smoothing` of the way towards that frame's split. Shares start at
    zero, so they only approach a 100% total once enough frames were seen.
    """

    smoothing: float = 0.95
    team_a: float = 0.0
    team_b: float = 0.0
    frames_counted: int = 0

    def update(self, players_a: int, players_b: int) -> None:
        total = players_a + players_b
        if total <= 0:
            return

        weight = 1.0 - self.smoothing
        self.team_a = self.team_a * self.smoothing + 100.0 * players_a / total * weight
        self.team_b = self.team_b * self.smoothing + 100.0 * players_b / total * weight
        self.frames_counted += 1
