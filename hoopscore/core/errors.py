"""Exception types for HoopScore."""


class HoopScoreError(Exception):
    """Base exception for HoopScore errors."""

    def __init__(self, message: str, hint: str | None = None):
        self.message = message
        self.hint = hint
        super().__init__(message)


class VideoError(HoopScoreError):
    """Input video is missing, unreadable, or not a video."""
    pass


class ConfigError(HoopScoreError):
    """Configuration file could not be loaded."""
    pass
