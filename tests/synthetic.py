"""Colors and drawing helpers for synthetic test frames."""

from pathlib import Path

import cv2
import numpy as np

from hoopscore.core.models import VideoInfo

ORANGE = (0, 140, 255)  # BGR, inside the default ball range
WHITE = (255, 255, 255)  # Team A jersey
BLUE = (150, 50, 0)  # Team B jersey


def blank(width: int = 640, height: int = 360) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


def draw_ball(image: np.ndarray, cx: int, cy: int, radius: int = 8) -> np.ndarray:
    cv2.circle(image, (cx, cy), radius, ORANGE, thickness=-1)
    return image


def draw_players(
    image: np.ndarray,
    corners,
    color: tuple[int, int, int] = WHITE,
    size: tuple[int, int] = (30, 40),
) -> np.ndarray:
    """Draw solid jersey rectangles with top-left corners at the given points."""
    w, h = size
    for x, y in corners:
        cv2.rectangle(image, (x, y), (x + w - 1, y + h - 1), color, thickness=-1)
    return image


class FakeVideo:
    """In-memory stand-in for `Video` that renders frames on demand.

    `render(frame_idx)` returns the BGR image for a source frame; frames
    are produced lazily so long videos cost nothing until read.
    """

    def __init__(self, render, frame_count: int, fps: float = 30.0, width: int = 320, height: int = 180):
        self.render = render
        self.info = VideoInfo(
            path=Path("synthetic.mp4"),
            duration=frame_count / fps,
            fps=fps,
            width=width,
            height=height,
            frame_count=frame_count,
            codec="fake",
        )
        self.read_indices: list[int] = []

    def iter_frames(self, start_frame: int = 0, end_frame: int | None = None, step: int = 1):
        end = self.info.frame_count if end_frame is None else min(end_frame, self.info.frame_count)
        for idx in range(start_frame, end, step):
            self.read_indices.append(idx)
            yield idx, self.render(idx)
