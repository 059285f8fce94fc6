"""Video access for HoopScore.

Decoding is delegated to OpenCV; any container/codec it can read is
accepted. `FrameSampler` is what the analysis loop consumes.
"""

from collections.abc import Iterator
from pathlib import Path

import cv2
import numpy as np

from hoopscore.core.errors import VideoError
from hoopscore.core.models import Frame, VideoInfo

# Above this step, seeking beats decoding and discarding frames
SEEK_STEP_THRESHOLD = 16


def compute_frame_skip(fps: float, target_fps: float) -> int:
    """Number of source frames per analyzed frame."""
    if fps <= 0 or target_fps <= 0:
        return 1
    return max(1, round(fps / target_fps))


def _fourcc_to_str(fourcc: int) -> str:
    return "".join(chr((fourcc >> shift) & 0xFF) for shift in (0, 8, 16, 24))


class Video:
    """A recorded game on disk: metadata plus forward frame iteration."""

    def __init__(self, path: Path | str):
        self._capture: cv2.VideoCapture | None = None
        self._info: VideoInfo | None = None

        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Video file not found: {self.path}")

    def _open(self) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(str(self.path))
        if not capture.isOpened():
            capture.release()
            raise VideoError(
                f"Cannot open video: {self.path}",
                hint="Check that the file is a video OpenCV can decode",
            )
        return capture

    @property
    def info(self) -> VideoInfo:
        """Container metadata, probed on first access."""
        if self._info is None:
            probe = self._open()
            try:
                fps = probe.get(cv2.CAP_PROP_FPS)
                frame_count = int(probe.get(cv2.CAP_PROP_FRAME_COUNT))
                self._info = VideoInfo(
                    path=self.path,
                    duration=frame_count / fps if fps > 0 else 0.0,
                    fps=fps,
                    width=int(probe.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    height=int(probe.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                    frame_count=frame_count,
                    codec=_fourcc_to_str(int(probe.get(cv2.CAP_PROP_FOURCC))),
                )
            finally:
                probe.release()
        return self._info

    def iter_frames(
        self,
        start_frame: int = 0,
        end_frame: int | None = None,
        step: int = 1,
    ) -> Iterator[tuple[int, np.ndarray]]:
        """
        Yield (frame_idx, image) for every `step`-th frame in [start, end).

        Stops early at the first failed read. When the container reports no
        frame count and no end is given, reads until the decoder runs dry.
        """
        if self._capture is None:
            self._capture = self._open()
        capture = self._capture

        if end_frame is None and self.info.frame_count > 0:
            end_frame = self.info.frame_count

        def in_range(idx: int) -> bool:
            return end_frame is None or idx < end_frame

        if step > SEEK_STEP_THRESHOLD:
            idx = start_frame
            while in_range(idx):
                capture.set(cv2.CAP_PROP_POS_FRAMES, idx)
                ok, image = capture.read()
                if not ok:
                    return
                yield idx, image
                idx += step
            return

        if start_frame > 0:
            capture.set(cv2.CAP_PROP_POS_FRAMES, start_frame)
        idx = start_frame
        while in_range(idx):
            ok, image = capture.read()
            if not ok:
                return
            if (idx - start_frame) % step == 0:
                yield idx, image
            idx += 1

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()


class FrameSampler:
    """
    Turns a video into the sequence of frames handed to the analysis loop.

    Only every `frame_skip`-th source frame is yielded, but each yielded
    frame carries its true source index so the game clock keeps advancing
    across skipped frames.
    """

    def __init__(
        self,
        video: Video,
        target_fps: float,
        downscale_factor: float | None = None,
        limit_seconds: float | None = None,
    ):
        self.video = video
        self.fps = video.info.fps
        self.frame_skip = compute_frame_skip(self.fps, target_fps)
        self.downscale_factor = downscale_factor
        self.end_frame: int | None = None
        if limit_seconds is not None and self.fps > 0:
            end = int(limit_seconds * self.fps)
            if video.info.frame_count > 0:
                end = min(end, video.info.frame_count)
            self.end_frame = end

    @property
    def expected_samples(self) -> int:
        """Approximate number of frames the sampler will yield."""
        total = self.end_frame if self.end_frame is not None else self.video.info.frame_count
        if total <= 0:
            return 0
        return (total + self.frame_skip - 1) // self.frame_skip

    def game_time(self, frame_idx: int) -> float:
        return frame_idx / self.fps if self.fps > 0 else 0.0

    def _downscale(self, image: np.ndarray) -> np.ndarray:
        if not self.downscale_factor or self.downscale_factor >= 1.0:
            return image
        h, w = image.shape[:2]
        size = (max(1, int(w * self.downscale_factor)), max(1, int(h * self.downscale_factor)))
        return cv2.resize(image, size, interpolation=cv2.INTER_AREA)

    def __iter__(self) -> Iterator[Frame]:
        for frame_idx, image in self.video.iter_frames(end_frame=self.end_frame, step=self.frame_skip):
            yield Frame(
                index=frame_idx,
                game_time=self.game_time(frame_idx),
                image=self._downscale(image),
                original=image,
            )
