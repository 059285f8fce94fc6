"""Cheap ball-near-basket detection.

Color thresholding plus contour shape filtering inside the two basket
regions. High recall, low precision: false positives are expected and are
filtered later by team attribution and the ledger guards.
"""

import math

import cv2
import numpy as np

from hoopscore.core.config import BallDetectionConfig
from hoopscore.core.models import CourtRegions, ProximityResult


def circularity(area: float, perimeter: float) -> float:
    """4*pi*area / perimeter^2 (1.0 for a perfect circle)."""
    if perimeter <= 0:
        return 0.0
    return 4 * math.pi * area / (perimeter * perimeter)


class BallProximityDetector:
    """Answers "is something shaped like the game ball near a basket"."""

    def __init__(self, config: BallDetectionConfig | None = None):
        self.config = config or BallDetectionConfig()
        self._lower = np.array(self.config.hsv_lower, dtype=np.uint8)
        self._upper = np.array(self.config.hsv_upper, dtype=np.uint8)
        self._kernel = cv2.getStructuringElement(
            cv2.MORPH_ELLIPSE, (self.config.opening_kernel, self.config.opening_kernel)
        )

    def passes_shape_filter(
        self, area: float, perimeter: float, width: int, height: int
    ) -> bool:
        """Check area, circularity and bounding-box aspect of a candidate."""
        cfg = self.config
        if area < cfg.min_area or area > cfg.max_area:
            return False
        if circularity(area, perimeter) < cfg.min_circularity:
            return False
        if width <= 0 or height <= 0:
            return False
        aspect = width / height
        return cfg.min_aspect_ratio <= aspect <= cfg.max_aspect_ratio

    def is_ball_contour(self, contour: np.ndarray) -> bool:
        area = cv2.contourArea(contour)
        perimeter = cv2.arcLength(contour, True)
        _, _, w, h = cv2.boundingRect(contour)
        return self.passes_shape_filter(area, perimeter, w, h)

    def ball_mask(self, image: np.ndarray) -> np.ndarray:
        """Binary mask of ball-colored pixels after speckle removal."""
        hsv = cv2.cvtColor(image, cv2.COLOR_BGR2HSV)
        mask = cv2.inRange(hsv, self._lower, self._upper)
        return cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._kernel)

    def ball_present(self, roi: np.ndarray) -> bool:
        """Check a region image for at least one ball-shaped blob."""
        if roi.size == 0:
            return False
        mask = self.ball_mask(roi)
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return any(self.is_ball_contour(c) for c in contours)

    def detect(self, image: np.ndarray, regions: CourtRegions) -> ProximityResult:
        """Evaluate both basket regions of a processing-resolution frame."""
        return ProximityResult(
            ball_in_top=self.ball_present(regions.top_basket.crop(image)),
            ball_in_bottom=self.ball_present(regions.bottom_basket.crop(image)),
        )
