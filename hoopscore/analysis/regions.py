"""Fixed region-of-interest calibration."""

import logging

from hoopscore.core.config import RegionConfig
from hoopscore.core.models import CourtRegions, Region, RegionLabel

logger = logging.getLogger(__name__)


def _scaled(
    label: RegionLabel,
    fractions: tuple[float, float, float, float],
    width: int,
    height: int,
) -> Region:
    fx, fy, fw, fh = fractions
    return Region(
        label=label,
        x=int(width * fx),
        y=int(height * fy),
        width=max(1, int(width * fw)),
        height=max(1, int(height * fh)),
    )


class RegionCalibrator:
    """
    Computes the basket, court and team-side regions once per video.

    Regions are fixed fractions of the frame size; nothing is derived from
    frame content. The first call to `calibrate` wins and later calls
    return the stored regions unchanged.
    """

    def __init__(self, config: RegionConfig | None = None):
        self.config = config or RegionConfig()
        self._regions: CourtRegions | None = None

    @property
    def regions(self) -> CourtRegions | None:
        return self._regions

    @property
    def is_calibrated(self) -> bool:
        return self._regions is not None

    def calibrate(self, width: int, height: int) -> CourtRegions:
        """Compute regions for a frame size (only the first call has effect)."""
        if self._regions is not None:
            return self._regions

        cfg = self.config
        self._regions = CourtRegions(
            top_basket=_scaled(RegionLabel.TOP_BASKET, cfg.top_basket, width, height),
            bottom_basket=_scaled(RegionLabel.BOTTOM_BASKET, cfg.bottom_basket, width, height),
            court=_scaled(RegionLabel.COURT, cfg.court, width, height),
            team_a_area=_scaled(RegionLabel.TEAM_A_AREA, cfg.team_a_area, width, height),
            team_b_area=_scaled(RegionLabel.TEAM_B_AREA, cfg.team_b_area, width, height),
        )
        logger.info(f"Court regions calibrated for {width}x{height}")
        return self._regions
