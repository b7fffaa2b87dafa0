"""
Domain service: land-cover breakdown from per-pixel index samples.

NDVI samples are split into five non-overlapping vigor tiers; urban, water
and wet-soil pixels are counted independently on their own indices. Every
count is expressed as a percentage of the NDVI sample count, so the
non-vegetation classes may overlap and the total is not forced to 100.
"""
import logging

import numpy as np

from agrosat.domain.models import BandSample, LandCoverBreakdown, VegetationCover
from agrosat.domain.thresholds import LandCoverThresholds, NDVIThresholds
from agrosat.services.domain.statistics import EmptySampleError

logger = logging.getLogger(__name__)


def classify_land_cover(
    ndvi: BandSample,
    urban: BandSample,
    water: BandSample,
    moisture: BandSample,
) -> LandCoverBreakdown:
    """
    Convert index threshold crossings into percentage land cover.

    Args:
        ndvi: NDVI sample (its size is the common denominator)
        urban: Urban index sample
        water: Water index sample
        moisture: Moisture index sample

    Returns:
        LandCoverBreakdown with percentages in [0, 100]

    Raises:
        EmptySampleError: If the NDVI sample is empty
    """
    total = len(ndvi)
    if total == 0:
        raise EmptySampleError("Land cover needs at least one NDVI sample")

    values = ndvi.values
    excellent = np.count_nonzero(values > NDVIThresholds.EXCELLENT)
    good = np.count_nonzero((values > NDVIThresholds.GOOD) & (values <= NDVIThresholds.EXCELLENT))
    moderate = np.count_nonzero((values > NDVIThresholds.MODERATE) & (values <= NDVIThresholds.GOOD))
    poor = np.count_nonzero((values > NDVIThresholds.POOR) & (values <= NDVIThresholds.MODERATE))
    bare = np.count_nonzero(values <= NDVIThresholds.POOR)

    urban_pixels = np.count_nonzero(urban.values > LandCoverThresholds.URBAN_PIXEL)
    water_pixels = np.count_nonzero(water.values > LandCoverThresholds.WATER_PIXEL)
    wet_soil_pixels = np.count_nonzero(moisture.values > LandCoverThresholds.WET_SOIL_PIXEL)

    def pct(count) -> float:
        return float(count) / total * 100

    breakdown = LandCoverBreakdown(
        vegetation=VegetationCover(
            total=pct(excellent + good + moderate + poor),
            excellent=pct(excellent),
            good=pct(good),
            moderate=pct(moderate),
            poor=pct(poor),
        ),
        urban=pct(urban_pixels),
        water=pct(water_pixels),
        wet_soil=pct(wet_soil_pixels),
        bare_soil=pct(bare),
    )

    logger.debug(f"Land cover: vegetation={breakdown.vegetation.total:.1f}%, "
                 f"urban={breakdown.urban:.1f}%, water={breakdown.water:.1f}%, "
                 f"wet_soil={breakdown.wet_soil:.1f}%, bare_soil={breakdown.bare_soil:.1f}%")

    return breakdown


def dominant_land_use(breakdown: LandCoverBreakdown) -> str:
    """Coarse dominant use: vegetation, urban or mixed."""
    if breakdown.vegetation.total > LandCoverThresholds.VEGETATION_DOMINANT:
        return "vegetation"
    if breakdown.urban > LandCoverThresholds.URBAN_DOMINANT:
        return "urban"
    return "mixed"
