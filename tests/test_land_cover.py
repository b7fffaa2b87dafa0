"""
Unit tests for the land-cover classifier.
"""
import numpy as np
import pytest

from agrosat.domain.models import BandSample, SpectralIndexName
from agrosat.services.domain.land_cover import classify_land_cover, dominant_land_use
from agrosat.services.domain.statistics import EmptySampleError


def _sample(index, values):
    return BandSample(index, np.asarray(values, dtype=float))


@pytest.fixture
def ten_pixel_patch():
    """Two pixels in each NDVI tier, with mixed urban, water and moisture."""
    return dict(
        ndvi=_sample(SpectralIndexName.NDVI, [0.7, 0.8, 0.5, 0.45, 0.3, 0.25, 0.15, 0.12, 0.05, -0.2]),
        urban=_sample(SpectralIndexName.URBAN, [0.2, 0.3, 0.0, 0.0]),
        water=_sample(SpectralIndexName.WATER, [0.5, 0.0, 0.0, 0.0, 0.0]),
        moisture=_sample(SpectralIndexName.MOISTURE, [0.3, 0.25, 0.21, 0.0, 0.0]),
    )


# ============================================================
# Breakdown Tests
# ============================================================

class TestClassifyLandCover:
    """Tests for percentage land-cover breakdown."""

    def test_vegetation_tiers(self, ten_pixel_patch):
        """NDVI tiers are non-overlapping and use strict thresholds."""
        breakdown = classify_land_cover(**ten_pixel_patch)

        assert breakdown.vegetation.excellent == pytest.approx(20.0)
        assert breakdown.vegetation.good == pytest.approx(20.0)
        assert breakdown.vegetation.moderate == pytest.approx(20.0)
        assert breakdown.vegetation.poor == pytest.approx(20.0)
        assert breakdown.vegetation.total == pytest.approx(80.0)
        assert breakdown.bare_soil == pytest.approx(20.0)

    def test_other_classes_use_ndvi_denominator(self, ten_pixel_patch):
        """Urban, water and wet soil are counted against the NDVI sample size."""
        breakdown = classify_land_cover(**ten_pixel_patch)

        assert breakdown.urban == pytest.approx(20.0)
        assert breakdown.water == pytest.approx(10.0)
        assert breakdown.wet_soil == pytest.approx(30.0)

    def test_tier_boundaries_are_exclusive(self):
        """A value equal to a threshold falls in the lower tier."""
        ndvi = _sample(SpectralIndexName.NDVI, [0.6, 0.4, 0.2, 0.1])
        empty = _sample(SpectralIndexName.URBAN, [])

        breakdown = classify_land_cover(ndvi, empty, empty, empty)

        assert breakdown.vegetation.excellent == 0.0
        assert breakdown.vegetation.good == pytest.approx(25.0)
        assert breakdown.vegetation.moderate == pytest.approx(25.0)
        assert breakdown.vegetation.poor == pytest.approx(25.0)
        assert breakdown.bare_soil == pytest.approx(25.0)

    def test_percentages_within_bounds(self):
        """Every percentage stays in [0, 100]."""
        rng = np.random.default_rng(3)
        ndvi = _sample(SpectralIndexName.NDVI, rng.uniform(-1, 1, 500))
        urban = _sample(SpectralIndexName.URBAN, rng.uniform(-0.5, 0.5, 900))

        breakdown = classify_land_cover(ndvi, urban, urban, urban)

        for value in (breakdown.urban, breakdown.water, breakdown.wet_soil, breakdown.bare_soil,
                      breakdown.vegetation.total):
            assert 0.0 <= value <= 100.0

    def test_ndvi_tiers_sum_to_100(self):
        """Vegetation tiers plus bare soil cover every NDVI pixel."""
        rng = np.random.default_rng(7)
        none = _sample(SpectralIndexName.WATER, [])

        for _ in range(200):
            size = int(rng.integers(1, 1500))
            ndvi = _sample(SpectralIndexName.NDVI, rng.uniform(-1, 1, size))

            breakdown = classify_land_cover(ndvi, none, none, none)
            vegetation = breakdown.vegetation

            total = vegetation.excellent + vegetation.good + vegetation.moderate + vegetation.poor + breakdown.bare_soil
            assert total == pytest.approx(100.0)

    def test_empty_ndvi_raises(self):
        """Land cover needs an NDVI denominator."""
        empty = _sample(SpectralIndexName.NDVI, [])

        with pytest.raises(EmptySampleError):
            classify_land_cover(empty, empty, empty, empty)


# ============================================================
# Dominant Use Tests
# ============================================================

class TestDominantLandUse:
    """Tests for the coarse dominant land use."""

    def test_vegetation_dominant(self, ten_pixel_patch):
        assert dominant_land_use(classify_land_cover(**ten_pixel_patch)) == "vegetation"

    def test_urban_dominant(self):
        ndvi = _sample(SpectralIndexName.NDVI, [0.05] * 10)
        urban = _sample(SpectralIndexName.URBAN, [0.3] * 4)
        none = _sample(SpectralIndexName.WATER, [])

        assert dominant_land_use(classify_land_cover(ndvi, urban, none, none)) == "urban"

    def test_mixed(self):
        ndvi = _sample(SpectralIndexName.NDVI, [0.05] * 10)
        none = _sample(SpectralIndexName.WATER, [])

        assert dominant_land_use(classify_land_cover(ndvi, none, none, none)) == "mixed"
