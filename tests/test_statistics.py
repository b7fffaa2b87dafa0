"""
Unit tests for statistics and variability.
"""
import numpy as np
import pytest

from agrosat.domain.models import BandSample, SpectralIndexName
from agrosat.services.domain.band_decoder import generate_fallback_sample
from agrosat.services.domain.statistics import (
    EmptySampleError,
    compute_statistics,
    compute_variability,
    data_quality,
    interpret_coefficient,
    spatial_consistency,
)


# ============================================================
# Index Statistics Tests
# ============================================================

class TestComputeStatistics:
    """Tests for per-index summary statistics."""

    def test_population_statistics(self):
        """Mean, population std, min, max and count are reported."""
        sample = BandSample(SpectralIndexName.NDVI, np.array([0.2, 0.4, 0.6, 0.8]))

        stats = compute_statistics(sample)

        assert stats.mean == pytest.approx(0.5)
        assert stats.std == pytest.approx(np.sqrt(0.05))
        assert stats.min == pytest.approx(0.2)
        assert stats.max == pytest.approx(0.8)
        assert stats.count == 4
        assert stats.is_fallback is False

    def test_fallback_flag_carried(self):
        """Statistics over a synthetic sample say so."""
        stats = compute_statistics(generate_fallback_sample(SpectralIndexName.WATER, size=10))

        assert stats.is_fallback is True

    def test_empty_sample_raises(self):
        """Empty input is an error, not NaN."""
        with pytest.raises(EmptySampleError):
            compute_statistics(BandSample(SpectralIndexName.EVI, np.array([])))

    @pytest.mark.parametrize("size", [1, 3, 7, 10, 1000, 12345])
    @pytest.mark.parametrize("value", [-0.7, 0.1, 0.3, 0.55, 0.9])
    def test_constant_sample_mean_within_range(self, size, value):
        """Rounding never pushes the mean of a constant raster past min or max."""
        stats = compute_statistics(BandSample(SpectralIndexName.NDVI, np.full(size, value)))

        assert stats.min <= stats.mean <= stats.max
        assert compute_variability(np.full(size, value)).mean == stats.mean

    def test_random_samples_mean_within_range(self):
        """min <= mean <= max holds for arbitrary samples."""
        rng = np.random.default_rng(11)

        for _ in range(200):
            size = int(rng.integers(1, 2000))
            values = rng.uniform(-1, 1, size) if rng.random() < 0.5 else np.full(size, rng.uniform(-1, 1))

            stats = compute_statistics(BandSample(SpectralIndexName.EVI, values))

            assert stats.min <= stats.mean <= stats.max

    def test_samples_compare_by_identity(self):
        """Samples holding arrays can be compared and hashed."""
        first = BandSample(SpectralIndexName.NDVI, np.array([0.1, 0.2]))
        second = BandSample(SpectralIndexName.NDVI, np.array([0.1, 0.2]))

        assert first == first
        assert first != second
        assert len({first, second}) == 2


# ============================================================
# Variability Tests
# ============================================================

class TestVariability:
    """Tests for coefficient of variation and its interpretation."""

    @pytest.mark.parametrize("coefficient,expected", [
        (0.0, "baixa"),
        (0.19, "baixa"),
        (0.2, "média"),
        (0.49, "média"),
        (0.5, "alta"),
        (0.55, "alta"),
        (None, "indeterminada"),
    ])
    def test_interpretation_buckets(self, coefficient, expected):
        """Buckets are <0.2 baixa, <0.5 média, else alta."""
        assert interpret_coefficient(coefficient) == expected

    def test_coefficient_is_std_over_abs_mean(self):
        """Negative means use their absolute value."""
        metric = compute_variability([-0.4, -0.1])

        assert metric.mean == pytest.approx(-0.25)
        assert metric.coefficient == pytest.approx(0.6)
        assert metric.interpretation == "alta"

    def test_high_variability(self):
        """A 0.55 coefficient is classed as alta."""
        metric = compute_variability([0.775, 0.225])

        assert metric.coefficient == pytest.approx(0.55)
        assert metric.interpretation == "alta"

    def test_near_zero_mean_is_indeterminate(self):
        """No division by a mean below epsilon."""
        metric = compute_variability([-0.1, 0.1])

        assert metric.coefficient is None
        assert metric.interpretation == "indeterminada"
        assert metric.is_determinate is False

    def test_epsilon_override(self):
        """A larger epsilon widens the indeterminate band."""
        metric = compute_variability([0.01, 0.01], epsilon=0.05)

        assert metric.coefficient is None

    def test_empty_values_raise(self):
        """Empty input is an error."""
        with pytest.raises(EmptySampleError):
            compute_variability([])


# ============================================================
# Quality Metrics Tests
# ============================================================

class TestQualityMetrics:
    """Tests for data quality and spatial consistency."""

    def test_data_quality_counts_measured_samples(self):
        """Synthetic or tiny samples do not count as quality data."""
        measured = BandSample(SpectralIndexName.NDVI, np.full(200, 0.5))
        tiny = BandSample(SpectralIndexName.EVI, np.full(10, 0.5))
        synthetic = generate_fallback_sample(SpectralIndexName.SAVI, size=200)

        assert data_quality([measured, tiny, synthetic]) == pytest.approx(100 / 3)
        assert data_quality([]) == 0.0

    def test_constant_sample_fully_consistent(self):
        """Identical chunk means score 100."""
        assert spatial_consistency(np.full(100, 0.4)) == pytest.approx(100.0)

    def test_consistency_drops_with_chunk_drift(self):
        """Large shifts between chunks lower the score, never below 0."""
        drifting = np.repeat([-1.0, 1.0], 50)

        score = spatial_consistency(drifting)

        assert 0.0 <= score < 100.0
