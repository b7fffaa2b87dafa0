"""
Domain service: per-index statistics, variability and data-quality metrics.
"""
import logging
from typing import Optional, Sequence, Union

import numpy as np

from agrosat.config import settings
from agrosat.domain.models import (
    BandSample,
    IndexStatistics,
    SpectralIndexName,
    VariabilityMetric,
)
from agrosat.domain.thresholds import VariabilityThresholds

logger = logging.getLogger(__name__)

SampleValues = Union[np.ndarray, Sequence[float]]

SPATIAL_CONSISTENCY_CHUNKS = 10
MIN_QUALITY_SAMPLES = 100


class EmptySampleError(ValueError):
    """Raised when a statistic is requested over zero samples."""
    pass


def _as_array(values: SampleValues) -> np.ndarray:
    array = np.asarray(values, dtype=np.float64)
    if array.size == 0:
        raise EmptySampleError("Cannot compute statistics over an empty sample")
    return array


def _bounded_mean(array: np.ndarray, vmin: float, vmax: float) -> float:
    # Summation rounding can push the mean of a near-constant sample past its extremes
    return min(max(float(array.mean()), vmin), vmax)


def compute_statistics(sample: BandSample) -> IndexStatistics:
    """
    Compute mean, population standard deviation, min, max and count.

    Args:
        sample: Decoded band sample

    Returns:
        IndexStatistics carrying the sample's fallback flag

    Raises:
        EmptySampleError: If the sample holds no values
    """
    values = _as_array(sample.values)
    vmin, vmax = float(values.min()), float(values.max())

    return IndexStatistics(
        index=sample.index,
        mean=_bounded_mean(values, vmin, vmax),
        std=float(values.std()),
        min=vmin,
        max=vmax,
        count=int(values.size),
        is_fallback=sample.is_fallback,
    )


def interpret_coefficient(coefficient: Optional[float]) -> str:
    """Bucket a coefficient of variation into baixa / média / alta."""
    if coefficient is None:
        return "indeterminada"
    if coefficient < VariabilityThresholds.LOW:
        return "baixa"
    if coefficient < VariabilityThresholds.MEDIUM:
        return "média"
    return "alta"


def compute_variability(
    values: SampleValues,
    epsilon: Optional[float] = None,
) -> VariabilityMetric:
    """
    Compute dispersion and the coefficient of variation (std / |mean|).

    When |mean| is below ``epsilon`` the coefficient is reported as None
    with the interpretation "indeterminada" instead of dividing by ~0.

    Raises:
        EmptySampleError: If ``values`` is empty
    """
    epsilon = settings.variability_epsilon if epsilon is None else epsilon
    array = _as_array(values)

    mean = _bounded_mean(array, float(array.min()), float(array.max()))
    variance = float(array.var())
    std = float(np.sqrt(variance))

    if abs(mean) < epsilon:
        logger.debug(f"Mean {mean:.2e} below epsilon {epsilon:.0e}, variability indeterminate")
        coefficient = None
    else:
        coefficient = std / abs(mean)

    return VariabilityMetric(
        mean=mean,
        std=std,
        variance=variance,
        coefficient=coefficient,
        interpretation=interpret_coefficient(coefficient),
    )


def data_quality(samples: Sequence[BandSample]) -> float:
    """Percentage of samples that are measured (not synthetic) and reasonably sized."""
    if not samples:
        return 0.0
    usable = [s for s in samples if not s.is_fallback and len(s) > MIN_QUALITY_SAMPLES]
    return len(usable) / len(samples) * 100


def spatial_consistency(values: SampleValues) -> float:
    """
    Score (0-100) how stable the mean is across consecutive chunks of a sample.

    The sample is cut into ``SPATIAL_CONSISTENCY_CHUNKS`` consecutive chunks;
    the score is ``max(0, 1 - variance of chunk means) * 100``.
    """
    array = _as_array(values)
    chunk_size = max(1, array.size // SPATIAL_CONSISTENCY_CHUNKS)

    chunk_means = np.array([
        array[start:start + chunk_size].mean()
        for start in range(0, array.size, chunk_size)
    ])
    variance = float(chunk_means.var())

    return max(0.0, 1.0 - variance) * 100


def statistics_by_index(samples: dict[SpectralIndexName, BandSample]) -> dict[SpectralIndexName, IndexStatistics]:
    """Compute statistics for every decoded band."""
    return {index: compute_statistics(sample) for index, sample in samples.items()}
