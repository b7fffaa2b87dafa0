"""
Threshold tables shared by land-cover classification, health scoring,
issue detection and the outlook generator.

Every numeric cut-off used by the analysis lives here so the classifier,
the scorer and the monitoring plan cannot drift apart.
"""
from types import MappingProxyType


class NDVIThresholds:
    """Vegetation tiers on mean or per-pixel NDVI."""

    EXCELLENT = 0.6
    GOOD = 0.4
    MODERATE = 0.2
    POOR = 0.1


class EVIThresholds:
    """Enhanced vegetation index tiers used by the health score."""

    EXCELLENT = 0.4
    GOOD = 0.2
    MODERATE = 0.1


class MoistureThresholds:
    """Moisture index tiers used by the health score."""

    HIGH = 0.3
    MEDIUM = 0.1
    LOW = 0.0


class LandCoverThresholds:
    """Per-pixel cut-offs for the non-vegetation land-cover classes."""

    URBAN_PIXEL = 0.1
    WATER_PIXEL = 0.3
    WET_SOIL_PIXEL = 0.2

    VEGETATION_DOMINANT = 50.0
    URBAN_DOMINANT = 30.0


class VariabilityThresholds:
    """Coefficient-of-variation buckets."""

    LOW = 0.2
    MEDIUM = 0.5


class FusionThresholds:
    """Classification fusion cut-offs and confidence adjustments."""

    URBAN_DENSE_NDVI = 0.2
    URBAN_DENSE_BONUS = 0.10
    URBAN_MIXED_BONUS = 0.05
    AGRICULTURAL_BONUS = 0.05
    MAX_CONFIDENCE = 0.95

    WATER_BODY_MEAN = 0.3
    WATER_BODY_CONFIDENCE = 0.9

    SPECTRAL_CROP_MIN_CONFIDENCE = 0.7
    AI_CROP_MIN_CONFIDENCE = 0.6


class IssueThresholds:
    """Cut-offs that raise an issue on the classification result."""

    VEGETATION_STRESS_NDVI = 0.2
    LOW_MOISTURE = 0.1
    HIGH_VARIABILITY_COV = 0.5
    POOR_HEALTH_SCORE = 50
    NEEDS_ATTENTION_SCORE = 70


class RiskThresholds:
    """Cut-offs for the advanced-metrics risk list."""

    PRODUCTIVITY_NDVI = 0.3
    DROUGHT_MOISTURE = 0.15
    UNIFORMITY_COV = 0.4


class StressThresholds:
    """Shortfall baselines for the stress index."""

    NDVI_BASELINE = 0.3
    MOISTURE_BASELINE = 0.2
    NDVI_WEIGHT = 0.7
    MOISTURE_WEIGHT = 0.3


class SustainabilityThresholds:
    """Sustainability score base, bonuses and penalties."""

    BASE = 70
    HIGH_COVERAGE = 80.0
    HIGH_COVERAGE_BONUS = 15
    GOOD_COVERAGE = 60.0
    GOOD_COVERAGE_BONUS = 10
    UNIFORM_COV = 0.3
    UNIFORM_BONUS = 10
    PROBLEM_PENALTY = 5


class HealthBands:
    """Health-score bands used by predictions and the monitoring plan."""

    WEEKLY_BELOW = 60
    BIWEEKLY_BELOW = 80
    EXCELLENT_ABOVE = 80
    GOOD_ABOVE = 60


# Points awarded by each health-score component, highest tier first.
# Each entry is (exclusive lower bound, points); the last entry is the floor.
HEALTH_SCORE_TABLE = MappingProxyType({
    "ndvi": ((NDVIThresholds.EXCELLENT, 40), (NDVIThresholds.GOOD, 30), (NDVIThresholds.MODERATE, 20), (None, 10)),
    "evi": ((EVIThresholds.EXCELLENT, 25), (EVIThresholds.GOOD, 18), (EVIThresholds.MODERATE, 12), (None, 5)),
    "moisture": ((MoistureThresholds.HIGH, 20), (MoistureThresholds.MEDIUM, 15), (MoistureThresholds.LOW, 10), (None, 5)),
})

AI_HEALTH_POINTS = MappingProxyType({
    "excelente": 15,
    "boa": 12,
    "regular": 8,
    "ruim": 4,
})
AI_HEALTH_DEFAULT_POINTS = 2

# Benchmark ("return point") targets per agricultural tier: (ndvi, evi, moisture)
RETURN_POINT_BENCHMARKS = MappingProxyType({
    "agricultural_excellent": (0.7, 0.5, 0.4),
    "agricultural_healthy": (0.5, 0.3, 0.3),
    "agricultural_moderate": (0.3, 0.2, 0.2),
})

MONITORING_THRESHOLDS = MappingProxyType({
    "ndvi_min": RiskThresholds.PRODUCTIVITY_NDVI,
    "moisture_min": StressThresholds.MOISTURE_BASELINE,
    "variability_max": IssueThresholds.HIGH_VARIABILITY_COV,
})
