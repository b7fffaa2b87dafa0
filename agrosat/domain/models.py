"""
Domain models for spectral analysis and area classification.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, imagery services, etc.).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Literal, Optional

import numpy as np
from pydantic import BaseModel, Field

from agrosat.domain.ai_assessment import AIAssessment


Severity = Literal["low", "medium", "high"]


class SpectralIndexName(str, Enum):
    """Spectral indices delivered by the imagery service."""
    NDVI = "NDVI"
    EVI = "EVI"
    SAVI = "SAVI"
    URBAN = "URBAN"
    WATER = "WATER"
    MOISTURE = "MOISTURE"

    @property
    def valid_range(self) -> tuple[float, float]:
        """Closed interval of physically meaningful values for this index."""
        if self is SpectralIndexName.URBAN:
            return (-0.5, 0.5)
        return (-1.0, 1.0)


class AreaType(str, Enum):
    """Final area classification labels."""
    URBAN_DENSE = "urban_dense"
    URBAN_MIXED = "urban_mixed"
    AGRICULTURAL_EXCELLENT = "agricultural_excellent"
    AGRICULTURAL_HEALTHY = "agricultural_healthy"
    AGRICULTURAL_MODERATE = "agricultural_moderate"
    AGRICULTURAL_POOR = "agricultural_poor"
    WATER_BODY = "water_body"
    MIXED_AREA = "mixed_area"

    @property
    def description(self) -> str:
        return _AREA_DESCRIPTIONS[self]


_AREA_DESCRIPTIONS = {
    AreaType.URBAN_DENSE: "CIDADE DENSA - Área urbana com muitas construções",
    AreaType.URBAN_MIXED: "CIDADE MISTA - Área urbana com algumas áreas verdes",
    AreaType.AGRICULTURAL_EXCELLENT: "FAZENDA EXCELENTE - Vegetação muito saudável",
    AreaType.AGRICULTURAL_HEALTHY: "FAZENDA SAUDÁVEL - Boa vegetação",
    AreaType.AGRICULTURAL_MODERATE: "FAZENDA MODERADA - Vegetação regular",
    AreaType.AGRICULTURAL_POOR: "FAZENDA PROBLEMÁTICA - Vegetação com problemas",
    AreaType.WATER_BODY: "CORPO D'ÁGUA - Rio, lago ou represa",
    AreaType.MIXED_AREA: "ÁREA MISTA - Combinação de usos",
}


@dataclass(frozen=True, eq=False)
class BandSample:
    """Valid samples decoded for one spectral index."""
    index: SpectralIndexName
    values: np.ndarray
    is_fallback: bool = False

    def __post_init__(self):
        values = np.asarray(self.values, dtype=np.float64)
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return int(self.values.size)


# ============================================================
# Spectral statistics
# ============================================================

class IndexStatistics(BaseModel):
    """Summary statistics over the valid samples of one index."""
    index: SpectralIndexName
    mean: float
    std: float = Field(description="Population standard deviation")
    min: float
    max: float
    count: int = Field(description="Number of valid samples")
    is_fallback: bool = Field(
        default=False,
        description="True when the statistics describe synthetic fallback data"
    )

    class Config:
        frozen = True


class VariabilityMetric(BaseModel):
    """Dispersion of a sample with a three-bucket interpretation."""
    mean: float
    std: float
    variance: float
    coefficient: Optional[float] = Field(
        description="std / |mean|; None when the mean is too close to zero"
    )
    interpretation: Literal["baixa", "média", "alta", "indeterminada"]

    class Config:
        frozen = True

    @property
    def is_determinate(self) -> bool:
        return self.coefficient is not None


class IndexVariability(BaseModel):
    ndvi: VariabilityMetric
    moisture: VariabilityMetric

    class Config:
        frozen = True


class VegetationCover(BaseModel):
    """Vegetation percentages split by NDVI tier."""
    total: float
    excellent: float
    good: float
    moderate: float
    poor: float

    class Config:
        frozen = True


class LandCoverBreakdown(BaseModel):
    """Percentage of the patch attributed to each land-cover class."""
    vegetation: VegetationCover
    urban: float
    water: float
    wet_soil: float
    bare_soil: float

    class Config:
        frozen = True


class QualityMetrics(BaseModel):
    data_quality: float = Field(description="Percentage of vegetation indices backed by real data")
    spatial_consistency: float

    class Config:
        frozen = True


class SpectralAnalysis(BaseModel):
    """Per-index statistics plus the land-cover and variability derived from them."""
    ndvi: IndexStatistics
    evi: IndexStatistics
    savi: IndexStatistics
    urban: IndexStatistics
    water: IndexStatistics
    moisture: IndexStatistics
    land_cover: LandCoverBreakdown
    variability: IndexVariability
    dominant_land_use: Literal["vegetation", "urban", "mixed"]
    quality_metrics: QualityMetrics
    fallback_indices: List[SpectralIndexName] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def has_fallback_data(self) -> bool:
        return bool(self.fallback_indices)


# ============================================================
# Classification result
# ============================================================

class Issue(BaseModel):
    """An actionable problem found in the patch."""
    type: str
    severity: Severity
    description: str
    recommendation: str

    class Config:
        frozen = True


class RiskFactor(BaseModel):
    type: str
    level: Severity
    description: str

    class Config:
        frozen = True


class AdvancedMetrics(BaseModel):
    productivity_index: float = Field(description="0-100 blend of rescaled NDVI and EVI")
    stress_index: float = Field(description="0-100 blend of NDVI and moisture shortfalls")
    uniformity_index: Optional[float] = Field(description="1 - NDVI coefficient of variation")
    sustainability_score: float
    risk_assessment: List[RiskFactor]

    class Config:
        frozen = True


class BenchmarkMetrics(BaseModel):
    ndvi: float
    evi: float
    moisture: float

    class Config:
        frozen = True


class ReturnPoints(BaseModel):
    """Distance between the current indices and the target of the area's tier."""
    current: BenchmarkMetrics
    target: BenchmarkMetrics
    gaps: BenchmarkMetrics
    recommendations: List[str]

    class Config:
        frozen = True


class CropIdentification(BaseModel):
    """Crop fused from the vision guess and the spectral signature match."""
    crop_type: str
    confidence: float
    source: Literal["ai", "spectral"]
    alternatives: List[str] = Field(default_factory=list)
    spectral_candidate: Optional[str] = None
    spectral_confidence: float = 0.0

    class Config:
        frozen = True


class ClassificationResult(BaseModel):
    """Fused classification of a patch. A new instance is built per analysis."""
    classification: AreaType
    confidence: float = Field(ge=0.0, le=1.0)
    description: str
    is_agricultural: bool
    is_urban: bool
    needs_attention: bool
    health_score: float = Field(ge=0.0, le=100.0)
    issues: List[Issue]
    crop_type: str
    crop_confidence: float
    crop_identification: CropIdentification
    growth_stage: str
    urbanization_level: float
    vegetation_health: float
    moisture_level: float
    variability_index: Optional[float]
    advanced_metrics: AdvancedMetrics
    return_points: Optional[ReturnPoints]
    spectral_metrics: Dict[str, float]
    ai_assessment: AIAssessment

    class Config:
        frozen = True


# ============================================================
# Outlook
# ============================================================

class YieldFactors(BaseModel):
    vegetation: float
    health: float
    issues: int


class ExpectedYield(BaseModel):
    percentage: int
    confidence: float
    factors: YieldFactors


class Predictions(BaseModel):
    predictions: List[str]
    recommendations: List[str]
    next_analysis_date: str
    priority: Severity
    expected_yield: ExpectedYield
    risk_factors: List[RiskFactor]


class NotificationSettings(BaseModel):
    email: bool
    sms: bool
    dashboard: bool


class ReportSchedule(BaseModel):
    weekly: bool
    biweekly: bool
    monthly: bool


class MonitoringPlan(BaseModel):
    frequency: Literal["semanal", "quinzenal", "mensal"]
    parameters: List[str]
    alerts: List[str]
    actions: List[str]
    thresholds: Dict[str, float]
    notifications: NotificationSettings
    report_schedule: ReportSchedule


class Outlook(BaseModel):
    """Predictions and monitoring guidance; both absent for non-agricultural areas."""
    predictions: Optional[Predictions] = None
    monitoring_plan: Optional[MonitoringPlan] = None
