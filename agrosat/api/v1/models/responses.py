"""
API response models using Pydantic.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from agrosat.api.v1.models.requests import Location
from agrosat.domain.models import (
    ClassificationResult,
    MonitoringPlan,
    Predictions,
    SpectralAnalysis,
)


class AnalysisResponse(BaseModel):
    """Response model for the field analysis endpoint."""
    analysis_id: str = Field(
        description="Unique identifier for the analysis"
    )
    location: Location
    spectral_analysis: SpectralAnalysis
    area_classification: ClassificationResult
    predictions: Optional[Predictions] = Field(
        default=None,
        description="Only present for agricultural areas",
    )
    monitoring_plan: Optional[MonitoringPlan] = Field(
        default=None,
        description="Only present for agricultural areas",
    )
    timestamp: datetime
