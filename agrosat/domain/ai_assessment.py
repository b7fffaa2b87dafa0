"""
Vision-AI assessment record.

The external vision model answers with loosely structured JSON. That answer
is converted into an ``AIAssessment`` exactly once, at the collaborator
boundary, so the analysis core never has to special-case missing fields.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class AIAreaType(str, Enum):
    """Area type reported by the vision model."""
    URBAN = "urban"
    AGRICULTURAL = "agricultural"
    UNKNOWN = "unknown"


class HealthLabel(str, Enum):
    """Overall vegetation health as judged by the vision model."""
    EXCELLENT = "excelente"
    GOOD = "boa"
    REGULAR = "regular"
    POOR = "ruim"
    CRITICAL = "crítica"
    UNKNOWN = "desconhecida"


_HEALTH_ALIASES = {
    "excellent": HealthLabel.EXCELLENT,
    "good": HealthLabel.GOOD,
    "fair": HealthLabel.REGULAR,
    "poor": HealthLabel.POOR,
    "bad": HealthLabel.POOR,
    "critical": HealthLabel.CRITICAL,
    "critica": HealthLabel.CRITICAL,
}


def normalize_health_label(value) -> HealthLabel:
    """Map a free-text health label (Portuguese or English) onto ``HealthLabel``."""
    if isinstance(value, HealthLabel):
        return value
    if not isinstance(value, str):
        return HealthLabel.UNKNOWN

    text = value.strip().lower()
    try:
        return HealthLabel(text)
    except ValueError:
        return _HEALTH_ALIASES.get(text, HealthLabel.UNKNOWN)


class CropGuess(BaseModel):
    """Crop identification proposed by the vision model."""
    primary_crop: str = "unknown"
    secondary_crop: Optional[str] = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    growth_stage: str = "unknown"
    reasoning: str = ""

    class Config:
        frozen = True

    @property
    def is_unknown(self) -> bool:
        return not self.primary_crop or self.primary_crop.strip().lower() == "unknown"


class HealthAssessment(BaseModel):
    """Qualitative vegetation health observed in the true-color image."""
    overall_health: HealthLabel = HealthLabel.REGULAR
    vegetation_density: str = "média"
    color_pattern: str = "verde normal"
    uniformity: str = "irregular"

    class Config:
        frozen = True

    @field_validator("overall_health", mode="before")
    @classmethod
    def _normalize_health(cls, value):
        return normalize_health_label(value)


class ObservedPatterns(BaseModel):
    """Field patterns the vision model noticed."""
    field_shape: Optional[str] = None
    planting_pattern: Optional[str] = None
    irrigation_signs: Optional[bool] = None
    machinery_marks: Optional[bool] = None

    class Config:
        frozen = True


class AIAssessment(BaseModel):
    """
    Immutable visual assessment of one patch.

    ``schema_version`` 1 carries only the area type, confidence, problems and
    recommendations; version 2 adds the crop guess, health assessment and
    observed patterns. Fields a version does not provide keep their neutral
    defaults.
    """
    schema_version: int = Field(default=2, ge=1, le=2)
    area_type: AIAreaType = AIAreaType.AGRICULTURAL
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    crop: CropGuess = Field(default_factory=CropGuess)
    health: HealthAssessment = Field(default_factory=HealthAssessment)
    problems_detected: List[str] = Field(default_factory=list)
    patterns: ObservedPatterns = Field(default_factory=ObservedPatterns)
    recommendations: List[str] = Field(default_factory=list)
    reasoning: str = ""
    details: str = ""

    class Config:
        frozen = True

    @property
    def is_urban(self) -> bool:
        return self.area_type == AIAreaType.URBAN

    @property
    def is_agricultural(self) -> bool:
        return self.area_type == AIAreaType.AGRICULTURAL

    @classmethod
    def neutral(cls) -> "AIAssessment":
        """Assessment used when the vision model is unavailable."""
        return cls(
            area_type=AIAreaType.AGRICULTURAL,
            confidence=0.7,
            crop=CropGuess(reasoning="Análise de IA não disponível"),
            recommendations=["Consultar técnico agrícola"],
            reasoning="Análise de IA não disponível",
            details="Sistema funcionando em modo fallback",
        )
