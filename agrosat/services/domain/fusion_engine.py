"""
Domain service: fuse the vision-AI assessment with spectral evidence.

The engine produces the final area classification, a 0-100 health score,
the list of issues, advanced agronomic metrics and the crop identification.
Every rule reads its cut-offs from ``agrosat.domain.thresholds``.
"""
import logging
from typing import Optional

from agrosat.domain.ai_assessment import AIAssessment, HealthLabel, normalize_health_label
from agrosat.domain.crop_database import (
    estimate_growth_stage,
    find_crop_profile,
    identify_crop_by_spectral,
)
from agrosat.domain.models import (
    AdvancedMetrics,
    AreaType,
    ClassificationResult,
    CropIdentification,
    Issue,
    RiskFactor,
    SpectralAnalysis,
)
from agrosat.domain.thresholds import (
    AI_HEALTH_DEFAULT_POINTS,
    AI_HEALTH_POINTS,
    HEALTH_SCORE_TABLE,
    FusionThresholds,
    IssueThresholds,
    NDVIThresholds,
    RiskThresholds,
    StressThresholds,
    SustainabilityThresholds,
)
from agrosat.services.domain.outlook_generator import calculate_return_points
from agrosat.services.domain.spectral_processor import BandBuffers, process_bands

logger = logging.getLogger(__name__)


def _tier_points(value: float, tiers) -> int:
    for lower_bound, points in tiers:
        if lower_bound is None or value > lower_bound:
            return points
    raise ValueError("Tier table has no floor entry")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ============================================================
# Classification
# ============================================================

def fuse_classification(
    ai: AIAssessment,
    spectral: SpectralAnalysis,
) -> tuple[AreaType, float, bool, bool]:
    """
    Combine the AI area type with mean NDVI and mean water index.

    Returns:
        Tuple of (classification, confidence, is_urban, is_agricultural)
    """
    ndvi = spectral.ndvi.mean
    confidence = ai.confidence
    is_urban = ai.is_urban
    is_agricultural = ai.is_agricultural

    if ai.is_urban:
        if ndvi < FusionThresholds.URBAN_DENSE_NDVI:
            classification = AreaType.URBAN_DENSE
            confidence += FusionThresholds.URBAN_DENSE_BONUS
        else:
            classification = AreaType.URBAN_MIXED
            confidence += FusionThresholds.URBAN_MIXED_BONUS
        confidence = min(FusionThresholds.MAX_CONFIDENCE, confidence)
    elif ai.is_agricultural:
        if ndvi > NDVIThresholds.EXCELLENT:
            classification = AreaType.AGRICULTURAL_EXCELLENT
        elif ndvi > NDVIThresholds.GOOD:
            classification = AreaType.AGRICULTURAL_HEALTHY
        elif ndvi > NDVIThresholds.MODERATE:
            classification = AreaType.AGRICULTURAL_MODERATE
        else:
            classification = AreaType.AGRICULTURAL_POOR
        confidence = min(FusionThresholds.MAX_CONFIDENCE, confidence + FusionThresholds.AGRICULTURAL_BONUS)
    else:
        classification = AreaType.MIXED_AREA

    # Water overrides everything above
    if spectral.water.mean > FusionThresholds.WATER_BODY_MEAN:
        classification = AreaType.WATER_BODY
        confidence = FusionThresholds.WATER_BODY_CONFIDENCE
        is_urban = False
        is_agricultural = False

    return classification, confidence, is_urban, is_agricultural


# ============================================================
# Health score and issues
# ============================================================

def calculate_health_score(
    ndvi_mean: float,
    evi_mean: float,
    moisture_mean: float,
    health_label: HealthLabel,
) -> float:
    """
    Sum four tiered components (NDVI 40, EVI 25, moisture 20, AI label 15).

    Each component is a step function of its input, so the score is
    non-decreasing in every mean. Result is clamped to [0, 100].
    """
    score = (
        _tier_points(ndvi_mean, HEALTH_SCORE_TABLE["ndvi"])
        + _tier_points(evi_mean, HEALTH_SCORE_TABLE["evi"])
        + _tier_points(moisture_mean, HEALTH_SCORE_TABLE["moisture"])
        + AI_HEALTH_POINTS.get(normalize_health_label(health_label).value, AI_HEALTH_DEFAULT_POINTS)
    )
    return float(_clamp(score, 0, 100))


def detect_issues(spectral: SpectralAnalysis, ai: AIAssessment, health_score: float) -> list[Issue]:
    """Evaluate every issue rule independently and collect all matches."""
    issues = []

    if spectral.ndvi.mean < IssueThresholds.VEGETATION_STRESS_NDVI:
        issues.append(Issue(
            type="vegetation_stress",
            severity="high",
            description="Vegetação com estresse severo ou ausente",
            recommendation="Investigar causas: seca, pragas, doenças ou solo inadequado",
        ))

    if spectral.moisture.mean < IssueThresholds.LOW_MOISTURE:
        issues.append(Issue(
            type="low_moisture",
            severity="medium",
            description="Baixa umidade do solo detectada",
            recommendation="Considerar irrigação ou aguardar chuvas",
        ))

    coefficient = spectral.variability.ndvi.coefficient
    if coefficient is not None and coefficient > IssueThresholds.HIGH_VARIABILITY_COV:
        issues.append(Issue(
            type="high_variability",
            severity="medium",
            description="Alta variabilidade na vegetação",
            recommendation="Investigar desuniformidade: pragas, doenças ou manejo inadequado",
        ))

    for problem in ai.problems_detected:
        issues.append(Issue(
            type="ai_detected",
            severity="medium",
            description=problem,
            recommendation="Verificar visualmente a área identificada",
        ))

    if health_score < IssueThresholds.POOR_HEALTH_SCORE:
        issues.append(Issue(
            type="poor_health",
            severity="high",
            description="Score de saúde crítico",
            recommendation="Intervenção urgente necessária",
        ))

    return issues


# ============================================================
# Crop identification
# ============================================================

def fuse_crop_identification(ai: AIAssessment, spectral: SpectralAnalysis) -> CropIdentification:
    """
    Decide between the AI crop guess and the best spectral signature match.

    The spectral candidate wins only when its confidence exceeds 0.7 and the
    AI guess is unknown or below 0.6 confidence.
    """
    candidate = identify_crop_by_spectral(spectral.ndvi.mean, spectral.evi.mean, spectral.savi.mean)
    guess = ai.crop

    spectral_wins = (
        candidate.confidence > FusionThresholds.SPECTRAL_CROP_MIN_CONFIDENCE
        and (guess.is_unknown or guess.confidence < FusionThresholds.AI_CROP_MIN_CONFIDENCE)
    )

    if spectral_wins:
        crop_type, confidence, source = candidate.crop, candidate.confidence, "spectral"
    elif guess.is_unknown:
        crop_type, confidence, source = "unknown", guess.confidence, "ai"
    else:
        profile = find_crop_profile(guess.primary_crop)
        crop_type = profile.name if profile else guess.primary_crop.strip()
        confidence, source = guess.confidence, "ai"

    return CropIdentification(
        crop_type=crop_type,
        confidence=confidence,
        source=source,
        alternatives=list(candidate.alternatives),
        spectral_candidate=candidate.crop,
        spectral_confidence=candidate.confidence,
    )


def resolve_growth_stage(ai: AIAssessment, crop_type: str, ndvi_mean: float) -> str:
    """AI growth stage when given, else the catalog stage closest to the NDVI mean."""
    stage = ai.crop.growth_stage.strip()
    if stage and stage.lower() != "unknown":
        return stage

    profile = find_crop_profile(crop_type)
    if profile is None:
        return "unknown"
    return estimate_growth_stage(profile, ndvi_mean).name


# ============================================================
# Advanced metrics
# ============================================================

def calculate_productivity_index(ndvi_mean: float, evi_mean: float) -> float:
    """60/40 blend of NDVI and EVI rescaled from [-1, 1] to [0, 1], as a percentage."""
    ndvi_score = _clamp((ndvi_mean + 1) / 2, 0.0, 1.0)
    evi_score = _clamp((evi_mean + 1) / 2, 0.0, 1.0)
    return round((ndvi_score * 0.6 + evi_score * 0.4) * 100, 1)


def calculate_stress_index(ndvi_mean: float, moisture_mean: float) -> float:
    """70/30 blend of the NDVI shortfall below 0.3 and moisture shortfall below 0.2."""
    ndvi_stress = 0.0
    if ndvi_mean < StressThresholds.NDVI_BASELINE:
        ndvi_stress = min(1.0, 1 - ndvi_mean / StressThresholds.NDVI_BASELINE)

    moisture_stress = 0.0
    if moisture_mean < StressThresholds.MOISTURE_BASELINE:
        moisture_stress = min(1.0, 1 - moisture_mean / StressThresholds.MOISTURE_BASELINE)

    blended = ndvi_stress * StressThresholds.NDVI_WEIGHT + moisture_stress * StressThresholds.MOISTURE_WEIGHT
    return round(blended * 100, 1)


def calculate_sustainability_score(spectral: SpectralAnalysis, ai: AIAssessment) -> float:
    score = SustainabilityThresholds.BASE

    coverage = spectral.land_cover.vegetation.total
    if coverage > SustainabilityThresholds.HIGH_COVERAGE:
        score += SustainabilityThresholds.HIGH_COVERAGE_BONUS
    elif coverage > SustainabilityThresholds.GOOD_COVERAGE:
        score += SustainabilityThresholds.GOOD_COVERAGE_BONUS

    coefficient = spectral.variability.ndvi.coefficient
    if coefficient is not None and coefficient < SustainabilityThresholds.UNIFORM_COV:
        score += SustainabilityThresholds.UNIFORM_BONUS

    score -= len(ai.problems_detected) * SustainabilityThresholds.PROBLEM_PENALTY
    return float(_clamp(score, 0, 100))


def calculate_risk_assessment(spectral: SpectralAnalysis) -> list[RiskFactor]:
    risks = []

    if spectral.ndvi.mean < RiskThresholds.PRODUCTIVITY_NDVI:
        risks.append(RiskFactor(type="productivity", level="high",
                                description="Risco de baixa produtividade"))

    if spectral.moisture.mean < RiskThresholds.DROUGHT_MOISTURE:
        risks.append(RiskFactor(type="drought", level="medium",
                                description="Risco de estresse hídrico"))

    coefficient = spectral.variability.ndvi.coefficient
    if coefficient is not None and coefficient > RiskThresholds.UNIFORMITY_COV:
        risks.append(RiskFactor(type="uniformity", level="medium",
                                description="Risco de desuniformidade na produção"))

    return risks


def calculate_advanced_metrics(spectral: SpectralAnalysis, ai: AIAssessment) -> AdvancedMetrics:
    coefficient = spectral.variability.ndvi.coefficient

    return AdvancedMetrics(
        productivity_index=calculate_productivity_index(spectral.ndvi.mean, spectral.evi.mean),
        stress_index=calculate_stress_index(spectral.ndvi.mean, spectral.moisture.mean),
        uniformity_index=None if coefficient is None else 1 - coefficient,
        sustainability_score=calculate_sustainability_score(spectral, ai),
        risk_assessment=calculate_risk_assessment(spectral),
    )


# ============================================================
# Engine
# ============================================================

class FusionEngine:
    """
    Domain service that fuses one AI assessment with one spectral analysis.

    Stateless: the same engine can serve concurrent analyses.
    """

    def fuse(
        self,
        spectral: SpectralAnalysis,
        ai: Optional[AIAssessment] = None,
    ) -> ClassificationResult:
        """
        Produce the classification result for a patch.

        Args:
            spectral: Statistics, land cover and variability of the six indices
            ai: Vision assessment; the neutral default is used when None

        Returns:
            ClassificationResult
        """
        if ai is None:
            logger.warning("No AI assessment supplied, using neutral default")
            ai = AIAssessment.neutral()

        if spectral.has_fallback_data:
            logger.warning(f"Fusing with synthetic data for "
                           f"{[index.value for index in spectral.fallback_indices]}")

        classification, confidence, is_urban, is_agricultural = fuse_classification(ai, spectral)
        health_score = calculate_health_score(
            spectral.ndvi.mean,
            spectral.evi.mean,
            spectral.moisture.mean,
            ai.health.overall_health,
        )
        issues = detect_issues(spectral, ai, health_score)
        crop = fuse_crop_identification(ai, spectral)
        growth_stage = resolve_growth_stage(ai, crop.crop_type, spectral.ndvi.mean)

        logger.info(f"Classification: {classification.value} (confidence={confidence:.2f})")
        logger.info(f"Health score: {health_score:.1f}/100, issues: {len(issues)}")
        logger.info(f"Crop: {crop.crop_type} via {crop.source} (confidence={crop.confidence:.2f})")

        return ClassificationResult(
            classification=classification,
            confidence=confidence,
            description=classification.description,
            is_agricultural=is_agricultural,
            is_urban=is_urban,
            needs_attention=bool(issues) or health_score < IssueThresholds.NEEDS_ATTENTION_SCORE,
            health_score=health_score,
            issues=issues,
            crop_type=crop.crop_type,
            crop_confidence=crop.confidence,
            crop_identification=crop,
            growth_stage=growth_stage,
            urbanization_level=spectral.land_cover.urban,
            vegetation_health=spectral.ndvi.mean,
            moisture_level=spectral.moisture.mean,
            variability_index=spectral.variability.ndvi.coefficient,
            advanced_metrics=calculate_advanced_metrics(spectral, ai),
            return_points=calculate_return_points(spectral, classification),
            spectral_metrics={
                "ndvi": spectral.ndvi.mean,
                "evi": spectral.evi.mean,
                "savi": spectral.savi.mean,
                "urban": spectral.urban.mean,
                "water": spectral.water.mean,
                "moisture": spectral.moisture.mean,
            },
            ai_assessment=ai,
        )


def analyze(
    bands: BandBuffers,
    ai_assessment: Optional[AIAssessment] = None,
) -> ClassificationResult:
    """
    Decode the six band buffers and fuse them with the AI assessment.

    Args:
        bands: Raw buffer per spectral index (missing indices fall back)
        ai_assessment: Vision assessment, or None for the neutral default

    Returns:
        ClassificationResult
    """
    spectral = process_bands(bands)
    return FusionEngine().fuse(spectral, ai_assessment)
