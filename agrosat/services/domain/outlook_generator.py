"""
Domain service: benchmark gaps, predictions and monitoring guidance.

Everything here is derived from an existing ``ClassificationResult``; no
new measurements are taken. Predictions and the monitoring plan are only
produced for agricultural areas.
"""
import logging
from datetime import date, timedelta
from types import MappingProxyType
from typing import Callable, Optional

from agrosat.domain.crop_database import find_crop_profile, get_crop_recommendations
from agrosat.domain.models import (
    AreaType,
    BenchmarkMetrics,
    ClassificationResult,
    ExpectedYield,
    MonitoringPlan,
    NotificationSettings,
    Outlook,
    Predictions,
    ReportSchedule,
    ReturnPoints,
    SpectralAnalysis,
    YieldFactors,
)
from agrosat.domain.thresholds import (
    MONITORING_THRESHOLDS,
    RETURN_POINT_BENCHMARKS,
    HealthBands,
    IssueThresholds,
    NDVIThresholds,
    RiskThresholds,
)

logger = logging.getLogger(__name__)

NEXT_ANALYSIS_DAYS = 14

# Crop-specific field advice, keyed by crop catalog key
CROP_FIELD_ADVICE = MappingProxyType({
    "soja": ("Monitorar ferrugem asiática", "Verificar necessidade de potássio"),
    "milho": ("Atenção à lagarta-do-cartucho", "Monitorar níveis de nitrogênio"),
    "cana-de-acucar": ("Verificar brotação e perfilhamento", "Controlar plantas daninhas"),
})
GENERIC_CROP_ADVICE = ("Seguir calendário específico da cultura",)

MONITORING_PARAMETERS = (
    "NDVI (saúde vegetação)",
    "EVI (vegetação aprimorada)",
    "Umidade do solo",
    "Variabilidade espacial",
)
MONITORING_ACTIONS = (
    "Análise espectral regular",
    "Monitoramento visual",
    "Verificação de umidade",
    "Controle de pragas e doenças",
)


def calculate_return_points(
    spectral: SpectralAnalysis,
    classification: AreaType,
) -> Optional[ReturnPoints]:
    """
    Compare current means with the benchmark of the area's agricultural tier.

    Only agricultural_excellent, agricultural_healthy and agricultural_moderate
    have a benchmark; any other classification returns None.
    """
    benchmark = RETURN_POINT_BENCHMARKS.get(AreaType(classification).value)
    if benchmark is None:
        return None

    target = BenchmarkMetrics(ndvi=benchmark[0], evi=benchmark[1], moisture=benchmark[2])
    current = BenchmarkMetrics(
        ndvi=spectral.ndvi.mean,
        evi=spectral.evi.mean,
        moisture=spectral.moisture.mean,
    )
    gaps = BenchmarkMetrics(
        ndvi=max(0.0, target.ndvi - current.ndvi),
        evi=max(0.0, target.evi - current.evi),
        moisture=max(0.0, target.moisture - current.moisture),
    )

    recommendations = []
    if gaps.ndvi > 0:
        recommendations.append("Melhorar saúde da vegetação através de adubação ou controle de pragas")
    if gaps.evi > 0:
        recommendations.append("Aumentar vigor do dossel com manejo nutricional adequado")
    if gaps.moisture > 0:
        recommendations.append("Aumentar umidade do solo através de irrigação ou cobertura morta")

    return ReturnPoints(current=current, target=target, gaps=gaps, recommendations=recommendations)


def _has_known_crop(result: ClassificationResult) -> bool:
    return bool(result.crop_type) and result.crop_type.strip().lower() != "unknown"


class OutlookGenerator:
    """
    Builds predictions and a monitoring plan from a classification result.

    Templates are selected by health-score band and crop type.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        """
        Args:
            today: Clock used for the next analysis date (defaults to date.today)
        """
        self._today = today or date.today

    def generate(self, spectral: SpectralAnalysis, result: ClassificationResult) -> Outlook:
        """Predictions and monitoring plan, or an empty outlook for non-agricultural areas."""
        if not result.is_agricultural:
            logger.info(f"No outlook for non-agricultural classification {result.classification.value}")
            return Outlook()

        return Outlook(
            predictions=self.generate_predictions(spectral, result),
            monitoring_plan=self.generate_monitoring_plan(spectral, result),
        )

    def generate_predictions(self, spectral: SpectralAnalysis, result: ClassificationResult) -> Predictions:
        score = result.health_score
        predictions = []
        recommendations = []

        if score > HealthBands.EXCELLENT_ABOVE:
            predictions.append("Excelente potencial produtivo para os próximos 30 dias")
            predictions.append("Condições favoráveis para desenvolvimento da cultura")
        elif score > HealthBands.GOOD_ABOVE:
            predictions.append("Bom potencial produtivo com alguns pontos de atenção")
            predictions.append("Monitoramento recomendado para manter qualidade")
        else:
            predictions.append("Potencial produtivo comprometido - intervenção necessária")
            predictions.append("Risco de perdas se não houver ação corretiva")

        if _has_known_crop(result):
            predictions.append(f"Cultura {result.crop_type} em estágio {result.growth_stage}")

            profile = find_crop_profile(result.crop_type)
            advice = CROP_FIELD_ADVICE.get(profile.key, GENERIC_CROP_ADVICE) if profile else GENERIC_CROP_ADVICE
            recommendations.extend(advice)
            recommendations.extend(get_crop_recommendations(result.crop_type, score / 100))

        recommendations.extend(issue.recommendation for issue in result.issues)
        recommendations.extend(result.ai_assessment.recommendations)

        return Predictions(
            predictions=predictions,
            recommendations=list(dict.fromkeys(recommendations)),
            next_analysis_date=(self._today() + timedelta(days=NEXT_ANALYSIS_DAYS)).isoformat(),
            priority=self._priority(score),
            expected_yield=self.calculate_expected_yield(spectral, result),
            risk_factors=list(result.advanced_metrics.risk_assessment),
        )

    def generate_monitoring_plan(self, spectral: SpectralAnalysis, result: ClassificationResult) -> MonitoringPlan:
        score = result.health_score
        frequency = self._frequency(score)

        parameters = list(MONITORING_PARAMETERS)
        if _has_known_crop(result):
            parameters.append(f"Estágio {result.crop_type}")

        alerts = []
        if score < IssueThresholds.NEEDS_ATTENTION_SCORE:
            alerts.append("Alerta: Score de saúde abaixo do ideal")

        coefficient = spectral.variability.ndvi.coefficient
        if coefficient is not None and coefficient > RiskThresholds.UNIFORMITY_COV:
            alerts.append("Alerta: Alta variabilidade detectada")

        for issue in result.issues:
            if issue.severity == "high":
                alerts.append(f"Alerta crítico: {issue.description}")

        return MonitoringPlan(
            frequency=frequency,
            parameters=parameters,
            alerts=alerts,
            actions=list(MONITORING_ACTIONS),
            thresholds=dict(MONITORING_THRESHOLDS),
            notifications=NotificationSettings(
                email=True,
                sms=score < HealthBands.WEEKLY_BELOW,
                dashboard=True,
            ),
            report_schedule=ReportSchedule(
                weekly=frequency == "semanal",
                biweekly=frequency == "quinzenal",
                monthly=frequency == "mensal",
            ),
        )

    @staticmethod
    def calculate_expected_yield(spectral: SpectralAnalysis, result: ClassificationResult) -> ExpectedYield:
        """Expected yield as a percentage of a nominal baseline of 100."""
        ndvi = spectral.ndvi.mean

        if ndvi > NDVIThresholds.EXCELLENT:
            factor = 1.2
        elif ndvi > NDVIThresholds.GOOD:
            factor = 1.0
        elif ndvi > NDVIThresholds.MODERATE:
            factor = 0.8
        else:
            factor = 0.5

        factor *= result.health_score / 100
        factor *= max(0.3, 1 - len(result.issues) * 0.1)

        return ExpectedYield(
            percentage=round(100 * factor),
            confidence=result.confidence,
            factors=YieldFactors(
                vegetation=ndvi,
                health=result.health_score,
                issues=len(result.issues),
            ),
        )

    @staticmethod
    def _priority(score: float) -> str:
        if score < HealthBands.WEEKLY_BELOW:
            return "high"
        if score < HealthBands.BIWEEKLY_BELOW:
            return "medium"
        return "low"

    @staticmethod
    def _frequency(score: float) -> str:
        if score < HealthBands.WEEKLY_BELOW:
            return "semanal"
        if score < HealthBands.BIWEEKLY_BELOW:
            return "quinzenal"
        return "mensal"


def outlook(spectral: SpectralAnalysis, classification: ClassificationResult) -> Outlook:
    """Predictions and monitoring plan for a fused classification."""
    return OutlookGenerator().generate(spectral, classification)
