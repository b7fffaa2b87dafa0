"""
Application service: Orchestration layer for field analyses.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from agrosat.domain.ai_assessment import AIAssessment
from agrosat.domain.models import (
    ClassificationResult,
    Outlook,
    SpectralAnalysis,
)
from agrosat.infrastructure.vision_client import VisionAssessmentClient
from agrosat.services.domain.band_decoder import decode_band
from agrosat.services.domain.fusion_engine import FusionEngine
from agrosat.services.domain.outlook_generator import OutlookGenerator
from agrosat.services.domain.spectral_processor import (
    BandBuffers,
    build_spectral_analysis,
    normalize_band_keys,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutcome:
    """Everything produced for one analysis request."""
    analysis_id: str
    spectral: SpectralAnalysis
    classification: ClassificationResult
    outlook: Outlook
    timestamp: datetime


class AnalysisService:
    """
    Application service for field analyses.

    Coordinates the vision client with the domain services; holds no
    business rules of its own.
    """

    def __init__(
        self,
        vision_client: VisionAssessmentClient,
        engine: FusionEngine,
        outlook_generator: OutlookGenerator,
    ):
        """
        Initialize the service with dependencies.

        Args:
            vision_client: Client used when an image must be assessed
            engine: Fusion engine for classification and scoring
            outlook_generator: Builds predictions and monitoring plans
        """
        self.vision_client = vision_client
        self.engine = engine
        self.outlook_generator = outlook_generator

    async def resolve_assessment(
        self,
        ai_assessment: Optional[AIAssessment],
        true_color_image: Optional[bytes],
    ) -> AIAssessment:
        """A supplied assessment wins; otherwise assess the image, else neutral."""
        if ai_assessment is not None:
            return ai_assessment
        if true_color_image and self.vision_client.enabled:
            return await self.vision_client.assess_or_neutral(true_color_image)

        logger.info("No AI assessment or assessable image, using neutral default")
        return AIAssessment.neutral()

    async def process_bands(self, bands: BandBuffers) -> SpectralAnalysis:
        """Decode the six bands on worker threads, then aggregate once all are ready."""
        normalized = normalize_band_keys(bands)
        indices = list(normalized)
        samples = await asyncio.gather(*(
            asyncio.to_thread(decode_band, normalized[index], index) for index in indices
        ))
        return await asyncio.to_thread(build_spectral_analysis, dict(zip(indices, samples)))

    async def analyze(
        self,
        bands: BandBuffers,
        ai_assessment: Optional[AIAssessment] = None,
        true_color_image: Optional[bytes] = None,
    ) -> AnalysisOutcome:
        """
        Run a full analysis.

        This method orchestrates:
        1. Resolving the AI assessment (concurrently with decoding)
        2. Decoding the six band buffers
        3. Fusing spectral evidence with the assessment
        4. Generating predictions and the monitoring plan

        Args:
            bands: Raw buffer per spectral index (missing ones fall back)
            ai_assessment: Pre-computed vision assessment, if any
            true_color_image: JPEG to assess when no assessment is given

        Returns:
            AnalysisOutcome

        Raises:
            ValueError: If a band key is not a known spectral index
        """
        analysis_id = uuid.uuid4().hex
        logger.info(f"Analysis {analysis_id} started")

        assessment, spectral = await asyncio.gather(
            self.resolve_assessment(ai_assessment, true_color_image),
            self.process_bands(bands),
        )

        classification = self.engine.fuse(spectral, assessment)
        outlook = self.outlook_generator.generate(spectral, classification)

        logger.info(f"Analysis {analysis_id} finished: {classification.classification.value}, "
                    f"health={classification.health_score:.1f}")

        return AnalysisOutcome(
            analysis_id=analysis_id,
            spectral=spectral,
            classification=classification,
            outlook=outlook,
            timestamp=datetime.now(timezone.utc),
        )
