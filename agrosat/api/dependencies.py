"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends

from agrosat.infrastructure.vision_client import (
    VisionAssessmentClient,
    get_vision_client,
)
from agrosat.services.application.analysis_service import AnalysisService
from agrosat.services.domain.fusion_engine import FusionEngine
from agrosat.services.domain.outlook_generator import OutlookGenerator


def get_fusion_engine() -> FusionEngine:
    """
    Dependency factory for FusionEngine.

    Returns:
        FusionEngine instance
    """
    return FusionEngine()


def get_outlook_generator() -> OutlookGenerator:
    return OutlookGenerator()


def get_analysis_service(
    vision_client: Annotated[VisionAssessmentClient, Depends(get_vision_client)],
    engine: Annotated[FusionEngine, Depends(get_fusion_engine)],
    outlook_generator: Annotated[OutlookGenerator, Depends(get_outlook_generator)],
) -> AnalysisService:
    """
    Dependency factory for AnalysisService.

    Args:
        vision_client: Vision model client (injected)
        engine: Fusion engine (injected)
        outlook_generator: Outlook generator (injected)

    Returns:
        AnalysisService instance
    """
    return AnalysisService(
        vision_client=vision_client,
        engine=engine,
        outlook_generator=outlook_generator,
    )


# Type aliases for cleaner route signatures
AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
