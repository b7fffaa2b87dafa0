"""
API router for field analysis endpoints.
"""
from fastapi import APIRouter, Request

from agrosat.api.dependencies import AnalysisServiceDep
from agrosat.api.v1.models.requests import AnalysisRequest
from agrosat.api.v1.models.responses import AnalysisResponse
from agrosat.config import settings
from agrosat.limiter import limiter


router = APIRouter(
    prefix="/analyses",
    tags=["analyses"],
)


@router.post(
    "",
    response_model=AnalysisResponse,
    summary="Analyze a field",
    description="""
    Classify land use and score vegetation health for one satellite patch.

    This endpoint:
    1. Decodes the six spectral index buffers (missing or unreadable bands
       are replaced by flagged synthetic samples)
    2. Computes statistics, land cover and variability
    3. Fuses the spectral evidence with a vision-AI assessment (supplied,
       derived from the true-color image, or a neutral default)
    4. Returns classification, health score, issues and crop identification,
       plus predictions and a monitoring plan for agricultural areas
    """,
    responses={
        200: {
            "description": "Analysis completed",
        },
        400: {
            "description": "A band or the image is not valid base64, or a band key is unknown",
        },
        422: {
            "description": "Request body failed validation",
        },
        429: {
            "description": "Rate limit exceeded",
        },
        500: {
            "description": "Internal server error",
        },
    },
)
@limiter.limit(f"{settings.rate_limit_requests}/minute")
async def create_analysis(
    request: Request,
    payload: AnalysisRequest,
    analysis_service: AnalysisServiceDep,
) -> AnalysisResponse:
    """
    Run a field analysis.

    Args:
        request: Raw request (used by the rate limiter)
        payload: Location, band buffers and optional AI inputs
        analysis_service: Analysis service (injected dependency)

    Returns:
        AnalysisResponse

    Raises:
        ValueError: If base64 decoding fails (mapped to 400 by the middleware)
    """
    # Delegate to service layer (no business logic here)
    outcome = await analysis_service.analyze(
        bands=payload.bands.decoded(),
        ai_assessment=payload.ai_assessment,
        true_color_image=payload.decoded_image(),
    )

    return AnalysisResponse(
        analysis_id=outcome.analysis_id,
        location=payload.location,
        spectral_analysis=outcome.spectral,
        area_classification=outcome.classification,
        predictions=outcome.outlook.predictions,
        monitoring_plan=outcome.outlook.monitoring_plan,
        timestamp=outcome.timestamp,
    )
