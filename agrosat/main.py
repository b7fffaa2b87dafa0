"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from agrosat.config import settings
from agrosat.limiter import limiter
from agrosat.middleware.error_handler import ErrorHandlerMiddleware
from agrosat.api.v1.routers import analyses

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Decoding config: workers={settings.decode_workers}, "
                f"fallback_sample_size={settings.fallback_sample_size}, "
                f"fallback_seed={settings.fallback_seed}")
    logger.info(f"Vision model: {settings.gemini_model} "
                f"({'enabled' if settings.gemini_api_key else 'disabled, neutral assessments'})")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    yield

    # Shutdown
    from agrosat.infrastructure.vision_client import close_vision_client
    logger.info("Shutting down application...")
    await close_vision_client()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Satellite Field Analysis API for Agrotech Platform

    This API classifies land use, identifies crops and scores vegetation
    health from six spectral index rasters and an optional vision-AI
    assessment of the true-color image.

    ## Features

    - **Band Decoding**: Raw float32 rasters are sampled into value lists;
      unreadable bands fall back to flagged, seeded synthetic samples
    - **Land Cover**: Per-pixel shares of vegetation tiers, urban, water,
      wet soil and bare soil
    - **Fusion & Scoring**: Area classification, 0-100 health score, issues,
      advanced agronomic metrics and crop identification
    - **Outlook**: Predictions and a monitoring plan for agricultural areas
    - **Rate Limiting**: Protects the API from abuse

    ## Pipeline

    1. Decode NDVI, EVI, SAVI, urban, water and moisture buffers concurrently
    2. Compute statistics, land cover and coefficient of variation
    3. Fuse the spectral evidence with the AI area type and health label
    4. Match the spectral signature against the crop reference catalog
    5. Derive benchmark gaps, predictions and monitoring guidance
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(analyses.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
