"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Raw band buffer builders
- Spectral analysis factory
- Sample AI assessments
- FastAPI test client
"""
import base64

import pytest
import numpy as np
from fastapi.testclient import TestClient

from agrosat.domain.ai_assessment import (
    AIAreaType,
    AIAssessment,
    CropGuess,
    HealthAssessment,
)
from agrosat.domain.models import BandSample, SpectralIndexName
from agrosat.limiter import limiter
from agrosat.main import app
from agrosat.services.domain.band_decoder import HEADER_MARGIN_BYTES
from agrosat.services.domain.spectral_processor import build_spectral_analysis


def encode_band(values) -> bytes:
    """Wrap float32 payload values in zeroed header and trailer margins."""
    payload = np.asarray(values, dtype="<f4").tobytes()
    margin = b"\x00" * HEADER_MARGIN_BYTES
    return margin + payload + margin


def spread_values(mean: float, coefficient: float = 0.0, size: int = 200) -> np.ndarray:
    """Alternate mean*(1+cv) and mean*(1-cv) so std/|mean| equals cv exactly."""
    signs = np.where(np.arange(size) % 2 == 0, 1.0, -1.0)
    return mean + signs * abs(mean) * coefficient


# ============================================================
# Band Buffer Fixtures
# ============================================================

@pytest.fixture
def band_buffer():
    """Build a raw band buffer from payload values."""
    return encode_band


@pytest.fixture
def healthy_field_buffers() -> dict[SpectralIndexName, bytes]:
    """Raw buffers for a vigorous, well-watered, uniform crop field."""
    return {
        SpectralIndexName.NDVI: encode_band(spread_values(0.7, 0.1)),
        SpectralIndexName.EVI: encode_band(spread_values(0.5, 0.1)),
        SpectralIndexName.SAVI: encode_band(spread_values(0.5, 0.1)),
        SpectralIndexName.URBAN: encode_band(spread_values(-0.2, 0.1)),
        SpectralIndexName.WATER: encode_band(spread_values(-0.3, 0.1)),
        SpectralIndexName.MOISTURE: encode_band(spread_values(0.35, 0.1)),
    }


@pytest.fixture
def encoded_field_bands(healthy_field_buffers) -> dict[str, str]:
    """The healthy field buffers as a base64 request payload."""
    return {
        index.value.lower(): base64.b64encode(buffer).decode("ascii")
        for index, buffer in healthy_field_buffers.items()
    }


# ============================================================
# Spectral Analysis Fixtures
# ============================================================

@pytest.fixture
def make_spectral():
    """
    Build a SpectralAnalysis from per-index means.

    ``ndvi_cov`` sets the NDVI coefficient of variation; every other index
    is constant.
    """
    def _make(
        ndvi=0.5,
        evi=0.3,
        savi=0.3,
        urban=-0.2,
        water=-0.3,
        moisture=0.25,
        ndvi_cov=0.0,
        size=200,
    ):
        samples = {
            SpectralIndexName.NDVI: BandSample(SpectralIndexName.NDVI, spread_values(ndvi, ndvi_cov, size)),
            SpectralIndexName.EVI: BandSample(SpectralIndexName.EVI, np.full(size, evi)),
            SpectralIndexName.SAVI: BandSample(SpectralIndexName.SAVI, np.full(size, savi)),
            SpectralIndexName.URBAN: BandSample(SpectralIndexName.URBAN, np.full(size, urban)),
            SpectralIndexName.WATER: BandSample(SpectralIndexName.WATER, np.full(size, water)),
            SpectralIndexName.MOISTURE: BandSample(SpectralIndexName.MOISTURE, np.full(size, moisture)),
        }
        return build_spectral_analysis(samples)

    return _make


# ============================================================
# AI Assessment Fixtures
# ============================================================

@pytest.fixture
def agricultural_assessment() -> AIAssessment:
    """Confident agricultural assessment with excellent health and a soy guess."""
    return AIAssessment(
        area_type=AIAreaType.AGRICULTURAL,
        confidence=0.85,
        crop=CropGuess(primary_crop="soja", confidence=0.8, growth_stage="floração"),
        health=HealthAssessment(overall_health="excelente"),
        recommendations=["Manter manejo atual"],
        reasoning="Fileiras regulares de cultura verde",
    )


@pytest.fixture
def urban_assessment() -> AIAssessment:
    """Urban assessment with poor vegetation."""
    return AIAssessment(
        area_type=AIAreaType.URBAN,
        confidence=0.8,
        health=HealthAssessment(overall_health="ruim"),
        reasoning="Quarteirões e telhados",
    )


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI with rate limiting off."""
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
    app.dependency_overrides.clear()
