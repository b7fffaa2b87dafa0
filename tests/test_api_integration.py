"""
Integration tests for API endpoints.

Tests the full HTTP request/response cycle with the vision client mocked.
"""
import base64

import pytest
from unittest.mock import AsyncMock

from agrosat.domain.ai_assessment import AIAreaType, AIAssessment
from agrosat.infrastructure.vision_client import VisionAssessmentClient, get_vision_client
from agrosat.main import app


LOCATION = {"lat": -15.78, "lng": -47.93}


# ============================================================
# Health Check Tests
# ============================================================

class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, test_client):
        """Root endpoint should return healthy status."""
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "service" in data
        assert "version" in data

    def test_health_endpoint(self, test_client):
        """Health endpoint should return healthy status."""
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ============================================================
# Analysis Endpoint Tests
# ============================================================

class TestAnalysisEndpoint:
    """Tests for the field analysis endpoint."""

    def test_agricultural_analysis(self, test_client, encoded_field_bands):
        """Measured bands plus a supplied assessment yield a full report."""
        response = test_client.post("/api/v1/analyses", json={
            "location": LOCATION,
            "bands": encoded_field_bands,
            "ai_assessment": {
                "area_type": "agricultural",
                "confidence": 0.85,
                "health": {"overall_health": "excelente"},
            },
        })

        assert response.status_code == 200
        data = response.json()
        assert data["analysis_id"]
        assert data["location"] == LOCATION
        assert data["spectral_analysis"]["fallback_indices"] == []
        assert data["area_classification"]["classification"] == "agricultural_excellent"
        assert data["area_classification"]["health_score"] == 100.0
        assert data["predictions"]["priority"] == "low"
        assert data["monitoring_plan"]["frequency"] == "mensal"
        assert "timestamp" in data

    def test_missing_bands_use_flagged_fallback(self, test_client):
        """Without bands every index is synthetic and flagged."""
        response = test_client.post("/api/v1/analyses", json={"location": LOCATION})

        assert response.status_code == 200
        spectral = response.json()["spectral_analysis"]
        assert len(spectral["fallback_indices"]) == 6
        assert spectral["ndvi"]["is_fallback"] is True
        assert spectral["ndvi"]["count"] == 1000
        assert spectral["quality_metrics"]["data_quality"] == 0.0

    def test_urban_analysis_has_no_outlook(self, test_client, encoded_field_bands):
        response = test_client.post("/api/v1/analyses", json={
            "location": LOCATION,
            "bands": encoded_field_bands,
            "ai_assessment": {"area_type": "urban", "confidence": 0.8},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["area_classification"]["is_urban"] is True
        assert data["predictions"] is None
        assert data["monitoring_plan"] is None

    def test_image_is_sent_to_vision_client(self, test_client, encoded_field_bands):
        """Without an assessment the true-color image is assessed."""
        vision = AsyncMock(spec=VisionAssessmentClient)
        vision.enabled = True
        vision.assess_or_neutral.return_value = AIAssessment(area_type=AIAreaType.URBAN, confidence=0.8)
        app.dependency_overrides[get_vision_client] = lambda: vision

        response = test_client.post("/api/v1/analyses", json={
            "location": LOCATION,
            "bands": encoded_field_bands,
            "true_color_image": base64.b64encode(b"\xff\xd8jpeg").decode("ascii"),
        })

        assert response.status_code == 200
        vision.assess_or_neutral.assert_awaited_once_with(b"\xff\xd8jpeg")
        assert response.json()["area_classification"]["classification"] == "urban_mixed"

    def test_invalid_base64_band(self, test_client):
        """Undecodable band data is a 400."""
        response = test_client.post("/api/v1/analyses", json={
            "location": LOCATION,
            "bands": {"ndvi": "not base64!!"},
        })

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid request"
        assert "ndvi" in data["detail"]

    @pytest.mark.parametrize("body", [
        {},
        {"location": {"lat": 120.0, "lng": 0.0}},
        {"location": LOCATION, "ai_assessment": {"confidence": 3.0}},
    ])
    def test_validation_errors(self, test_client, body):
        """Malformed bodies fail request validation."""
        response = test_client.post("/api/v1/analyses", json=body)

        assert response.status_code == 422
