"""
Unit tests for the vision model client.

Tests cover:
- Parsing structured and free-text replies
- Successful assessments
- Fallback to the neutral assessment on errors
- Async context manager
- Singleton access
"""
import json

import httpx
import pytest
import respx

from agrosat.domain.ai_assessment import AIAreaType, AIAssessment, HealthLabel
from agrosat.infrastructure.vision_client import (
    VisionAPIError,
    VisionAssessmentClient,
    get_vision_client,
    parse_assessment_text,
)


BASE_URL = "https://vision.test"
GENERATE_URL = f"{BASE_URL}/v1beta/models/gemini-2.0-flash:generateContent"

FULL_REPLY = {
    "classification": "rural",
    "confidence": 0.92,
    "cropIdentification": {
        "primaryCrop": "Milho",
        "confidence": 0.8,
        "growthStage": "florescimento",
        "reasoning": "Fileiras com pendões visíveis",
    },
    "healthAssessment": {
        "overallHealth": "boa",
        "vegetationDensity": "alta",
        "colorPattern": "verde intenso",
        "uniformity": "uniforme",
    },
    "problemsDetected": ["solo exposto"],
    "patterns": {
        "fieldShape": "retangular",
        "plantingPattern": "fileiras",
        "irrigationSigns": True,
        "machineryMarks": "sim",
    },
    "recommendations": ["Monitorar lagarta-do-cartucho"],
    "reasoning": "Área agrícola extensa",
    "details": "Talhões retangulares",
}


def _gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def client() -> VisionAssessmentClient:
    return VisionAssessmentClient(api_key="test-key", base_url=BASE_URL, model="gemini-2.0-flash")


# ============================================================
# Reply Parsing Tests
# ============================================================

class TestParseAssessmentText:
    """Tests for converting model replies into assessments."""

    def test_full_reply_in_markdown_fence(self):
        """The first JSON object is extracted from surrounding prose."""
        text = f"Segue a análise:\n```json\n{json.dumps(FULL_REPLY)}\n```"

        assessment = parse_assessment_text(text)

        assert assessment.schema_version == 2
        assert assessment.area_type == AIAreaType.AGRICULTURAL
        assert assessment.confidence == pytest.approx(0.92)
        assert assessment.crop.primary_crop == "Milho"
        assert assessment.crop.growth_stage == "florescimento"
        assert assessment.health.overall_health == HealthLabel.GOOD
        assert assessment.problems_detected == ["solo exposto"]
        assert assessment.patterns.irrigation_signs is True
        assert assessment.patterns.machinery_marks is None

    def test_minimal_reply_is_version_one(self):
        assessment = parse_assessment_text('{"classification": "urban", "confidence": 0.4}')

        assert assessment.schema_version == 1
        assert assessment.area_type == AIAreaType.URBAN
        # Confidence is floored at 0.7
        assert assessment.confidence == pytest.approx(0.7)
        assert assessment.crop.is_unknown
        assert assessment.health.overall_health == HealthLabel.REGULAR

    def test_missing_confidence_defaults(self):
        assessment = parse_assessment_text('{"classification": "rural"}')

        assert assessment.confidence == pytest.approx(0.8)

    def test_unexpected_classification_is_unknown(self):
        assessment = parse_assessment_text('{"classification": "desert"}')

        assert assessment.area_type == AIAreaType.UNKNOWN

    def test_english_health_label(self):
        assessment = parse_assessment_text('{"classification": "rural", "healthAssessment": {"overallHealth": "poor"}}')

        assert assessment.health.overall_health == HealthLabel.POOR

    @pytest.mark.parametrize("text,expected", [
        ("Esta imagem mostra uma cidade com prédios.", AIAreaType.URBAN),
        ("Urban area with dense buildings", AIAreaType.URBAN),
        ("Uma fazenda ao lado da cidade", AIAreaType.AGRICULTURAL),
        ("Não foi possível decidir", AIAreaType.AGRICULTURAL),
    ])
    def test_keyword_fallback(self, text, expected):
        """Without JSON, urban words only win when no rural words appear."""
        assessment = parse_assessment_text(text)

        assert assessment.area_type == expected
        assert assessment.schema_version == 1
        assert assessment.confidence == pytest.approx(0.8)

    def test_broken_json_uses_keywords(self):
        assessment = parse_assessment_text('{"classification": "urban", cidade')

        assert assessment.area_type == AIAreaType.URBAN


# ============================================================
# Assessment Request Tests
# ============================================================

class TestAssessImage:
    """Tests for calling the vision model."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_successful_assessment(self, client):
        route = respx.post(GENERATE_URL).mock(
            return_value=httpx.Response(200, json=_gemini_reply(json.dumps(FULL_REPLY)))
        )

        assessment = await client.assess_image(b"\xff\xd8jpeg")

        assert route.called
        request = route.calls.last.request
        assert request.url.params["key"] == "test-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][1]["inline_data"]["mime_type"] == "image/jpeg"
        assert assessment.crop.primary_crop == "Milho"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_raises(self, client):
        respx.post(GENERATE_URL).mock(return_value=httpx.Response(500, text="boom"))

        with pytest.raises(VisionAPIError, match="500"):
            await client.assess_image(b"jpeg")
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_retries(self, client):
        respx.post(GENERATE_URL).mock(return_value=httpx.Response(503, text="unavailable"))

        result = await client.assess_or_neutral(b"jpeg")

        assert result == AIAssessment.neutral()
        assert respx.calls.call_count == 1
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_reply_falls_back(self, client):
        respx.post(GENERATE_URL).mock(return_value=httpx.Response(200, json=_gemini_reply("   ")))

        assert await client.assess_or_neutral(b"jpeg") == AIAssessment.neutral()
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_reply_without_candidates_falls_back(self, client):
        respx.post(GENERATE_URL).mock(return_value=httpx.Response(200, json={"promptFeedback": {}}))

        assert await client.assess_or_neutral(b"jpeg") == AIAssessment.neutral()
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_falls_back(self, client):
        respx.post(GENERATE_URL).mock(side_effect=httpx.ConnectError)

        assert await client.assess_or_neutral(b"jpeg") == AIAssessment.neutral()
        await client.close()

    @pytest.mark.asyncio
    async def test_disabled_without_key(self):
        client = VisionAssessmentClient(api_key="", base_url=BASE_URL)

        assert client.enabled is False
        with pytest.raises(VisionAPIError):
            await client.assess_image(b"jpeg")
        assert await client.assess_or_neutral(b"jpeg") == AIAssessment.neutral()
        await client.close()

    @pytest.mark.asyncio
    async def test_no_image_is_neutral(self, client):
        assert await client.assess_or_neutral(None) == AIAssessment.neutral()
        await client.close()


# ============================================================
# Lifecycle Tests
# ============================================================

class TestClientLifecycle:
    """Tests for context manager and singleton access."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self):
        async with VisionAssessmentClient(api_key="k", base_url=BASE_URL) as client:
            assert client.client.is_closed is False

        assert client.client.is_closed is True

    def test_singleton_pattern(self):
        """get_vision_client should return the same instance."""
        import agrosat.infrastructure.vision_client as module
        module._vision_client = None

        client1 = get_vision_client()
        client2 = get_vision_client()

        assert client1 is client2
