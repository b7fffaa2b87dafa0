"""
Infrastructure layer: vision model client and assessment parsing.

The model reply is converted into an ``AIAssessment`` here and nowhere
else. Any failure (missing key, transport error, bad status, empty reply)
degrades to ``AIAssessment.neutral()`` so the analysis always completes.
"""
import base64
import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from agrosat.config import settings
from agrosat.domain.ai_assessment import (
    AIAreaType,
    AIAssessment,
    CropGuess,
    HealthAssessment,
    ObservedPatterns,
)
from agrosat.infrastructure.api_constants import (
    ASSESSMENT_PROMPT,
    APIConstants,
    GeminiEndpoints,
)

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_RICH_FIELDS = ("cropIdentification", "healthAssessment", "patterns")


class VisionAPIError(Exception):
    """Custom exception for vision model errors."""
    pass


# ============================================================
# Reply parsing
# ============================================================

def _as_float(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number == number else default


def _as_text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _as_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _as_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def assessment_from_model_json(data: Dict[str, Any]) -> AIAssessment:
    """
    Build an assessment from the JSON object the model was asked to return.

    Confidence is clamped to [0.7, 1.0] (missing means 0.8). A reply that
    carries any of the crop, health or pattern blocks is schema version 2.
    """
    label = str(data.get("classification", "")).strip().lower()
    if label == "urban":
        area_type = AIAreaType.URBAN
    elif label == "rural":
        area_type = AIAreaType.AGRICULTURAL
    else:
        area_type = AIAreaType.UNKNOWN

    crop_data = _as_dict(data.get("cropIdentification"))
    health_data = _as_dict(data.get("healthAssessment"))
    pattern_data = _as_dict(data.get("patterns"))

    crop = CropGuess(
        primary_crop=_as_text(crop_data.get("primaryCrop"), "unknown"),
        secondary_crop=crop_data.get("secondaryCrop") or None,
        confidence=min(1.0, max(0.0, _as_float(crop_data.get("confidence"), 0.5))),
        growth_stage=_as_text(crop_data.get("growthStage"), "unknown"),
        reasoning=_as_text(crop_data.get("reasoning"), "Não foi possível identificar"),
    )
    health = HealthAssessment(
        overall_health=health_data.get("overallHealth", "regular"),
        vegetation_density=_as_text(health_data.get("vegetationDensity"), "média"),
        color_pattern=_as_text(health_data.get("colorPattern"), "verde normal"),
        uniformity=_as_text(health_data.get("uniformity"), "irregular"),
    )
    patterns = ObservedPatterns(
        field_shape=pattern_data.get("fieldShape") or None,
        planting_pattern=pattern_data.get("plantingPattern") or None,
        irrigation_signs=_as_bool(pattern_data.get("irrigationSigns")),
        machinery_marks=_as_bool(pattern_data.get("machineryMarks")),
    )

    return AIAssessment(
        schema_version=2 if any(key in data for key in _RICH_FIELDS) else 1,
        area_type=area_type,
        confidence=max(0.7, min(1.0, _as_float(data.get("confidence") or 0.8, 0.8))),
        crop=crop,
        health=health,
        problems_detected=_as_text_list(data.get("problemsDetected")),
        patterns=patterns,
        recommendations=_as_text_list(data.get("recommendations")),
        reasoning=_as_text(data.get("reasoning"), "Análise visual por IA"),
        details=_as_text(data.get("details"), ""),
    )


def assessment_from_keywords(text: str) -> AIAssessment:
    """Last-resort assessment from free text: urban only if urban words appear without rural ones."""
    lowered = text.lower()
    mentions_urban = "urban" in lowered or "cidade" in lowered
    mentions_rural = "rural" in lowered or "fazenda" in lowered

    return AIAssessment(
        schema_version=1,
        area_type=AIAreaType.URBAN if mentions_urban and not mentions_rural else AIAreaType.AGRICULTURAL,
        confidence=0.8,
        crop=CropGuess(reasoning="Análise baseada em texto"),
        reasoning=text[:APIConstants.REASONING_EXCERPT_CHARS],
        details=text,
    )


def parse_assessment_text(text: str) -> AIAssessment:
    """
    Parse the model's reply text.

    The first {...} span is decoded as JSON; if there is none or it does not
    decode to an object, keyword detection is used instead.
    """
    match = _JSON_OBJECT.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return assessment_from_model_json(data)

    logger.warning("Vision reply had no JSON object, falling back to keyword detection")
    return assessment_from_keywords(text)


# ============================================================
# Client
# ============================================================

class VisionAssessmentClient:
    """
    Client for the vision model that assesses a true-color composite.

    No retries: a failed call degrades to the neutral assessment.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client with configuration."""
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.base_url = base_url or settings.gemini_base_url
        self.model = model or settings.gemini_model
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": APIConstants.CONTENT_TYPE_JSON},
            timeout=timeout or settings.vision_timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "VisionAssessmentClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _generate(self, parts: list[Dict[str, Any]]) -> str:
        """
        Call generateContent and return the first candidate's text.

        Raises:
            VisionAPIError: If the call fails or the reply has no text
        """
        try:
            response = await self.client.post(
                GeminiEndpoints.generate_content(self.model),
                params={"key": self.api_key},
                json={"contents": [{"parts": parts}]},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise VisionAPIError(
                f"Vision request failed: {e.response.status_code} - {e.response.text}"
            )
        except httpx.RequestError as e:
            raise VisionAPIError(f"Vision request error: {str(e)}")
        except ValueError as e:
            raise VisionAPIError(f"Vision reply is not JSON: {str(e)}")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise VisionAPIError("Vision reply has no candidate text")

        if not text or not text.strip():
            raise VisionAPIError("Vision reply is empty")
        return text

    async def assess_image(self, image: bytes) -> AIAssessment:
        """
        Assess a true-color JPEG.

        Raises:
            VisionAPIError: If the client is disabled or the call fails
        """
        if not self.enabled:
            raise VisionAPIError("Vision API key not configured")

        text = await self._generate([
            {"text": ASSESSMENT_PROMPT},
            {
                "inline_data": {
                    "mime_type": APIConstants.CONTENT_TYPE_JPEG,
                    "data": base64.b64encode(image).decode("ascii"),
                }
            },
        ])
        logger.debug(f"Vision reply: {text[:500]}")

        assessment = parse_assessment_text(text)
        logger.info(f"Vision assessment: area={assessment.area_type.value}, "
                    f"crop={assessment.crop.primary_crop}, "
                    f"health={assessment.health.overall_health.value}, "
                    f"problems={len(assessment.problems_detected)}")
        return assessment

    async def assess_or_neutral(self, image: Optional[bytes]) -> AIAssessment:
        """Assess an image, returning the neutral assessment on any failure."""
        if not image:
            return AIAssessment.neutral()
        try:
            return await self.assess_image(image)
        except VisionAPIError as e:
            logger.warning(f"Vision assessment unavailable, using neutral default: {e}")
            return AIAssessment.neutral()


# Singleton instance
_vision_client: Optional[VisionAssessmentClient] = None


def get_vision_client() -> VisionAssessmentClient:
    """
    Get or create the singleton vision client instance.

    Returns:
        VisionAssessmentClient instance
    """
    global _vision_client
    if _vision_client is None:
        _vision_client = VisionAssessmentClient()
    return _vision_client


async def close_vision_client():
    """Close the singleton client, if one was created, and forget it."""
    global _vision_client
    if _vision_client is not None:
        await _vision_client.close()
        _vision_client = None
