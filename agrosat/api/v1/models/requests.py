"""
API request models using Pydantic.
"""
import base64
import binascii
from typing import Optional

from pydantic import BaseModel, Field

from agrosat.domain.ai_assessment import AIAssessment
from agrosat.domain.models import SpectralIndexName


def decode_base64_field(name: str, value: Optional[str]) -> Optional[bytes]:
    """
    Decode one base64 field.

    Raises:
        ValueError: If the value is not valid base64
    """
    if value is None:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Field '{name}' is not valid base64: {e}")


class Location(BaseModel):
    """Point the analysis refers to. Used for tagging only."""
    lat: float = Field(ge=-90, le=90, description="Latitude in degrees", examples=[-15.7801])
    lng: float = Field(ge=-180, le=180, description="Longitude in degrees", examples=[-47.9292])


class BandPayload(BaseModel):
    """Base64-encoded raw buffers, one per spectral index. Missing bands fall back."""
    ndvi: Optional[str] = None
    evi: Optional[str] = None
    savi: Optional[str] = None
    urban: Optional[str] = None
    water: Optional[str] = None
    moisture: Optional[str] = None

    def decoded(self) -> dict[SpectralIndexName, Optional[bytes]]:
        return {
            index: decode_base64_field(index.value.lower(), getattr(self, index.value.lower()))
            for index in SpectralIndexName
        }


class AnalysisRequest(BaseModel):
    """Request body for a field analysis."""
    location: Location
    bands: BandPayload = Field(default_factory=BandPayload)
    ai_assessment: Optional[AIAssessment] = Field(
        default=None,
        description="Pre-computed vision assessment; skips the vision model call",
    )
    true_color_image: Optional[str] = Field(
        default=None,
        description="Base64 true-color JPEG assessed when no ai_assessment is given",
    )

    def decoded_image(self) -> Optional[bytes]:
        return decode_base64_field("true_color_image", self.true_color_image)

    class Config:
        json_schema_extra = {
            "example": {
                "location": {"lat": -15.7801, "lng": -47.9292},
                "bands": {"ndvi": "<base64>", "evi": "<base64>", "savi": "<base64>",
                          "urban": "<base64>", "water": "<base64>", "moisture": "<base64>"},
                "true_color_image": None,
            }
        }
