"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Vision AI Configuration
    gemini_api_key: str = Field(
        default="",
        description="API key for the vision model (empty disables the AI assessment)"
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Base URL for the vision model API"
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Vision model used for the true-color assessment"
    )
    vision_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout in seconds for a single vision model call"
    )

    # Band Decoding Parameters
    fallback_sample_size: int = Field(
        default=1000,
        gt=0,
        description="Number of values in a synthetic fallback band sample"
    )
    fallback_seed: int = Field(
        default=42,
        description="Seed for the synthetic fallback generator"
    )
    decode_workers: int = Field(
        default=6,
        gt=0,
        description="Maximum number of bands decoded concurrently"
    )

    # Statistics Parameters
    variability_epsilon: float = Field(
        default=1e-6,
        ge=0.0,
        description="Absolute mean below which the coefficient of variation is indeterminate"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=30,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="AgroSat Field Analysis API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
