"""
Application configuration loaded from environment variables.

Provider credentials are all optional: a provider whose credentials are
missing is skipped by the fallback chain instead of failing startup.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    api_key: str | None = Field(
        default=None,
        description="Expected X-API-Key value (header presence only is checked when unset)"
    )
    database_url: str | None = Field(
        default=None,
        description="Async SQLAlchemy DSN for the transaction audit log (disabled when unset)"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )

    # Google Vision (text extraction)
    google_vision_api_key: str | None = Field(default=None)
    google_vision_base_url: str = Field(default="https://vision.googleapis.com")
    vision_timeout_seconds: float = Field(default=30.0, gt=0)

    # Finanalyz (PAN validator A + PAN OCR vendor)
    finanalyz_pan_url: str | None = Field(default=None)
    finanalyz_ocr_url: str | None = Field(default=None)
    finanalyz_x_api_key: str | None = Field(default=None)
    finanalyz_timeout_seconds: float = Field(default=10.0, gt=0)
    finanalyz_ocr_timeout_seconds: float = Field(default=30.0, gt=0)

    # Zoop (PAN validator B + GST lookup)
    zoop_pan_api_url: str | None = Field(default=None)
    zoop_gst_api_url: str | None = Field(default=None)
    zoop_api_key: str | None = Field(default=None)
    zoop_app_id: str | None = Field(default=None)
    zoop_timeout_seconds: float = Field(default=15.0, gt=0)
    zoop_min_name_match_score: float = Field(
        default=80.0,
        ge=0,
        le=100,
        description="Minimum name match score for a Zoop PAN verdict to count as verified"
    )
    gst_financial_year: str = Field(default="2024-25")

    # Digitap (cheque OCR with Basic auth, Aadhaar with OAuth bearer)
    digitap_base_url: str = Field(default="https://api.digitap.ai")
    digitap_client_id: str | None = Field(default=None)
    digitap_client_secret: str | None = Field(default=None)
    digitap_timeout_seconds: float = Field(default=60.0, gt=0)
    aadhaar_redirect_url: str | None = Field(default=None)

    # Fallback chains, walked in order
    pan_verification_chain: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["finanalyz", "zoop"],
        description="Provider order for PAN + name verification, e.g. finanalyz,zoop"
    )
    pan_ocr_chain: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["finanalyz_ocr", "google_vision"],
        description="Provider order for PAN card OCR, e.g. finanalyz_ocr,google_vision"
    )

    # Field extraction tables
    extraction_vocabulary_path: Path | None = Field(
        default=None,
        description="JSON file overriding the built-in label/skip keyword tables"
    )

    @field_validator("pan_verification_chain", "pan_ocr_chain", mode="before")
    @classmethod
    def split_chain(cls, value: Any) -> Any:
        """Accept a comma-separated list or a JSON array from the environment."""
        if not isinstance(value, str):
            return value
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def digitap_configured(self) -> bool:
        """True when Digitap client credentials are present."""
        return bool(self.digitap_base_url and self.digitap_client_id and self.digitap_client_secret)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    """
    return Settings()
