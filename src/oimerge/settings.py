"""
Configuration module for oimerge defaults and environment overrides.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings using Pydantic for validation
    and environment variable support.
    """

    # Target identity resolution
    target_match_tolerance_arcsec: float = Field(
        default=1.0,
        description="Maximum separation for two targets to be considered the same",
    )

    # Merger settings
    default_version: Optional[int] = Field(
        default=None, description="OIFITS version of the merged output (1 or 2)"
    )

    undefined_arrname: str = Field(
        default="UNDEFINED", description="ARRNAME used when no OI_ARRAY matches"
    )

    dedup_correlation: bool = Field(
        default=False, description="Collapse identical OI_CORR tables while merging"
    )

    # General settings
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = {
        "env_prefix": "OIMERGE_",
        "case_sensitive": False,
    }

    @field_validator("default_version")
    @classmethod
    def check_version(cls, v):
        if v is not None and v not in (1, 2):
            raise ValueError(f"Unsupported OIFITS version: {v}")
        return v

    @field_validator("target_match_tolerance_arcsec")
    @classmethod
    def check_tolerance(cls, v):
        if v < 0:
            raise ValueError("Target match tolerance must be positive")
        return v


settings = Settings()
