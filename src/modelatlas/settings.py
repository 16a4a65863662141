"""
Configuration module for modelatlas runtime defaults and environment overrides.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Application settings using Pydantic for validation
    and environment variable support.
    """

    # Catalog locations
    catalog_path: Optional[Path] = Field(
        default=None, description="YAML catalog used as the local source"
    )
    output_path: Optional[Path] = Field(
        default=None, description="Where `sync` writes the merged catalog"
    )

    # Fetch settings
    max_workers: int = Field(
        default=4, ge=1, description="Maximum number of parallel fetch workers"
    )

    request_timeout: float = Field(
        default=30.0, gt=0, description="Provider API request timeout in seconds"
    )

    poll_interval: float = Field(
        default=0.05,
        gt=0,
        description="How often the orchestrator checks for cancellation",
    )

    cancel_grace_period: float = Field(
        default=1.0,
        ge=0,
        description="How long running fetches may take to observe cancellation",
    )

    # Merge settings
    default_merge_strategy: str = Field(
        default="authority", description="Default catalog merge strategy"
    )

    # General settings
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = {
        "env_prefix": "MODELATLAS_",
        "case_sensitive": False,
    }

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return level


settings = Settings()
