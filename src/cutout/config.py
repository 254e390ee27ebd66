"""Configuration using pydantic-settings.

Every setting can be given as a ``CUTOUT_``-prefixed environment variable or
in a ``.env`` file. Command-line options take precedence.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Defaults for the cutout command line."""

    model_config = SettingsConfigDict(
        env_prefix="CUTOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Default for --origin, validated by cutout.parsing.parse_origin
    origin: str = "tl"

    # Default for --jobs (input files processed concurrently)
    jobs: int = Field(default=1, ge=1)

    # Default for --output-dir; None writes beside each input
    output_dir: Path | None = None

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    # Quality for JPEG and WebP outputs
    jpeg_quality: int = Field(default=95, ge=1, le=95)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
