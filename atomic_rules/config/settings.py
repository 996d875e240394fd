"""Configuration settings for atomic rules."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    All settings can be configured via environment variables with the
    ATOMIC_RULES_ prefix (e.g., ATOMIC_RULES_RULES_DIR).
    """

    # Input directories
    rules_dir: Path = Path("rules")
    targets_dir: Path = Path("targets")

    # Where assembled documents are written
    output_dir: Path = Path("build/instructions")

    # Worker threads for batch assembly
    max_workers: int = Field(default=1, ge=1)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="ATOMIC_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
