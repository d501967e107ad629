# ingres_core/config.py
"""Runtime settings, read from INGRES_* environment variables or a .env file."""

from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="INGRES_", env_file=".env", extra="ignore")

    # Store
    database_path: str = "./ingres.db"
    # Only used when the store reports no years at all
    default_year: str = "2024-2025"

    # Fuzzy resolution
    match_threshold: float = 0.6
    max_results: int = 5
    parent_candidates: int = 3

    # Startup load
    load_retries: int = 5
    load_retry_delay: float = 2.0

    # Ranking
    rank_oversample: int = 2
    trend_series_size: int = 5
    fetch_workers: int = 1

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    cors_origins: List[str] = ["*"]

    @field_validator("match_threshold")
    @classmethod
    def _threshold_in_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("match_threshold must be between 0 and 1")
        return v

    @field_validator("max_results", "parent_candidates", "load_retries", "rank_oversample", "trend_series_size", "fetch_workers")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


settings = Settings()
