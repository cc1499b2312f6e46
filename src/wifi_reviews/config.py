"""Configuration management."""

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Target surface
    maps_url: str = "https://www.google.com/maps"
    maps_language: str = "en"

    # Browser
    headless: bool = True
    browser_launch_timeout: int = 60000  # milliseconds
    humanize: bool = True

    # Adaptive rate limiting between targets (seconds)
    rate_limit_min_delay: float = 8.0
    rate_limit_max_delay: float = 16.0

    # Review collection
    review_window_years: int = 5
    strict_dates: bool = False  # exclude reviews whose date cannot be parsed
    target_reviews_per_hotel: int = 50
    min_reviews_for_success: int = 20
    min_review_length: int = 50
    max_stall_attempts: int = 30
    max_review_elements: int = 2000
    scroll_wait_ms: int = 3000
    search_reviews_for_wifi: bool = True

    # Step retries
    retry_backoff_base: float = 2.0
    retry_backoff_max: float = 30.0
    retry_jitter: float = 1.5

    # Pipeline
    batch_size: int = 10
    between_target_delay: float = 2.0

    # Language model
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("WIFI_REVIEWS_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_model: str = "gpt-5-mini"
    max_completion_tokens: int = 2200
    input_cost_per_million: float = 0.25
    output_cost_per_million: float = 2.00
    ai_retry_attempts: int = 3
    ai_retry_delay: float = 2.0
    ai_batch_delay: float = 1.0

    # Output
    output_dir: Path = Path("output")
    progress_file: Path = Path(".pipeline_progress.json")

    # Logging
    log_level: str = "INFO"
    verbose: bool = False

    model_config = SettingsConfigDict(
        env_prefix="WIFI_REVIEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
settings = Settings()
