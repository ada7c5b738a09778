"""Configuration management for Story Narrator."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SN_",
    )

    # Segmentation
    attribution_window: int = Field(
        default=50, description="Max characters between a quote and its attribution verb"
    )
    speaker_lookback: int = Field(
        default=50, description="Characters scanned before a speech verb for a speaker name"
    )

    # Quality analysis
    paragraphs_per_point: int = Field(default=1, description="Paragraphs per readability chunk")
    quality_workers: int = Field(default=4, description="Threads used by the quality report")

    # Pattern tables (defaults ship inside the package)
    tables_dir: Path | None = Field(default=None, description="Directory overriding bundled tables")

    # Speech synthesis
    tts_provider: str = Field(default="silent", description="silent or elevenlabs")
    elevenlabs_api_key: str = Field(default="")
    elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1")
    elevenlabs_model: str = Field(default="eleven_multilingual_v2")
    request_timeout: float = Field(default=60.0)

    # Status polling
    status_poll_interval: float = Field(default=0.3, description="Seconds between status polls")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
