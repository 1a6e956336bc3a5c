"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_base_url: str | None = None
    openai_model: str = "gpt-5-mini"
    openai_vision_model: str = "gpt-5-mini"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    profile_path: Path = Path("nutrihelp_storage.json")
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
