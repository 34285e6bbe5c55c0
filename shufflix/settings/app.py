"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    tmdb_api_key: str | None = Field(default=None, validation_alias="TMDB_API_KEY")
    tmdb_language: str = Field(default="en-US", validation_alias="TMDB_LANGUAGE")
    tmdb_region: str = Field(default="US", validation_alias="TMDB_REGION")


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
