"""Configuration models for the catalog client."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shufflix.catalog.constants import (
    DEFAULT_PROVIDER_CONCURRENCY,
    TMDB_BASE_URL,
    TMDB_IMAGE_ROOT,
)
from shufflix.catalog.models import RetryPolicy


class CatalogConfig(BaseModel):
    """Configuration for the TMDB catalog client.

    The API key is deliberately absent; it is read from the environment
    through AppSettings and handed to the client at construction.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: Annotated[str, Field(min_length=1)] = TMDB_BASE_URL
    image_root: Annotated[str, Field(min_length=1)] = TMDB_IMAGE_ROOT
    language: Annotated[str, Field(min_length=2, max_length=35)] = "en-US"
    region: Annotated[str, Field(min_length=2, max_length=2)] = "US"
    timeout_seconds: Annotated[float, Field(ge=1.0, le=120.0)] = 15.0
    provider_concurrency: Annotated[int, Field(ge=1, le=32)] = (
        DEFAULT_PROVIDER_CONCURRENCY
    )
    enrich_providers: bool = Field(
        default=True,
        description="Look up streaming providers for feed and similar results",
    )
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("language")
    @classmethod
    def normalize_language(cls, v: str) -> str:
        """Normalize "en_US" style tags to BCP-47 "en-US"."""
        return v.strip().replace("_", "-")

    @field_validator("region")
    @classmethod
    def normalize_region(cls, v: str) -> str:
        """Upper-case the ISO-3166 region code."""
        return v.strip().upper()

    @field_validator("base_url", "image_root")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so paths join cleanly."""
        return v.rstrip("/")
