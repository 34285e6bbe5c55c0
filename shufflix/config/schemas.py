"""Configuration schemas for the deck, search and catalog."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shufflix.catalog.config import CatalogConfig
from shufflix.catalog.models import Feed


class DeckConfig(BaseModel):
    """Deck refill policy.

    Attributes:
        prefetch_threshold: Deck size below which a background load starts.
            A refresh fills to twice this value.
        similar_limit: Maximum cards added by one similar-title injection.
        max_batches_per_feed: Load loop bound, as batches per feed.
        feeds: Feeds in rotation order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    prefetch_threshold: Annotated[int, Field(ge=1, le=100)] = 6
    similar_limit: Annotated[int, Field(ge=0, le=50)] = 10
    max_batches_per_feed: Annotated[int, Field(ge=1, le=10)] = 3
    feeds: Annotated[tuple[Feed, ...], Field(min_length=1)] = tuple(Feed)

    @field_validator("feeds")
    @classmethod
    def validate_unique_feeds(cls, v: tuple[Feed, ...]) -> tuple[Feed, ...]:
        """Each feed may appear once in the rotation."""
        if len(set(v)) != len(v):
            msg = "feeds must not repeat"
            raise ValueError(msg)
        return v


class SearchConfig(BaseModel):
    """Search behaviour.

    Attributes:
        page_limit: Result pages requested per search scope.
        result_limit: Maximum ranked results returned.
        min_query_length: Queries shorter than this clear the results.
        rescue_min_results: Ranked results below this trigger the rescue pass.
        history_limit: Recent queries remembered.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    page_limit: Annotated[int, Field(ge=1, le=10)] = 3
    result_limit: Annotated[int, Field(ge=1, le=500)] = 80
    min_query_length: Annotated[int, Field(ge=1, le=10)] = 2
    rescue_min_results: Annotated[int, Field(ge=0, le=50)] = 3
    history_limit: Annotated[int, Field(ge=0, le=100)] = 10


class ShufflixConfig(BaseModel):
    """Root configuration document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    deck: DeckConfig = Field(default_factory=DeckConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
