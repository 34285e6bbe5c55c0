"""Configuration loading and validation module."""

from shufflix.config.loader import ConfigValidationError, load_config
from shufflix.config.schemas import DeckConfig, SearchConfig, ShufflixConfig


__all__ = [
    "ConfigValidationError",
    "DeckConfig",
    "SearchConfig",
    "ShufflixConfig",
    "load_config",
]
