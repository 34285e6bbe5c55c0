"""Unit tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from shufflix.catalog import Feed
from shufflix.config import ConfigValidationError, DeckConfig, ShufflixConfig, load_config


class TestLoadConfig:
    """Tests for load_config()."""

    def test_none_gives_defaults(self) -> None:
        """Test no path yields the built-in defaults."""
        config = load_config(None)

        assert config == ShufflixConfig()
        assert config.deck.prefetch_threshold == 6
        assert config.deck.feeds == tuple(Feed)
        assert config.search.page_limit == 3

    def test_valid_file(self, tmp_path: Path) -> None:
        """Test a partial YAML file overrides only what it names."""
        path = tmp_path / "shufflix.yaml"
        path.write_text(
            "deck:\n"
            "  prefetch_threshold: 4\n"
            "  feeds: [trending_week, discover_tv]\n"
            "catalog:\n"
            "  region: gb\n"
            "  language: en_GB\n"
            "search:\n"
            "  history_limit: 5\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.deck.prefetch_threshold == 4
        assert config.deck.feeds == (Feed.TRENDING_WEEK, Feed.DISCOVER_TV)
        assert config.deck.similar_limit == 10
        assert config.catalog.region == "GB"
        assert config.catalog.language == "en-GB"
        assert config.search.history_limit == 5

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file means defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == ShufflixConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises a validation error."""
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(tmp_path / "nope.yaml")

        assert exc_info.value.errors[0]["type"] == "file_not_found"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test broken YAML is reported."""
        path = tmp_path / "bad.yaml"
        path.write_text("deck: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)

        assert exc_info.value.errors[0]["type"] == "yaml_parse_error"

    def test_schema_errors_listed(self, tmp_path: Path) -> None:
        """Test every schema violation is collected with its location."""
        path = tmp_path / "invalid.yaml"
        path.write_text(
            "deck:\n  prefetch_threshold: 0\n  feeds: [not_a_feed]\nunknown: 1\n",
            encoding="utf-8",
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)

        locations = {e["loc"] for e in exc_info.value.errors}
        assert "deck.prefetch_threshold" in locations
        assert "unknown" in locations
        assert any(loc.startswith("deck.feeds") for loc in locations)
        assert exc_info.value.to_dict()["file_path"] == str(path)


class TestDeckConfig:
    """Tests for DeckConfig validation."""

    def test_repeated_feeds_rejected(self) -> None:
        """Test a feed may appear once in the rotation."""
        with pytest.raises(ValidationError, match="feeds must not repeat"):
            DeckConfig(feeds=(Feed.TOP_TV, Feed.TOP_TV))

    def test_empty_feeds_rejected(self) -> None:
        """Test the rotation needs at least one feed."""
        with pytest.raises(ValidationError):
            DeckConfig(feeds=())
