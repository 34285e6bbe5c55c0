"""Unit tests for provider name canonicalization."""

import pytest

from shufflix.catalog.providers import build_provider_links, canonicalize_provider_name


class TestCanonicalizeProviderName:
    """Tests for brand collapsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Netflix", "Netflix"),
            ("Netflix basic with Ads", "Netflix"),
            ("Netflix Standard with Ads", "Netflix"),
            ("Paramount Plus Apple TV Channel", "Paramount+"),
            ("Paramount+ Amazon Channel", "Paramount+"),
            ("Amazon Prime Video", "Prime Video"),
            ("Apple TV Plus", "Apple TV+"),
            ("Disney Plus", "Disney+"),
            ("HBO Max", "Max"),
            ("Max", "Max"),
            ("Peacock Premium", "Peacock"),
            ("Hulu", "Hulu"),
            ("Crunchyroll", "Crunchyroll"),
            ("  Mubi   ", "Mubi"),
        ],
    )
    def test_brands(self, raw: str, expected: str) -> None:
        """Test tier and channel variants collapse to one brand."""
        assert canonicalize_provider_name(raw) == expected


class TestBuildProviderLinks:
    """Tests for provider link construction."""

    def test_dedupes_and_sorts(self) -> None:
        """Test duplicate ids and brands collapse and names sort."""
        offers: list[dict[str, object]] = [
            {"provider_id": 8, "provider_name": "Netflix", "logo_path": "/n.png"},
            {"provider_id": 1796, "provider_name": "Netflix basic with Ads", "logo_path": "/n2.png"},
            {"provider_id": 8, "provider_name": "Netflix", "logo_path": "/n.png"},
            {"provider_id": 15, "provider_name": "Hulu", "logo_path": None},
        ]
        links = build_provider_links(offers)

        assert [link.name for link in links] == ["Hulu", "Netflix"]
        netflix = links[1]
        assert netflix.logo_url == "https://image.tmdb.org/t/p/w342/n.png"
        assert netflix.url == "https://www.google.com/search?q=Netflix"
        assert links[0].logo_url is None

    def test_empty(self) -> None:
        """Test no offers yields no links."""
        assert build_provider_links([]) == ()
