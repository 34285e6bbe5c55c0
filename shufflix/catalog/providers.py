"""Streaming provider name canonicalization.

Catalog provider names carry tier and channel suffixes ("Netflix basic
with Ads", "Paramount Plus Apple TV Channel"). These helpers collapse them
to a brand name so the deck's provider facet stays short.
"""

import re
from urllib.parse import quote_plus

from shufflix.catalog.constants import LOGO_SIZE, TMDB_IMAGE_ROOT
from shufflix.catalog.mapping import image_url
from shufflix.data_model import ProviderLink


_SUFFIX_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\s+(with\s+ads|basic\s+with\s+ads|standard|basic|premium|uhd|4k|hd"
        r"|originals?|channel|channels|add-?on|subscription|trial)\s*$",
        re.IGNORECASE,
    ),
    re.compile(r"\s+(on|via|through)\s+.*$", re.IGNORECASE),
    re.compile(r"\s*\((ads?|via.*|channel|premium|originals?)\)\s*$", re.IGNORECASE),
)

_MULTI_SPACE = re.compile(r" {2,}")

# Ordered: first matching fragment wins
_BRANDS: tuple[tuple[str, str], ...] = (
    ("paramount", "Paramount+"),
    ("prime video", "Prime Video"),
    ("amazon", "Prime Video"),
    ("apple tv+", "Apple TV+"),
    ("apple tv plus", "Apple TV+"),
    ("disney", "Disney+"),
    ("peacock", "Peacock"),
    ("hulu", "Hulu"),
    ("netflix", "Netflix"),
    ("starz", "STARZ"),
    ("showtime", "Showtime"),
    ("tubi", "Tubi"),
    ("pluto", "Pluto TV"),
    ("youtube", "YouTube"),
)


def canonicalize_provider_name(raw: str) -> str:
    """Collapse a catalog provider name to its brand.

    Args:
        raw: Provider name as returned by the catalog.

    Returns:
        Brand name, or the cleaned input when no brand is recognised.
    """
    name = raw.strip()
    for pattern in _SUFFIX_PATTERNS:
        name = pattern.sub("", name)

    lower = name.lower()
    if lower == "max" or "hbo max" in lower or " max " in lower:
        return "Max"
    for fragment, brand in _BRANDS:
        if fragment in lower:
            return brand
    return _MULTI_SPACE.sub(" ", name).strip()


def build_provider_links(
    offers: list[dict[str, object]],
    image_root: str = TMDB_IMAGE_ROOT,
) -> tuple[ProviderLink, ...]:
    """Build deduplicated, name-sorted provider links from flatrate offers.

    Args:
        offers: Region "flatrate" entries with provider_id, provider_name
            and logo_path keys.
        image_root: Root of the image CDN for logos.

    Returns:
        Provider links sorted case-insensitively by brand name.
    """
    seen_ids: set[object] = set()
    seen_brands: set[str] = set()
    links: list[ProviderLink] = []

    for offer in offers:
        provider_id = offer.get("provider_id")
        if provider_id in seen_ids:
            continue
        seen_ids.add(provider_id)

        brand = canonicalize_provider_name(str(offer.get("provider_name") or ""))
        if not brand or brand in seen_brands:
            continue
        seen_brands.add(brand)

        logo_path = offer.get("logo_path")
        links.append(
            ProviderLink(
                name=brand,
                url=f"https://www.google.com/search?q={quote_plus(brand)}",
                logo_url=image_url(
                    logo_path if isinstance(logo_path, str) else None,
                    LOGO_SIZE,
                    image_root,
                ),
            )
        )

    return tuple(sorted(links, key=lambda link: link.name.casefold()))
