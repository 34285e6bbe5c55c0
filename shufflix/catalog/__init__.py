"""Catalog layer: feed, similar-title and search queries against TMDB.

This module provides:
- The CatalogClient protocol consumed by the deck and search
- An async TMDB implementation with retries and provider enrichment
- Mapping from raw records to Candidates
- Metrics collection for observability
"""

from shufflix.catalog.client import TmdbCatalogClient
from shufflix.catalog.config import CatalogConfig
from shufflix.catalog.constants import GENRE_IDS, GENRE_NAMES, MAX_QUICK_MAPPED
from shufflix.catalog.mapping import image_url, infer_media_kind, to_candidate, to_candidates
from shufflix.catalog.metrics import CatalogMetrics
from shufflix.catalog.models import (
    CatalogError,
    CatalogErrorClass,
    Feed,
    RawCandidate,
    RetryPolicy,
    SearchScope,
)
from shufflix.catalog.protocols import CatalogClient
from shufflix.catalog.providers import build_provider_links, canonicalize_provider_name


__all__ = [
    # Client
    "CatalogClient",
    "TmdbCatalogClient",
    # Config
    "CatalogConfig",
    "RetryPolicy",
    # Models
    "CatalogError",
    "CatalogErrorClass",
    "Feed",
    "RawCandidate",
    "SearchScope",
    # Mapping
    "image_url",
    "infer_media_kind",
    "to_candidate",
    "to_candidates",
    "build_provider_links",
    "canonicalize_provider_name",
    # Constants
    "GENRE_IDS",
    "GENRE_NAMES",
    "MAX_QUICK_MAPPED",
    # Metrics
    "CatalogMetrics",
]
