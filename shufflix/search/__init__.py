"""Fuzzy title search.

This module provides:
- rank: pure, deterministic fuzzy ranking of candidates
- rescue: literal-match fallback for sparse rankings
- search_titles / SearchSession: catalog search composed with both
"""

from shufflix.search.edit_distance import capped_edit_distance
from shufflix.search.models import ScoredTitle
from shufflix.search.normalize import normalize, query_variants, token_set
from shufflix.search.ranker import rank, rank_scored, score_candidate
from shufflix.search.rescue import needs_rescue, rescue, rescue_score
from shufflix.search.service import SearchSession, humanize_error, search_titles


__all__ = [
    # Ranking
    "rank",
    "rank_scored",
    "score_candidate",
    "ScoredTitle",
    # Rescue
    "needs_rescue",
    "rescue",
    "rescue_score",
    # Service
    "SearchSession",
    "humanize_error",
    "search_titles",
    # Text
    "capped_edit_distance",
    "normalize",
    "query_variants",
    "token_set",
]
