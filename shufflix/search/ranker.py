"""Fuzzy, recall-first title ranking.

Scoring formula, per query variant:
    score = jaccard + match_boost + typo_boost + year_boost + popularity

Where:
    - jaccard: token-set Jaccard similarity x 100 (stopwords removed)
    - match_boost: exact 50, else word prefix 30, else whole word 20,
      else substring 15
    - typo_boost: (2 - edits + 1) x 8 when the whole-string edit distance
      is at most 2
    - year_boost: 8 when a year in the query equals the title's year
    - popularity: log-scale vote count bonus, up to 20, added only when
      jaccard, match_boost or typo_boost is non-zero

The best variant wins and the total is capped at 100. Ranking is pure and
deterministic; it holds no state between calls.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from shufflix.data_model import Candidate, TitleKey
from shufflix.search.constants import (
    DEFAULT_RANK_LIMIT,
    EARLY_EXIT_SCORE,
    EXACT_MATCH_BOOST,
    KEEP_THRESHOLD,
    MAX_EDIT_DISTANCE,
    MAX_KEPT,
    MAX_SCANNED,
    MAX_SCORE,
    POPULARITY_CAP,
    POPULARITY_OFFSET,
    POPULARITY_SLOPE,
    SUBSTRING_BOOST,
    TYPO_BOOST_PER_STEP,
    TYPO_MAX_QUERY_LENGTH,
    TYPO_MIN_QUERY_LENGTH,
    WHOLE_WORD_BOOST,
    WORD_PREFIX_BOOST,
    YEAR_BOOST,
)
from shufflix.search.edit_distance import capped_edit_distance
from shufflix.search.models import ScoredTitle
from shufflix.search.normalize import extract_year, normalize, query_variants, token_set


@dataclass(frozen=True)
class PreparedQuery:
    """A normalized query with its variants tokenized once."""

    variants: tuple[str, ...]
    variant_tokens: tuple[frozenset[str], ...]
    year: int | None

    @classmethod
    def from_text(cls, query: str) -> "PreparedQuery | None":
        """Prepare a raw query, or return None when it normalizes to empty."""
        normalized = normalize(query)
        if not normalized:
            return None
        variants = tuple(query_variants(normalized))
        return cls(
            variants=variants,
            variant_tokens=tuple(token_set(v) for v in variants),
            year=extract_year(normalized),
        )


def jaccard_score(a: frozenset[str], b: frozenset[str]) -> int:
    """Jaccard similarity of two token sets, scaled to 0-100 and truncated."""
    if not a or not b:
        return 0
    return int(len(a & b) / len(a | b) * 100)


def match_boost(title: str, variant: str) -> int:
    """Boost for the strongest textual match of a variant within a title."""
    if title == variant:
        return EXACT_MATCH_BOOST
    words = title.split(" ")
    if any(word.startswith(variant) for word in words):
        return WORD_PREFIX_BOOST
    if variant in words:
        return WHOLE_WORD_BOOST
    if variant in title:
        return SUBSTRING_BOOST
    return 0


def typo_boost(title: str, variant: str) -> int:
    """Boost for titles within a couple of edits of the variant."""
    if not TYPO_MIN_QUERY_LENGTH <= len(variant) <= TYPO_MAX_QUERY_LENGTH:
        return 0
    edits = capped_edit_distance(variant, title, MAX_EDIT_DISTANCE)
    if edits > MAX_EDIT_DISTANCE:
        return 0
    return (MAX_EDIT_DISTANCE - edits + 1) * TYPO_BOOST_PER_STEP


def popularity_score(vote_count: int | None) -> int:
    """Log-scale bonus for well-known titles."""
    if not vote_count or vote_count <= 0:
        return 0
    raw = int(POPULARITY_SLOPE * math.log(vote_count) + POPULARITY_OFFSET)
    return max(0, min(POPULARITY_CAP, raw))


def _year_matches(year: int | None, candidate: Candidate) -> bool:
    return year is not None and candidate.year.isdigit() and int(candidate.year) == year


def _score_prepared(
    prepared: PreparedQuery,
    title: str,
    title_tokens: frozenset[str],
    candidate: Candidate,
) -> int:
    year_bonus = YEAR_BOOST if _year_matches(prepared.year, candidate) else 0
    popularity = popularity_score(candidate.vote_count)

    best = 0
    for variant, tokens in zip(prepared.variants, prepared.variant_tokens, strict=True):
        textual = (
            jaccard_score(tokens, title_tokens)
            + match_boost(title, variant)
            + typo_boost(title, variant)
        )
        # No popularity bonus without a textual match
        total = textual + year_bonus + (popularity if textual > 0 else 0)
        best = max(best, min(MAX_SCORE, total))
        if best >= EARLY_EXIT_SCORE:
            break
    return best


def score_candidate(query: str, candidate: Candidate) -> int:
    """Score a single candidate against a query.

    Args:
        query: Raw query text.
        candidate: Candidate to score.

    Returns:
        Integer score in [0, 100]; 0 for an empty query.
    """
    prepared = PreparedQuery.from_text(query)
    if prepared is None:
        return 0
    title = normalize(candidate.name)
    return _score_prepared(prepared, title, token_set(title), candidate)


def rank_scored(
    query: str,
    candidates: Sequence[Candidate],
    limit: int = DEFAULT_RANK_LIMIT,
) -> list[ScoredTitle]:
    """Rank candidates and keep their scores.

    Args:
        query: Raw query text.
        candidates: Candidates in upstream order.
        limit: Maximum number of results.

    Returns:
        Scored titles, best first, unique by (id, media_kind). For an
        empty query, the first ``limit`` candidates with score 0.
    """
    if limit <= 0:
        return []

    prepared = PreparedQuery.from_text(query)
    if prepared is None:
        return [ScoredTitle(c, 0) for c in candidates[:limit]]

    titles: dict[str, tuple[str, frozenset[str]]] = {}
    kept: list[ScoredTitle] = []

    for candidate in candidates[:MAX_SCANNED]:
        cached = titles.get(candidate.name)
        if cached is None:
            title = normalize(candidate.name)
            cached = (title, token_set(title))
            titles[candidate.name] = cached

        score = _score_prepared(prepared, cached[0], cached[1], candidate)
        if score >= KEEP_THRESHOLD:
            kept.append(ScoredTitle(candidate, score))
            if len(kept) >= MAX_KEPT:
                break

    kept.sort(key=ScoredTitle.sort_key)

    seen: set[TitleKey] = set()
    ranked: list[ScoredTitle] = []
    for scored in kept:
        key = scored.candidate.key
        if key in seen:
            continue
        seen.add(key)
        ranked.append(scored)
        if len(ranked) >= limit:
            break
    return ranked


def rank(
    query: str,
    candidates: Sequence[Candidate],
    limit: int = DEFAULT_RANK_LIMIT,
) -> list[Candidate]:
    """Rank candidates by fuzzy relevance to a query.

    Args:
        query: Raw query text.
        candidates: Candidates in upstream order.
        limit: Maximum number of results.

    Returns:
        Candidates, best first, unique by (id, media_kind).
    """
    return [scored.candidate for scored in rank_scored(query, candidates, limit)]
