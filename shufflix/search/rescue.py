"""Exact/prefix/substring rescue for sparse search results."""

from collections.abc import Sequence

from shufflix.data_model import Candidate
from shufflix.search.constants import (
    RESCUE_EXACT_SCORE,
    RESCUE_PREFIX_SCORE,
    RESCUE_SUBSTRING_SCORE,
)
from shufflix.search.normalize import normalize


def rescue_score(normalized_query: str, candidate: Candidate) -> int:
    """Literal match score of a candidate name against a normalized query.

    Returns:
        100 for an exact match, 90 for a prefix, 80 for a substring,
        otherwise 0.
    """
    name = normalize(candidate.name)
    if name == normalized_query:
        return RESCUE_EXACT_SCORE
    if name.startswith(normalized_query):
        return RESCUE_PREFIX_SCORE
    if normalized_query in name:
        return RESCUE_SUBSTRING_SCORE
    return 0


def needs_rescue(ranked: Sequence[Candidate], minimum: int) -> bool:
    """Whether a ranked result is sparse enough to warrant the rescue pass."""
    return len(ranked) < minimum


def rescue(
    query: str,
    quick_items: Sequence[Candidate],
    ranked: Sequence[Candidate],
) -> list[Candidate]:
    """Put literal matches the fuzzy ranker missed in front of its results.

    Matches not already ranked are placed in front as one block, best
    first, and the ranked order is preserved after them.

    Args:
        query: Raw query text.
        quick_items: Unranked candidates the ranker was given.
        ranked: Ranker output.

    Returns:
        Rescued candidates followed by the ranked ones.
    """
    normalized = normalize(query)
    if not normalized:
        return list(ranked)

    boosted: list[tuple[Candidate, int]] = []
    for item in quick_items:
        score = rescue_score(normalized, item)
        if score > 0:
            boosted.append((item, score))
    boosted.sort(key=lambda pair: -pair[1])

    present = {c.key for c in ranked}
    rescued: list[Candidate] = []
    for item, _ in boosted:
        if item.key in present:
            continue
        present.add(item.key)
        rescued.append(item)
    return [*rescued, *ranked]
