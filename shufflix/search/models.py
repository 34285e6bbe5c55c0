"""Data models for search results."""

from dataclasses import dataclass

from shufflix.data_model import Candidate


@dataclass(frozen=True)
class ScoredTitle:
    """A candidate with its relevance score.

    Attributes:
        candidate: Ranked title.
        score: Integer relevance in [0, 100].
    """

    candidate: Candidate
    score: int

    def sort_key(self) -> tuple[int, int, float, str]:
        """Ordering key: score, votes, rating (all descending), then name."""
        return (
            -self.score,
            -(self.candidate.vote_count or 0),
            -(self.candidate.rating or 0.0),
            self.candidate.name.casefold(),
        )
