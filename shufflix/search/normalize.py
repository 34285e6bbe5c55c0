"""Text normalization shared by the ranker, the rescue pass and search sessions."""

import re
import unicodedata

from shufflix.search.constants import (
    DISAMBIGUATION_SUFFIXES,
    DISAMBIGUATION_TRIGGER,
    STOPWORDS,
    YEAR_MAX,
    YEAR_MIN,
)


_NON_ALNUM_RUN = re.compile(r"[\W_]+")


def normalize(text: str) -> str:
    """Fold case and diacritics and collapse punctuation to single spaces.

    Args:
        text: Raw title or query.

    Returns:
        Lower-case alphanumeric words separated by single spaces.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM_RUN.sub(" ", stripped.casefold()).strip()


def token_set(normalized: str) -> frozenset[str]:
    """Split a normalized string into words, minus stopwords."""
    return frozenset(word for word in normalized.split(" ") if word and word not in STOPWORDS)


def extract_year(normalized: str) -> int | None:
    """Return the first token that reads as a plausible release year."""
    for word in normalized.split(" "):
        if word.isdigit() and YEAR_MIN <= int(word) <= YEAR_MAX:
            return int(word)
    return None


def query_variants(normalized: str) -> list[str]:
    """Alternate spellings of a normalized query to score against.

    The query itself comes first, then the query without stopwords, then
    the regional variants for the one title family that needs them.
    """
    variants = [normalized]

    without_stopwords = " ".join(w for w in normalized.split(" ") if w not in STOPWORDS)
    if without_stopwords and without_stopwords not in variants:
        variants.append(without_stopwords)

    if DISAMBIGUATION_TRIGGER in normalized:
        for suffix in DISAMBIGUATION_SUFFIXES:
            variant = f"{normalized} {suffix}"
            if variant not in variants:
                variants.append(variant)

    return variants
