"""Constants for the search ranker and rescue pass."""

# English function words ignored when tokenizing
STOPWORDS: frozenset[str] = frozenset(
    {"the", "a", "an", "of", "and", "or", "to", "in", "on", "at", "for", "with", "from"}
)

# Results returned by rank() when the caller gives no limit
DEFAULT_RANK_LIMIT = 60

# Recall-first keep threshold
KEEP_THRESHOLD = 10

# Bounded fan-in: candidates scanned, and kept, before sorting
MAX_SCANNED = 512
MAX_KEPT = 100

MAX_SCORE = 100

# A variant scoring this high ends the variant loop for that candidate
EARLY_EXIT_SCORE = 98

# Match boosts (mutually exclusive, highest applicable)
EXACT_MATCH_BOOST = 50
WORD_PREFIX_BOOST = 30
WHOLE_WORD_BOOST = 20
SUBSTRING_BOOST = 15

# Typo tolerance
MAX_EDIT_DISTANCE = 2
TYPO_MIN_QUERY_LENGTH = 3
TYPO_MAX_QUERY_LENGTH = 32
TYPO_BOOST_PER_STEP = 8

# Year alignment
YEAR_BOOST = 8
YEAR_MIN = 1900
YEAR_MAX = 2100

# Popularity: clamp(int(SLOPE * ln(votes) + OFFSET), 0, CAP)
POPULARITY_SLOPE = 4.5
POPULARITY_OFFSET = -9.0
POPULARITY_CAP = 20

# Queries containing the trigger also try each regional suffix
DISAMBIGUATION_TRIGGER = "office"
DISAMBIGUATION_SUFFIXES: tuple[str, ...] = ("us", "uk")

# Rescue pass scores
RESCUE_EXACT_SCORE = 100
RESCUE_PREFIX_SCORE = 90
RESCUE_SUBSTRING_SCORE = 80
