"""Constants for the TMDB catalog client.

Centralizes endpoint roots, HTTP status ranges and the genre table so the
client and the mappers share one definition.
"""

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_ROOT = "https://image.tmdb.org/t/p"

# Poster/backdrop sizes accepted by the image CDN
IMAGE_SIZES: frozenset[str] = frozenset(
    {"w92", "w154", "w185", "w342", "w500", "w780", "w1280", "original"}
)
POSTER_SIZE = "w500"
LOGO_SIZE = "w342"

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Maximum retry delay cap for rate limiting (seconds)
MAX_RETRY_AFTER_SECONDS = 10

# Results mapped per feed page (with provider enrichment)
MAX_ENRICHED_PER_PAGE = 60

# Results mapped per search (quick path, no provider round-trips)
MAX_QUICK_MAPPED = 80

# Simultaneous watch-provider lookups per client
DEFAULT_PROVIDER_CONCURRENCY = 8

# Discover feeds only surface titles with at least this many votes
DISCOVER_MIN_VOTES = 100

DISCOVER_MONETIZATION_TYPES = "flatrate|free|ads|rent|buy"

# TMDB genre id -> display name
GENRE_NAMES: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Sci-Fi",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}

GENRE_IDS: dict[str, int] = {name: genre_id for genre_id, name in GENRE_NAMES.items()}
