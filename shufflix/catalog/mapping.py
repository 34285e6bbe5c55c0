"""Mapping from raw catalog records to Candidates."""

from urllib.parse import quote

from shufflix.catalog.constants import (
    GENRE_NAMES,
    POSTER_SIZE,
    TMDB_IMAGE_ROOT,
)
from shufflix.catalog.models import RawCandidate
from shufflix.data_model import Candidate, MediaKind


UNTITLED = "Untitled"


def image_url(
    path: str | None,
    size: str = POSTER_SIZE,
    image_root: str = TMDB_IMAGE_ROOT,
) -> str | None:
    """Build an absolute image URL from a catalog file path.

    Args:
        path: File path such as "/abc123.jpg", or an absolute URL.
        size: Image size segment.
        image_root: Root of the image CDN.

    Returns:
        Absolute URL, the input itself if already absolute, or None for
        empty and "null" paths.
    """
    if path is None:
        return None
    raw = path.strip()
    if not raw or raw.lower() == "null":
        return None
    if raw.startswith(("http://", "https://")):
        return raw

    segments = [quote(segment) for segment in raw.split("/") if segment]
    if not segments:
        return None
    return f"{image_root.rstrip('/')}/{size}/{'/'.join(segments)}"


def year_from_date(date: str | None) -> str:
    """Extract the year prefix of an ISO "YYYY-MM-DD" date.

    Args:
        date: Date string, possibly None or blank.

    Returns:
        The first four characters, or "" when unavailable.
    """
    if date is None:
        return ""
    value = date.strip()
    if len(value) < 4:
        return ""
    return value[:4]


def infer_media_kind(raw: RawCandidate) -> MediaKind:
    """Infer the media kind of a raw record.

    An explicit ``media_type`` wins. Multi-search and list endpoints often
    omit it, so a record with an air date and no title is treated as TV and
    everything else as a movie.

    Args:
        raw: Raw catalog record.

    Returns:
        Inferred media kind.
    """
    explicit = MediaKind.from_loose(raw.media_type)
    if explicit != MediaKind.UNKNOWN:
        return explicit
    if raw.media_type:
        # Labelled, but not as movie or tv (e.g. "person")
        return MediaKind.UNKNOWN
    if raw.first_air_date is not None and raw.title is None:
        return MediaKind.TV
    return MediaKind.MOVIE


def genre_names(genre_ids: list[int]) -> tuple[str, ...]:
    """Translate genre ids to names, dropping unknown ids."""
    return tuple(GENRE_NAMES[g] for g in genre_ids if g in GENRE_NAMES)


def to_candidate(
    raw: RawCandidate,
    media_kind: MediaKind | None = None,
    image_root: str = TMDB_IMAGE_ROOT,
) -> Candidate:
    """Convert a raw record to a Candidate.

    Args:
        raw: Raw catalog record.
        media_kind: Kind to force (e.g. for single-kind endpoints); inferred
            when None.
        image_root: Root of the image CDN.

    Returns:
        Candidate with defaults for every missing optional field.
    """
    kind = media_kind if media_kind is not None else infer_media_kind(raw)
    return Candidate(
        id=raw.id,
        media_kind=kind,
        name=raw.title or raw.name or UNTITLED,
        year=year_from_date(raw.release_date or raw.first_air_date),
        overview=raw.overview or "",
        poster_ref=image_url(raw.poster_path, POSTER_SIZE, image_root),
        genres=genre_names(raw.genre_ids),
        providers=raw.providers,
        rating=raw.vote_average,
        vote_count=raw.vote_count,
    )


def to_candidates(
    records: list[RawCandidate],
    limit: int | None = None,
    image_root: str = TMDB_IMAGE_ROOT,
) -> list[Candidate]:
    """Convert raw records to Candidates, preserving order.

    Args:
        records: Raw catalog records.
        limit: Maximum number of records to map, or None for all.
        image_root: Root of the image CDN.

    Returns:
        Mapped candidates.
    """
    selected = records if limit is None else records[:limit]
    return [to_candidate(r, image_root=image_root) for r in selected]
