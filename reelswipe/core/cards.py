"""Boundary normalization of loosely shaped movie payloads into MovieCard."""

import math
import re
from typing import Any, Iterable

from reelswipe.core.contracts import MovieCard
from reelswipe.logging import get_logger
from reelswipe.providers.tmdb_client import genre_ids_to_names

logger = get_logger(__name__)

_DIGITS_RE = re.compile(r"^\d+$")

# Checked in order; the first present value wins
ID_KEYS = ("tmdbId", "tmdb_id", "movieId", "movie_id", "id")


def parse_catalog_id(value: Any) -> int | None:
    """Parse a catalog ID sent as a number or a numeric string.

    Returns None for anything that is not a positive integer: booleans,
    NaN, infinities, fractional floats, blank or non-numeric strings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value) if value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        if not _DIGITS_RE.match(text):
            return None
        number = int(text)
        return number if number > 0 else None
    return None


def card_key(index: int, tmdb_id: int | None, title: str) -> str:
    """Render key: the catalog ID, or an index-based key that is never numeric."""
    if tmdb_id is not None:
        return str(tmdb_id)
    return f"idx-{index}-{title}"


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> int | None:
    number = _as_float(value)
    return int(number) if number is not None else None


def _names(value: Any) -> tuple[str, ...]:
    """Names from a list of strings or of {"name": ...} objects."""
    if not isinstance(value, (list, tuple)):
        return ()
    names = []
    for entry in value:
        if isinstance(entry, str) and entry.strip():
            names.append(entry.strip())
        elif isinstance(entry, dict) and entry.get("name"):
            names.append(str(entry["name"]))
    return tuple(names)


def card_fields(raw: dict[str, Any]) -> dict[str, Any]:
    """Extract MovieCard fields from a raw payload without validating the ID.

    The tmdb_id value is returned parsed (int or None).
    """
    genres = _names(raw.get("genres"))
    if not genres and isinstance(raw.get("genre_ids"), list):
        genres = tuple(genre_ids_to_names([g for g in raw["genre_ids"] if isinstance(g, int)]))

    release_date = _first(raw, "releaseDate", "release_date")
    if release_date is None and _as_int(raw.get("year")):
        release_date = str(_as_int(raw["year"]))

    return {
        "tmdb_id": parse_catalog_id(_first(raw, *ID_KEYS)),
        "title": str(_first(raw, "title", "movieTitle", "name") or ""),
        "poster_path": _first(raw, "posterPath", "poster_path", "moviePoster"),
        "overview": str(raw.get("overview") or ""),
        "release_date": str(release_date) if release_date is not None else None,
        "genres": genres,
        "vote_average": _as_float(_first(raw, "voteAverage", "vote_average")),
        "runtime": _as_int(raw.get("runtime")),
        "match_score": _as_float(_first(raw, "matchScore", "match_score")),
        "match_reason": _first(raw, "matchReason", "match_reason"),
        "age_rating": _first(raw, "ageRating", "age_rating", "certification"),
        "language": _first(raw, "language", "original_language"),
        "director": _first(raw, "director"),
        "keywords": _names(raw.get("keywords")),
    }


def normalize_card(raw: Any) -> MovieCard | None:
    """Normalize one payload; None when it has no valid catalog ID."""
    if isinstance(raw, MovieCard):
        return raw
    if not isinstance(raw, dict):
        return None
    fields = card_fields(raw)
    if fields["tmdb_id"] is None:
        return None
    return MovieCard(**fields)


def normalize_cards(raws: Iterable[Any]) -> list[MovieCard]:
    """Normalize a list, keeping order and dropping malformed entries."""
    cards = []
    for index, raw in enumerate(raws):
        card = normalize_card(raw)
        if card is None:
            logger.warning(f"Dropping movie payload #{index} without a valid catalog ID")
            continue
        cards.append(card)
    return cards
