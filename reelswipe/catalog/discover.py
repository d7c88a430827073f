"""Translate user preferences into TMDB discover filters."""

from typing import Any

from reelswipe.core.contracts import UserPreferences
from reelswipe.providers.tmdb_client import CERTIFICATION_COUNTRY, genre_name_to_id

LANGUAGE_CODES: dict[str, str] = {
    "English": "en",
    "Spanish": "es",
    "French": "fr",
    "German": "de",
    "Italian": "it",
    "Portuguese": "pt",
    "Japanese": "ja",
    "Korean": "ko",
    "Chinese": "zh",
    "Hindi": "hi",
    "Russian": "ru",
    "Ukrainian": "uk",
    "Polish": "pl",
    "Swedish": "sv",
    "Danish": "da",
    "Turkish": "tr",
}

PREFERRED_GENRE_WEIGHT = 7
AVOIDED_GENRE_WEIGHT = 2
MIN_VOTE_COUNT = 50


def discover_params(prefs: UserPreferences) -> dict[str, Any]:
    """Build /discover/movie query parameters.

    Strongly weighted genres are OR-ed together; genres weighted at the
    bottom of the scale are excluded.
    """
    params: dict[str, Any] = {
        "sort_by": "popularity.desc",
        "include_adult": "false",
        "vote_count.gte": MIN_VOTE_COUNT,
        "primary_release_date.gte": f"{int(prefs.year_range[0])}-01-01",
        "primary_release_date.lte": f"{int(prefs.year_range[1])}-12-31",
        "with_runtime.gte": int(prefs.runtime_range[0]),
        "with_runtime.lte": int(prefs.runtime_range[1]),
        "vote_average.gte": prefs.rating_range[0],
        "vote_average.lte": prefs.rating_range[1],
    }

    preferred = []
    avoided = []
    for name, weight in prefs.genres.items():
        genre_id = genre_name_to_id(name)
        if genre_id is None:
            continue
        if weight >= PREFERRED_GENRE_WEIGHT:
            preferred.append(str(genre_id))
        elif weight <= AVOIDED_GENRE_WEIGHT:
            avoided.append(str(genre_id))
    if preferred:
        params["with_genres"] = "|".join(sorted(preferred))
    if avoided:
        params["without_genres"] = ",".join(sorted(avoided))

    if prefs.age_rating != "Any":
        params["certification_country"] = CERTIFICATION_COUNTRY
        params["certification.lte"] = prefs.age_rating

    code = LANGUAGE_CODES.get(prefs.language)
    if code:
        params["with_original_language"] = code

    return params
