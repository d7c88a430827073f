"""Movie catalog service: random picks, preference search and details."""

import asyncio
from dataclasses import replace
from typing import Any

from reelswipe.catalog.discover import discover_params
from reelswipe.core.cards import normalize_card
from reelswipe.core.contracts import MovieCard, UserPreferences
from reelswipe.llm.llm_adapter import LLMDisabledError, LLMError, llm_available
from reelswipe.llm.suggestions import MovieSuggestion, suggest_movies
from reelswipe.logging import get_logger
from reelswipe.providers.tmdb_client import (
    TMDBClient,
    TMDBError,
    extract_age_rating,
    extract_director,
    extract_keywords,
)

logger = get_logger(__name__)

# Concurrent TMDB lookups when resolving suggested titles
RESOLVE_CONCURRENCY = 5
MAX_RESULT_COUNT = 50


def details_to_card(details: dict[str, Any]) -> MovieCard | None:
    """Build a full card from /movie/{id} details with appended blocks."""
    card = normalize_card(details)
    if card is None:
        return None
    return MovieCard(
        tmdb_id=card.tmdb_id,
        title=card.title,
        poster_path=card.poster_path,
        overview=card.overview,
        release_date=card.release_date,
        genres=card.genres,
        vote_average=card.vote_average,
        runtime=card.runtime,
        age_rating=extract_age_rating(details),
        language=details.get("original_language"),
        director=extract_director(details),
        keywords=tuple(extract_keywords(details)),
    )


def card_to_movie_data(card: MovieCard) -> dict[str, Any]:
    """Snake-case fields for MoviesRepo.upsert_movie."""
    return {
        "title": card.title,
        "poster_path": card.poster_path,
        "overview": card.overview,
        "release_date": card.release_date,
        "genres": list(card.genres),
        "vote_average": card.vote_average,
        "runtime": card.runtime,
        "language": card.language,
        "age_rating": card.age_rating,
        "director": card.director,
        "keywords": list(card.keywords),
    }


class CatalogService:
    """Card lists for the swipe UI, backed by TMDB and the optional LLM."""

    def __init__(self, tmdb: TMDBClient, result_count: int = 10) -> None:
        self.tmdb = tmdb
        self.result_count = result_count

    @property
    def available(self) -> bool:
        return self.tmdb.enabled

    async def random(self, count: int) -> list[MovieCard]:
        """Random popular movies.

        Raises:
            TMDBError: If the catalog fails
        """
        results = await self.tmdb.fetch_random(count)
        cards = [normalize_card(raw) for raw in results]
        return [card for card in cards if card is not None]

    async def search(self, prefs: UserPreferences, count: int | None = None) -> list[MovieCard]:
        """Movies matching the preferences.

        AI suggestions are resolved against TMDB; when the LLM is off,
        fails, or resolves nothing, TMDB discover filtered by the same
        preferences is used instead.

        Raises:
            TMDBError: If the catalog fails
        """
        count = min(count or self.result_count, MAX_RESULT_COUNT)

        if llm_available():
            try:
                suggestions = await suggest_movies(prefs, count)
                cards = await self._resolve(suggestions)
                if cards:
                    return cards[:count]
                logger.warning("No LLM suggestion resolved in TMDB, using discover")
            except (LLMDisabledError, LLMError) as e:
                logger.warning(f"LLM search failed, using discover: {e}")

        return await self.discover(prefs, count)

    async def discover(self, prefs: UserPreferences, count: int) -> list[MovieCard]:
        data = await self.tmdb.discover(params=discover_params(prefs))
        cards = [normalize_card(raw) for raw in data.get("results", [])]
        return [card for card in cards if card is not None][:count]

    async def _resolve(self, suggestions: list[MovieSuggestion]) -> list[MovieCard]:
        semaphore = asyncio.Semaphore(RESOLVE_CONCURRENCY)

        async def lookup(suggestion: MovieSuggestion) -> MovieCard | None:
            async with semaphore:
                raw = await self.tmdb.search_movie(suggestion.title, suggestion.year)
            card = normalize_card(raw) if raw else None
            if card is None:
                logger.debug(f"Suggestion not found in TMDB: {suggestion.title}")
                return None
            return replace(
                card,
                match_score=suggestion.match_score,
                match_reason=suggestion.match_reason,
            )

        resolved = await asyncio.gather(*(lookup(s) for s in suggestions))
        cards = []
        seen: set[int] = set()
        for card in resolved:
            if card is None or card.tmdb_id in seen:
                continue
            seen.add(card.tmdb_id)
            cards.append(card)
        return cards

    async def detail(self, tmdb_id: int) -> MovieCard | None:
        """Full card for one movie; None when TMDB does not know it.

        Raises:
            TMDBError: If the catalog fails
        """
        try:
            details = await self.tmdb.get_movie_details(tmdb_id)
        except TMDBError as e:
            if e.status_code == 404:
                return None
            raise
        return details_to_card(details)
