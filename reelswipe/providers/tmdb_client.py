"""TMDB API client with retry logic."""

import asyncio
import random
from typing import Any

import httpx

from reelswipe.logging import get_logger

logger = get_logger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TIMEOUT = 15.0
MAX_RETRIES = 3
BASE_BACKOFF = 1.0

# Popular pages sampled for random cards
RANDOM_PAGE_SPAN = 20
CERTIFICATION_COUNTRY = "US"


# Movie genre map (TMDB genre IDs -> English names)
TMDB_GENRE_MAP: dict[int, str] = {
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
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}

GENRE_NAME_ALIASES: dict[str, str] = {
    "sci-fi": "Science Fiction",
    "scifi": "Science Fiction",
}


def genre_ids_to_names(genre_ids: list[int]) -> list[str]:
    """Convert TMDB genre IDs to human-readable names.

    Args:
        genre_ids: List of TMDB genre IDs

    Returns:
        List of genre name strings
    """
    return [TMDB_GENRE_MAP[gid] for gid in genre_ids if gid in TMDB_GENRE_MAP]


def genre_name_to_id(name: str) -> int | None:
    """Resolve a genre name (case-insensitive, "Sci-Fi" aliases) to its TMDB ID."""
    key = name.strip().lower()
    canonical = GENRE_NAME_ALIASES.get(key, name.strip())
    for gid, genre in TMDB_GENRE_MAP.items():
        if genre.lower() == canonical.lower():
            return gid
    return None


def extract_director(details: dict[str, Any]) -> str | None:
    """Get the first director from an appended credits block."""
    crew = (details.get("credits") or {}).get("crew") or []
    for member in crew:
        if member.get("job") == "Director" and member.get("name"):
            return member["name"]
    return None


def extract_keywords(details: dict[str, Any], limit: int = 10) -> list[str]:
    """Get keyword names from an appended keywords block."""
    block = details.get("keywords") or {}
    names = [kw.get("name") for kw in block.get("keywords") or [] if kw.get("name")]
    return names[:limit]


def extract_age_rating(details: dict[str, Any], country: str = CERTIFICATION_COUNTRY) -> str | None:
    """Get the theatrical certification for a country from release_dates."""
    results = (details.get("release_dates") or {}).get("results") or []
    for entry in results:
        if entry.get("iso_3166_1") != country:
            continue
        for release in entry.get("release_dates") or []:
            certification = (release.get("certification") or "").strip()
            if certification:
                return certification
    return None


class TMDBError(Exception):
    """Base exception for TMDB API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unavailable(self) -> bool:
        """True when the catalog itself is down rather than the request being bad."""
        return self.status_code is None or self.status_code >= 500 or self.status_code == 429


class TMDBRateLimitError(TMDBError):
    """Rate limit exceeded."""

    def __init__(self, retry_after: int | None = None):
        super().__init__("Rate limit exceeded", status_code=429)
        self.retry_after = retry_after


class TMDBClient:
    """Async TMDB API client with retry logic."""

    def __init__(
        self,
        bearer_token: str | None,
        language: str = "en-US",
        region: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        base_backoff: float = BASE_BACKOFF,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize TMDB client.

        Args:
            bearer_token: TMDB API bearer token (v4 auth)
            language: Language for results (e.g., "en-US")
            region: Region for results (e.g., "US")
            timeout: Request timeout in seconds
            max_retries: Attempts per request
            base_backoff: First backoff delay in seconds, doubled per attempt
            transport: Optional httpx transport (tests)
        """
        self.bearer_token = bearer_token
        self.language = language
        self.region = region
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.bearer_token)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=TMDB_BASE_URL,
                headers={
                    "Authorization": f"Bearer {self.bearer_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            path: API path (e.g., "/movie/popular")
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            TMDBError: On API error after retries exhausted, or when no token is configured
        """
        if not self.enabled:
            raise TMDBError("TMDB_BEARER_TOKEN is not configured")

        client = await self._get_client()

        # Add default params
        if params is None:
            params = {}
        params.setdefault("language", self.language)
        if self.region:
            params.setdefault("region", self.region)

        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            wait_time = self.base_backoff * (2 ** attempt)
            try:
                response = await client.request(method, path, params=params)

                if response.status_code == 200:
                    return response.json()

                if response.status_code == 429:
                    retry_after = response.headers.get("Retry-After")
                    if retry_after and retry_after.isdigit():
                        wait_time = int(retry_after)
                    logger.warning(
                        f"TMDB rate limited, retry after {wait_time}s "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(wait_time)
                        continue
                    raise TMDBRateLimitError(
                        retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
                    )

                if response.status_code >= 500:
                    logger.warning(
                        f"TMDB server error {response.status_code}, "
                        f"retry in {wait_time}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(wait_time)
                        continue
                    raise TMDBError(
                        f"Server error: {response.status_code}",
                        status_code=response.status_code,
                    )

                # Client error (4xx except 429)
                try:
                    error_data = response.json() if response.content else {}
                except ValueError:
                    error_data = {}
                error_msg = error_data.get("status_message", f"HTTP {response.status_code}")
                raise TMDBError(error_msg, status_code=response.status_code)

            except httpx.TimeoutException as e:
                logger.warning(
                    f"TMDB timeout, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                last_error = e
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(wait_time)
                    continue

            except httpx.RequestError as e:
                logger.warning(
                    f"TMDB request error: {e}, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                last_error = e
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(wait_time)
                    continue

        raise TMDBError(f"Max retries exceeded: {last_error}")

    async def fetch_popular(self, page: int = 1) -> dict[str, Any]:
        """Fetch popular movies.

        Args:
            page: Page number (1-based)

        Returns:
            TMDB response with results array
        """
        return await self._request("GET", "/movie/popular", params={"page": page})

    async def fetch_random(self, count: int) -> list[dict[str, Any]]:
        """Sample movies from a random popular page.

        Args:
            count: Number of movies wanted

        Returns:
            Up to count raw TMDB movie results, shuffled
        """
        page = random.randint(1, RANDOM_PAGE_SPAN)
        data = await self.fetch_popular(page=page)
        results = [r for r in data.get("results", []) if r.get("id")]
        random.shuffle(results)
        return results[:count]

    async def discover(
        self,
        page: int = 1,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Discover movies with filters.

        Args:
            page: Page number (1-based)
            params: Additional filter parameters (e.g., vote_count.gte, with_genres)

        Returns:
            TMDB response with results array
        """
        request_params: dict[str, Any] = {"page": page}
        if params:
            request_params.update(params)

        return await self._request("GET", "/discover/movie", params=request_params)

    async def search_movie(self, title: str, year: int | None = None) -> dict[str, Any] | None:
        """Search a movie by title and return the best match.

        Args:
            title: Movie title
            year: Optional release year to disambiguate

        Returns:
            First raw TMDB result, or None when nothing matches
        """
        params: dict[str, Any] = {"query": title, "include_adult": "false"}
        if year:
            params["year"] = year
        data = await self._request("GET", "/search/movie", params=params)
        results = data.get("results", [])
        if not results and year:
            # Model-suggested years are often off by one
            params.pop("year")
            data = await self._request("GET", "/search/movie", params=params)
            results = data.get("results", [])
        return results[0] if results else None

    async def get_movie_details(self, movie_id: int) -> dict[str, Any]:
        """Get movie details with credits, keywords and release dates appended.

        Args:
            movie_id: TMDB movie ID

        Returns:
            Movie details
        """
        return await self._request(
            "GET",
            f"/movie/{movie_id}",
            params={"append_to_response": "credits,keywords,release_dates"},
        )
