"""Async client for the ReelSwipe HTTP API.

Implements the auth, catalog, collections, preferences and share gateways
the session core depends on.
"""

from typing import Any

import httpx

from reelswipe.core.cards import normalize_card, normalize_cards
from reelswipe.core.contracts import Identity, MovieCard
from reelswipe.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiError(Exception):
    """Non-success response from the API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceUnavailableError(ApiError):
    """The API reported an upstream collaborator as unavailable (HTTP 503)."""

    def __init__(self, message: str = "Service unavailable"):
        super().__init__(message, status_code=503)


class ApiConnectionError(ApiError):
    """The request never got a response."""


def _movie_body(card: MovieCard, **extra: Any) -> dict[str, Any]:
    body = {
        "movieId": card.tmdb_id,
        "title": card.title,
        "posterPath": card.poster_path,
        "overview": card.overview,
        "releaseDate": card.release_date,
        "genres": list(card.genres),
        "voteAverage": card.vote_average,
    }
    body.update(extra)
    return body


class ApiClient:
    """Cookie-session client; one instance per signed-in browser session."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. "http://localhost:8000"
            timeout: Request timeout in seconds
            transport: Optional httpx transport (ASGI app in tests)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ApiConnectionError(f"{method} {path} failed: {e}") from e

        if response.is_success or response.is_redirect:
            return response

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = ""
        if isinstance(body, dict):
            message = str(body.get("error") or body.get("detail") or "")
        message = message or f"HTTP {response.status_code}"

        if response.status_code == 503:
            raise ServiceUnavailableError(message)
        raise ApiError(f"{method} {path}: {message}", status_code=response.status_code)

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        if not response.content:
            return {}
        return response.json()

    # -- auth -------------------------------------------------------------

    async def who_am_i(self) -> Identity | None:
        try:
            data = await self._json("GET", "/auth/me")
        except ApiError as e:
            if e.status_code == 401:
                return None
            raise
        user = data.get("user")
        return Identity.from_dict(user) if user else None

    async def dev_login(self) -> Identity | None:
        """Sign in as the development user (server must allow it)."""
        await self._request("GET", "/auth/dev-login")
        return await self.who_am_i()

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def status(self) -> dict[str, Any]:
        return await self._json("GET", "/api/status")

    # -- catalog ----------------------------------------------------------

    async def fetch_random(self, count: int) -> list[MovieCard]:
        data = await self._json("GET", "/api/movies/random", params={"count": count})
        return normalize_cards(data.get("movies", []))

    async def search(self, payload: dict[str, Any]) -> list[MovieCard]:
        data = await self._json("POST", "/api/movies/search", json=payload)
        return normalize_cards(data.get("movies", []))

    async def fetch_detail(self, tmdb_id: int) -> MovieCard | None:
        try:
            data = await self._json("GET", f"/api/movies/{tmdb_id}")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return normalize_card(data.get("movie"))

    # -- collections ------------------------------------------------------

    async def like(self, card: MovieCard) -> None:
        await self._request("POST", "/api/user/movies/like", json=_movie_body(card))

    async def dislike(self, card: MovieCard) -> None:
        await self._request("POST", "/api/user/movies/dislike", json=_movie_body(card))

    async def remove_liked(self, tmdb_id: int) -> None:
        await self._request("DELETE", f"/api/user/movies/liked/{tmdb_id}")

    async def remove_disliked(self, tmdb_id: int) -> None:
        await self._request("DELETE", f"/api/user/movies/disliked/{tmdb_id}")

    async def clear_liked(self) -> None:
        await self._request("DELETE", "/api/user/movies/liked/clear")

    async def clear_disliked(self) -> None:
        await self._request("DELETE", "/api/user/movies/disliked/clear")

    async def add_favorite(self, card: MovieCard) -> None:
        await self._request("POST", "/api/user/movies/favorites", json=_movie_body(card))

    async def remove_favorite(self, tmdb_id: int) -> None:
        await self._request("DELETE", f"/api/user/movies/favorites/{tmdb_id}")

    async def move_to_disliked(self, tmdb_id: int) -> None:
        await self._request("POST", "/api/user/movies/move-to-disliked", json={"movieId": tmdb_id})

    async def move_to_liked(self, tmdb_id: int) -> None:
        await self._request("POST", "/api/user/movies/move-to-liked", json={"movieId": tmdb_id})

    async def add_watched(self, card: MovieCard, rating: float) -> None:
        await self._request(
            "POST", "/api/user/movies/watched", json=_movie_body(card, rating=rating)
        )

    async def update_watched_rating(self, tmdb_id: int, rating: float) -> None:
        await self._request("PUT", f"/api/user/movies/watched/{tmdb_id}", json={"rating": rating})

    async def remove_watched(self, tmdb_id: int) -> None:
        await self._request("DELETE", f"/api/user/movies/watched/{tmdb_id}")

    async def list_liked(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/user/movies/liked")).get("movies", [])

    async def list_disliked(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/user/movies/disliked")).get("movies", [])

    async def list_favorites(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/user/movies/favorites")).get("movies", [])

    async def list_watched(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/user/movies/watched")).get("movies", [])

    # -- preferences / profile -------------------------------------------

    async def profile(self) -> dict[str, Any]:
        return await self._json("GET", "/api/user/profile")

    async def load_preferences(self) -> dict[str, Any] | None:
        return (await self.profile()).get("preferences")

    async def save_preferences(self, payload: dict[str, Any]) -> None:
        await self._request("PUT", "/api/user/preferences", json={"preferences": payload})

    # -- share ------------------------------------------------------------

    async def share(self, tmdb_id: int, recipient_email: str, message: str = "") -> None:
        await self._request(
            "POST",
            "/api/share",
            json={"movieId": tmdb_id, "recipientEmail": recipient_email, "message": message},
        )

    # -- friends ----------------------------------------------------------

    async def search_users(self, query: str) -> list[dict[str, Any]]:
        data = await self._json("GET", "/api/friends/search", params={"query": query})
        return data.get("users", [])

    async def send_friend_request(self, user_id: str) -> dict[str, Any]:
        data = await self._json("POST", "/api/friends/request", json={"toUserId": user_id})
        return data.get("request", {})

    async def list_friends(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/friends/list")).get("friends", [])

    async def received_requests(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/friends/requests/received")).get("requests", [])

    async def sent_requests(self) -> list[dict[str, Any]]:
        return (await self._json("GET", "/api/friends/requests/sent")).get("requests", [])

    async def accept_request(self, request_id: str) -> None:
        await self._request("POST", f"/api/friends/request/{request_id}/accept")

    async def decline_request(self, request_id: str) -> None:
        await self._request("POST", f"/api/friends/request/{request_id}/decline")

    async def cancel_request(self, request_id: str) -> None:
        await self._request("DELETE", f"/api/friends/request/{request_id}/cancel")

    async def remove_friend(self, friend_id: str) -> None:
        await self._request("DELETE", f"/api/friends/remove/{friend_id}")
