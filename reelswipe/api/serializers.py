"""Row to JSON conversion for API responses."""

from datetime import datetime
from typing import Any

from reelswipe.core.contracts import MovieCard
from reelswipe.storage.json_utils import load_str_list
from reelswipe.storage.models import FriendRequest, Movie, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def movie_to_card(movie: Movie) -> MovieCard:
    return MovieCard(
        tmdb_id=movie.tmdb_id,
        title=movie.title,
        poster_path=movie.poster_path,
        overview=movie.overview or "",
        release_date=movie.release_date,
        genres=tuple(load_str_list(movie.genres_json)),
        vote_average=movie.vote_average,
        runtime=movie.runtime,
        age_rating=movie.age_rating,
        language=movie.language,
        director=movie.director,
        keywords=tuple(load_str_list(movie.keywords_json)),
    )


def collection_entry(movie: Movie, added_at: datetime, **extra: Any) -> dict[str, Any]:
    """Card JSON plus the list bookkeeping fields."""
    payload = movie_to_card(movie).to_payload()
    payload["movieId"] = movie.tmdb_id
    payload["addedAt"] = _iso(added_at)
    payload.update(extra)
    return payload


def user_payload(user: User) -> dict[str, Any]:
    return {
        "id": user.user_id,
        "displayName": user.display_name,
        "email": user.email,
        "photo": user.photo,
    }


def friend_request_payload(request: FriendRequest, other: User) -> dict[str, Any]:
    return {
        "id": request.request_id,
        "status": request.status,
        "createdAt": _iso(request.created_at),
        "user": user_payload(other),
    }
