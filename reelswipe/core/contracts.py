"""Domain contracts and type definitions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

# Session timing and gesture constants (seconds / pixels)
SWIPE_THRESHOLD = 100.0
COMMIT_ANIMATION = 0.4
BUSY_WINDOW = 0.6
AUTOSAVE_DEBOUNCE = 1.0
MOVIE_CACHE_TTL = 30.0
ROTATION_DIVISOR = 20.0

AGE_RATINGS = ("Any", "G", "PG", "PG-13", "R", "NC-17")

DEFAULT_GENRES = (
    "Action",
    "Comedy",
    "Drama",
    "Horror",
    "Romance",
    "Thriller",
    "Sci-Fi",
    "Fantasy",
    "Animation",
    "Documentary",
)

SLIDER_MIN = 1
SLIDER_MAX = 10


class SwipeDirection(str, Enum):
    """Committed gesture directions."""

    LEFT = "left"
    RIGHT = "right"
    UP = "up"

    @property
    def decision(self) -> "Decision":
        return _DIRECTION_DECISIONS[self]


class Decision(str, Enum):
    """User decisions on a card."""

    LIKE = "like"
    DISLIKE = "dislike"
    WATCH = "watch"


_DIRECTION_DECISIONS = {
    SwipeDirection.RIGHT: Decision.LIKE,
    SwipeDirection.LEFT: Decision.DISLIKE,
    SwipeDirection.UP: Decision.WATCH,
}


@dataclass(frozen=True)
class MovieCard:
    """A catalog movie as shown on a swipe card.

    Immutable once fetched; match_score/match_reason are display-only
    annotations from the search backend.
    """

    tmdb_id: int
    title: str
    poster_path: str | None = None
    overview: str = ""
    release_date: str | None = None
    genres: tuple[str, ...] = ()
    vote_average: float | None = None
    runtime: int | None = None
    match_score: float | None = None
    match_reason: str | None = None
    age_rating: str | None = None
    language: str | None = None
    director: str | None = None
    keywords: tuple[str, ...] = ()

    @property
    def release_year(self) -> int | None:
        if not self.release_date or len(self.release_date) < 4:
            return None
        year = self.release_date[:4]
        return int(year) if year.isdigit() else None

    def to_payload(self) -> dict[str, Any]:
        """Convert to the camelCase card JSON exchanged with the server."""
        payload: dict[str, Any] = {
            "tmdbId": self.tmdb_id,
            "title": self.title,
            "posterPath": self.poster_path,
            "overview": self.overview,
            "releaseDate": self.release_date,
            "genres": list(self.genres),
            "voteAverage": self.vote_average,
            "runtime": self.runtime,
        }
        optional = {
            "matchScore": self.match_score,
            "matchReason": self.match_reason,
            "ageRating": self.age_rating,
            "language": self.language,
            "director": self.director,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        if self.keywords:
            payload["keywords"] = list(self.keywords)
        return payload


@dataclass(frozen=True)
class Identity:
    """Signed-in user as reported by the auth collaborator."""

    user_id: str
    display_name: str
    email: str | None = None
    photo: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Identity":
        """Create from the /auth/me user object."""
        return cls(
            user_id=str(data.get("id") or data.get("userId") or ""),
            display_name=data.get("displayName") or data.get("name") or "",
            email=data.get("email"),
            photo=data.get("photo"),
        )


def default_genre_weights() -> dict[str, int]:
    return {name: 5 for name in DEFAULT_GENRES}


# Python field name -> wire (camelCase) key
PREFERENCE_WIRE_KEYS = {
    "description": "description",
    "year_range": "yearRange",
    "runtime_range": "runtimeRange",
    "rating_range": "ratingRange",
    "age_rating": "ageRating",
    "mood_intensity": "moodIntensity",
    "humor_level": "humorLevel",
    "violence_level": "violenceLevel",
    "romance_level": "romanceLevel",
    "complexity_level": "complexityLevel",
    "genres": "genres",
    "language": "language",
}

SLIDER_FIELDS = (
    "mood_intensity",
    "humor_level",
    "violence_level",
    "romance_level",
    "complexity_level",
)


def _clamp_slider(value: Any, default: int) -> int:
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(SLIDER_MIN, min(SLIDER_MAX, number))


def _as_range(value: Any, default: tuple[float, float]) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return default
    low, high = value
    if isinstance(low, bool) or isinstance(high, bool):
        return default
    if not isinstance(low, (int, float)) or not isinstance(high, (int, float)):
        return default
    return (low, high) if low <= high else (high, low)


@dataclass
class UserPreferences:
    """Taste preferences sent with every search and auto-saved per user."""

    description: str = ""
    year_range: tuple[int, int] = (1950, 2025)
    runtime_range: tuple[int, int] = (60, 180)
    rating_range: tuple[float, float] = (1, 10)
    age_rating: str = "Any"
    mood_intensity: int = 5
    humor_level: int = 5
    violence_level: int = 5
    romance_level: int = 5
    complexity_level: int = 5
    genres: dict[str, int] = field(default_factory=default_genre_weights)
    language: str = "English"

    def to_payload(self) -> dict[str, Any]:
        """Convert to the camelCase wire form."""
        return {
            "description": self.description,
            "yearRange": list(self.year_range),
            "runtimeRange": list(self.runtime_range),
            "ratingRange": list(self.rating_range),
            "ageRating": self.age_rating,
            "moodIntensity": self.mood_intensity,
            "humorLevel": self.humor_level,
            "violenceLevel": self.violence_level,
            "romanceLevel": self.romance_level,
            "complexityLevel": self.complexity_level,
            "genres": dict(self.genres),
            "language": self.language,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "UserPreferences":
        """Merge a (possibly partial) wire payload over the defaults.

        Malformed values keep the default rather than raising.
        """
        prefs = cls()
        if not payload:
            return prefs

        description = payload.get("description")
        if isinstance(description, str):
            prefs.description = description

        prefs.year_range = _as_range(payload.get("yearRange"), prefs.year_range)
        prefs.runtime_range = _as_range(payload.get("runtimeRange"), prefs.runtime_range)
        prefs.rating_range = _as_range(payload.get("ratingRange"), prefs.rating_range)

        if payload.get("ageRating") in AGE_RATINGS:
            prefs.age_rating = payload["ageRating"]

        for name in SLIDER_FIELDS:
            wire_key = PREFERENCE_WIRE_KEYS[name]
            if wire_key in payload:
                setattr(prefs, name, _clamp_slider(payload[wire_key], getattr(prefs, name)))

        genres = payload.get("genres")
        if isinstance(genres, dict) and genres:
            prefs.genres = {
                str(name): _clamp_slider(weight, 5) for name, weight in genres.items()
            }

        language = payload.get("language")
        if isinstance(language, str) and language.strip():
            prefs.language = language.strip()

        return prefs

    def updated(self, **changes: Any) -> "UserPreferences":
        """Return a copy with field changes applied and validated.

        Raises:
            TypeError: If a change names an unknown field
        """
        payload = self.to_payload()
        for name, value in changes.items():
            if name not in PREFERENCE_WIRE_KEYS:
                raise TypeError(f"Unknown preference field: {name}")
            payload[PREFERENCE_WIRE_KEYS[name]] = value
        return UserPreferences.from_payload(payload)


class AuthGateway(Protocol):
    """Who-am-I and logout."""

    async def who_am_i(self) -> Identity | None:
        ...

    async def logout(self) -> None:
        ...


class CatalogGateway(Protocol):
    """Movie catalog reads."""

    async def fetch_random(self, count: int) -> list[MovieCard]:
        ...

    async def search(self, payload: dict[str, Any]) -> list[MovieCard]:
        ...

    async def fetch_detail(self, tmdb_id: int) -> MovieCard | None:
        ...


class CollectionsGateway(Protocol):
    """Persisted per-user collections.

    List operations return raw entries; callers normalize them.
    """

    async def like(self, card: MovieCard) -> None:
        ...

    async def dislike(self, card: MovieCard) -> None:
        ...

    async def remove_liked(self, tmdb_id: int) -> None:
        ...

    async def remove_disliked(self, tmdb_id: int) -> None:
        ...

    async def clear_liked(self) -> None:
        ...

    async def clear_disliked(self) -> None:
        ...

    async def add_favorite(self, card: MovieCard) -> None:
        ...

    async def remove_favorite(self, tmdb_id: int) -> None:
        ...

    async def move_to_disliked(self, tmdb_id: int) -> None:
        ...

    async def move_to_liked(self, tmdb_id: int) -> None:
        ...

    async def add_watched(self, card: MovieCard, rating: float) -> None:
        ...

    async def update_watched_rating(self, tmdb_id: int, rating: float) -> None:
        ...

    async def remove_watched(self, tmdb_id: int) -> None:
        ...

    async def list_liked(self) -> list[dict[str, Any]]:
        ...

    async def list_disliked(self) -> list[dict[str, Any]]:
        ...

    async def list_favorites(self) -> list[dict[str, Any]]:
        ...

    async def list_watched(self) -> list[dict[str, Any]]:
        ...


class PreferencesGateway(Protocol):
    """Stored preference object."""

    async def load_preferences(self) -> dict[str, Any] | None:
        ...

    async def save_preferences(self, payload: dict[str, Any]) -> None:
        ...


class ShareGateway(Protocol):
    """Share a movie by email."""

    async def share(self, tmdb_id: int, recipient_email: str, message: str = "") -> None:
        ...
