"""Request bodies for the JSON API (camelCase on the wire)."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from reelswipe.core.cards import parse_catalog_id

MAX_SHARE_MESSAGE = 1000


def _catalog_id(value: Any) -> int:
    tmdb_id = parse_catalog_id(value)
    if tmdb_id is None:
        raise ValueError("movieId must be a positive integer or numeric string")
    return tmdb_id


def _star_rating(value: float) -> float:
    if not 0 <= value <= 5 or (value * 2) != int(value * 2):
        raise ValueError("rating must be between 0 and 5 in half steps")
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MoveBody(ApiModel):
    movie_id: int = Field(alias="movieId")

    @field_validator("movie_id", mode="before")
    @classmethod
    def check_movie_id(cls, value: Any) -> int:
        return _catalog_id(value)


class MovieRef(MoveBody):
    """A movie as posted by the client; metadata is optional."""

    title: str | None = None
    poster_path: str | None = Field(default=None, alias="posterPath")
    overview: str | None = None
    release_date: str | None = Field(default=None, alias="releaseDate")
    genres: list[str] | None = None
    vote_average: float | None = Field(default=None, alias="voteAverage")

    def movie_data(self) -> dict[str, Any]:
        """Snake-case fields for MoviesRepo.upsert_movie."""
        return {
            "title": self.title,
            "poster_path": self.poster_path,
            "overview": self.overview,
            "release_date": self.release_date,
            "genres": self.genres or [],
            "vote_average": self.vote_average,
        }


class RatingBody(ApiModel):
    rating: float

    @field_validator("rating")
    @classmethod
    def check_rating(cls, value: float) -> float:
        return _star_rating(value)


class WatchedBody(MovieRef):
    rating: float

    @field_validator("rating")
    @classmethod
    def check_rating(cls, value: float) -> float:
        return _star_rating(value)


class PreferencesBody(ApiModel):
    preferences: dict[str, Any]


class ShareBody(ApiModel):
    movie_id: int = Field(alias="movieId")
    recipient_email: EmailStr = Field(alias="recipientEmail")
    message: str = Field(default="", max_length=MAX_SHARE_MESSAGE)

    @field_validator("movie_id", mode="before")
    @classmethod
    def check_movie_id(cls, value: Any) -> int:
        return _catalog_id(value)


class FriendRequestBody(ApiModel):
    to_user_id: str = Field(validation_alias=AliasChoices("toUserId", "friendId"), min_length=1)
