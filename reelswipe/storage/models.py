"""SQLAlchemy ORM models for ReelSwipe."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelswipe.storage.db import Base


class User(Base):
    """Signed-in user with stored search preferences."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    google_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, unique=True)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    photo: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    preferences_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    reactions: Mapped[list["MovieReaction"]] = relationship(
        "MovieReaction", back_populates="user", cascade="all, delete-orphan"
    )
    favorites: Mapped[list["Favorite"]] = relationship(
        "Favorite", back_populates="user", cascade="all, delete-orphan"
    )
    watched: Mapped[list["WatchedMovie"]] = relationship(
        "WatchedMovie", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_users_email", "email"),)


class Movie(Base):
    """Catalog metadata cached from TMDB, keyed by catalog ID."""

    __tablename__ = "movies"

    tmdb_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    poster_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    overview: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    release_date: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    genres_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vote_average: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    runtime: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    age_rating: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    director: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    keywords_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class MovieReaction(Base):
    """Liked or disliked movie; one row per user and movie."""

    __tablename__ = "movie_reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    tmdb_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.tmdb_id"), nullable=False
    )
    reaction: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="reactions")
    movie: Mapped["Movie"] = relationship("Movie")

    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_id", name="uq_reactions_user_movie"),
        CheckConstraint("reaction IN ('liked', 'disliked')", name="ck_reactions_reaction"),
        Index("ix_reactions_user_reaction", "user_id", "reaction"),
    )


class Favorite(Base):
    """Liked movies promoted to the user's favorites."""

    __tablename__ = "favorites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    tmdb_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.tmdb_id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="favorites")
    movie: Mapped["Movie"] = relationship("Movie")

    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_id", name="uq_favorites_user_movie"),
    )


class WatchedMovie(Base):
    """Watched movie with a 0-5 star rating in half steps."""

    __tablename__ = "watched_movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    tmdb_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("movies.tmdb_id"), nullable=False
    )
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    watched_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="watched")
    movie: Mapped["Movie"] = relationship("Movie")

    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_id", name="uq_watched_user_movie"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_watched_rating"),
    )


class FriendRequest(Base):
    """Friend request; accepted requests are the friendships."""

    __tablename__ = "friend_requests"

    request_id: Mapped[str] = mapped_column(String, primary_key=True)
    from_user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    to_user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    from_user: Mapped["User"] = relationship("User", foreign_keys=[from_user_id])
    to_user: Mapped["User"] = relationship("User", foreign_keys=[to_user_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'cancelled')",
            name="ck_friend_requests_status",
        ),
        Index("ix_friend_requests_to_status", "to_user_id", "status"),
        Index("ix_friend_requests_from_status", "from_user_id", "status"),
    )


class Event(Base):
    """Event logging for analytics."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_name: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    tmdb_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_events_name_created", "event_name", "created_at"),
        Index("ix_events_user_created", "user_id", "created_at"),
    )
