"""Storage module for database operations."""

from reelswipe.storage.db import Base, close_engine, get_db_session, get_engine, get_session_factory
from reelswipe.storage.json_utils import load_str_list, safe_json_dumps, safe_json_loads
from reelswipe.storage.models import (
    Event,
    Favorite,
    FriendRequest,
    Movie,
    MovieReaction,
    User,
    WatchedMovie,
)
from reelswipe.storage.repo_events import EventsRepo
from reelswipe.storage.repo_favorites import FavoritesRepo
from reelswipe.storage.repo_friends import FriendRequestError, FriendsRepo
from reelswipe.storage.repo_movies import MoviesRepo
from reelswipe.storage.repo_reactions import ReactionsRepo
from reelswipe.storage.repo_users import DEV_USER_ID, UsersRepo
from reelswipe.storage.repo_watched import WatchedRepo

__all__ = [
    # Database
    "Base",
    "get_engine",
    "get_session_factory",
    "get_db_session",
    "close_engine",
    # JSON utilities
    "safe_json_dumps",
    "safe_json_loads",
    "load_str_list",
    # Models
    "User",
    "Movie",
    "MovieReaction",
    "Favorite",
    "WatchedMovie",
    "FriendRequest",
    "Event",
    # Repositories
    "UsersRepo",
    "MoviesRepo",
    "ReactionsRepo",
    "FavoritesRepo",
    "WatchedRepo",
    "FriendsRepo",
    "FriendRequestError",
    "EventsRepo",
    "DEV_USER_ID",
]
