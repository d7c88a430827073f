"""External data providers."""

from reelswipe.providers.google_oauth import GoogleAuthError, GoogleOAuthClient, GoogleProfile
from reelswipe.providers.tmdb_client import TMDBClient, TMDBError, TMDBRateLimitError

__all__ = [
    "TMDBClient",
    "TMDBError",
    "TMDBRateLimitError",
    "GoogleOAuthClient",
    "GoogleProfile",
    "GoogleAuthError",
]
