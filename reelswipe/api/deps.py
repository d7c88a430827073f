"""Shared FastAPI dependencies: catalog singletons and the signed-in user."""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.catalog.service import CatalogService
from reelswipe.config import config
from reelswipe.providers.google_oauth import GoogleOAuthClient
from reelswipe.providers.tmdb_client import TMDBClient
from reelswipe.storage.db import get_db_session
from reelswipe.storage.models import User
from reelswipe.storage.repo_users import UsersRepo

SESSION_USER_KEY = "user_id"

_tmdb_client: TMDBClient | None = None
_catalog: CatalogService | None = None


def get_tmdb_client() -> TMDBClient:
    """Get or create the shared TMDB client."""
    global _tmdb_client

    if _tmdb_client is None:
        _tmdb_client = TMDBClient(
            bearer_token=config.tmdb_bearer_token,
            language=config.tmdb_language,
            region=config.tmdb_region,
        )
    return _tmdb_client


def get_catalog() -> CatalogService:
    """FastAPI dependency returning the shared catalog service."""
    global _catalog

    if _catalog is None:
        _catalog = CatalogService(get_tmdb_client(), result_count=config.search_result_count)
    return _catalog


async def close_catalog() -> None:
    global _tmdb_client, _catalog

    if _tmdb_client is not None:
        await _tmdb_client.close()
    _tmdb_client = None
    _catalog = None


def get_google_client() -> GoogleOAuthClient | None:
    """Google sign-in client, or None when it is not configured."""
    if not config.google_enabled:
        return None
    return GoogleOAuthClient(
        client_id=config.google_client_id or "",
        client_secret=config.google_client_secret or "",
        redirect_uri=config.google_redirect_uri,
    )


async def current_user(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Resolve the session cookie to a user.

    Raises:
        HTTPException: 401 when not signed in or the user no longer exists
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await UsersRepo(session).get_user(user_id)
    if user is None:
        request.session.pop(SESSION_USER_KEY, None)
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
