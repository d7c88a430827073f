"""Router configuration and wiring for all API routes."""

from fastapi import FastAPI

from reelswipe.api.routes_auth import router as auth_router
from reelswipe.api.routes_friends import router as friends_router
from reelswipe.api.routes_movies import router as movies_router
from reelswipe.api.routes_share import router as share_router
from reelswipe.api.routes_user import router as user_router


def setup_routers(app: FastAPI) -> None:
    """Wire all routers to the app.

    Within the user router the /clear routes are declared before the
    /{tmdb_id} routes so they are matched first.

    Args:
        app: The FastAPI application
    """
    app.include_router(auth_router)
    app.include_router(movies_router)
    app.include_router(user_router)
    app.include_router(friends_router)
    app.include_router(share_router)
