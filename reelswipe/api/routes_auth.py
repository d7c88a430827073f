"""Sign-in routes: Google OAuth, local dev login, session identity."""

import secrets

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.api.deps import SESSION_USER_KEY, current_user, get_google_client
from reelswipe.api.serializers import user_payload
from reelswipe.config import config
from reelswipe.logging import get_logger
from reelswipe.providers.google_oauth import GoogleAuthError
from reelswipe.storage.db import get_db_session
from reelswipe.storage.models import User
from reelswipe.storage.repo_events import EventsRepo
from reelswipe.storage.repo_users import UsersRepo

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

STATE_KEY = "oauth_state"


@router.get("/google")
async def google_login(request: Request) -> RedirectResponse:
    client = get_google_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")

    state = secrets.token_urlsafe(24)
    request.session[STATE_KEY] = state
    return RedirectResponse(client.authorization_url(state), status_code=303)


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    session: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    """Finish the Google consent round trip and start a session."""
    client = get_google_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")

    expected_state = request.session.pop(STATE_KEY, None)
    if error or not code:
        logger.warning(f"Google sign-in cancelled: {error or 'no code'}")
        return RedirectResponse(f"{config.frontend_url}/?login=failed", status_code=303)
    if not expected_state or state != expected_state:
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    try:
        profile = await client.fetch_profile(code)
    except GoogleAuthError as e:
        logger.warning(f"Google sign-in failed: {e}")
        return RedirectResponse(f"{config.frontend_url}/?login=failed", status_code=303)

    user = await UsersRepo(session).upsert_google_user(
        google_id=profile.google_id,
        email=profile.email,
        display_name=profile.display_name,
        photo=profile.photo,
    )
    request.session[SESSION_USER_KEY] = user.user_id
    await EventsRepo(session).log_event("login", user_id=user.user_id, payload={"method": "google"})
    logger.info(f"User {user.user_id} signed in with Google")
    return RedirectResponse(f"{config.frontend_url}/", status_code=303)


@router.get("/dev-login")
async def dev_login(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    """Sign in as the fixed development user (local setups only)."""
    if not config.dev_login_enabled:
        raise HTTPException(status_code=404, detail="Not found")

    user = await UsersRepo(session).get_or_create_dev_user()
    request.session[SESSION_USER_KEY] = user.user_id
    await EventsRepo(session).log_event("login", user_id=user.user_id, payload={"method": "dev"})
    return RedirectResponse(f"{config.frontend_url}/", status_code=303)


@router.get("/me")
async def me(user: User = Depends(current_user)) -> dict:
    return {"user": user_payload(user)}


@router.post("/logout")
async def logout(request: Request) -> dict:
    request.session.clear()
    return {"ok": True}
