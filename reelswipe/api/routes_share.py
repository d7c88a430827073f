"""Share a movie with someone by email."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.api.deps import current_user, get_catalog
from reelswipe.api.schemas import ShareBody
from reelswipe.api.serializers import movie_to_card
from reelswipe.catalog.service import CatalogService
from reelswipe.config import config
from reelswipe.logging import get_logger
from reelswipe.mail.sender import MailError, send_share_email
from reelswipe.storage.db import get_db_session
from reelswipe.storage.models import User
from reelswipe.storage.repo_events import EventsRepo
from reelswipe.storage.repo_movies import MoviesRepo

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["share"])


@router.post("/share")
async def share_movie(
    body: ShareBody,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog),
) -> dict:
    """Email a movie card; uses cached metadata, else asks the catalog."""
    if not config.mail_enabled:
        raise HTTPException(status_code=503, detail="Mail is not configured")

    movie = await MoviesRepo(session).get_movie(body.movie_id)
    card = movie_to_card(movie) if movie is not None else await catalog.detail(body.movie_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Movie not found")

    try:
        await send_share_email(
            card,
            body.recipient_email,
            sender_name=user.display_name,
            personal_message=body.message,
        )
    except MailError as e:
        logger.exception(f"Share failed for user {user.user_id}")
        raise HTTPException(status_code=502, detail="Could not send email") from e

    await EventsRepo(session).log_event(
        "share",
        user_id=user.user_id,
        tmdb_id=card.tmdb_id,
        payload={"recipient": body.recipient_email},
    )
    return {"ok": True}
