"""Per-user routes: profile, preferences and movie collections."""

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.api.deps import current_user
from reelswipe.api.schemas import MoveBody, MovieRef, PreferencesBody, RatingBody, WatchedBody
from reelswipe.api.serializers import collection_entry, user_payload
from reelswipe.core.contracts import UserPreferences
from reelswipe.logging import get_logger
from reelswipe.storage.db import get_db_session
from reelswipe.storage.models import User
from reelswipe.storage.repo_events import EventsRepo
from reelswipe.storage.repo_favorites import FavoritesRepo
from reelswipe.storage.repo_movies import MoviesRepo
from reelswipe.storage.repo_reactions import Reaction, ReactionsRepo
from reelswipe.storage.repo_users import UsersRepo
from reelswipe.storage.repo_watched import WatchedRepo

logger = get_logger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])

EVENT_NAMES = {"liked": "like", "disliked": "dislike"}


def _entries(rows) -> list[dict]:
    return [collection_entry(row.movie, row.created_at) for row in rows if row.movie is not None]


# -- profile / preferences --------------------------------------------------


@router.get("/profile")
async def profile(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Identity, stored preferences and collection counts."""
    stored = await UsersRepo(session).get_preferences(user.user_id)
    reactions = ReactionsRepo(session)
    return {
        "user": user_payload(user),
        "preferences": UserPreferences.from_payload(stored).to_payload() if stored else None,
        "counts": {
            "liked": await reactions.count_reactions(user.user_id, "liked"),
            "disliked": await reactions.count_reactions(user.user_id, "disliked"),
            "favorites": await FavoritesRepo(session).count_favorites(user.user_id),
            "watched": len(await WatchedRepo(session).list_watched(user.user_id)),
        },
    }


@router.put("/preferences")
async def update_preferences(
    body: PreferencesBody,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    merged = await UsersRepo(session).update_preferences(user.user_id, body.preferences)
    return {"preferences": UserPreferences.from_payload(merged).to_payload()}


# -- liked / disliked ---------------------------------------------------------


async def _react(session: AsyncSession, user: User, body: MovieRef, reaction: Reaction) -> dict:
    await MoviesRepo(session).upsert_movie(body.movie_id, body.movie_data())
    previous = await ReactionsRepo(session).set_reaction(user.user_id, body.movie_id, reaction)
    if previous != reaction:
        await EventsRepo(session).log_event(
            EVENT_NAMES[reaction],
            user_id=user.user_id,
            tmdb_id=body.movie_id,
            payload={"previous": previous},
        )
    return {"ok": True, "movieId": body.movie_id, "reaction": reaction}


@router.post("/movies/like")
async def like_movie(
    body: MovieRef,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await _react(session, user, body, "liked")


@router.post("/movies/dislike")
async def dislike_movie(
    body: MovieRef,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await _react(session, user, body, "disliked")


async def _list(session: AsyncSession, user: User, reaction: Reaction) -> dict:
    rows = await ReactionsRepo(session).list_reactions(user.user_id, reaction)
    return {"movies": _entries(rows)}


@router.get("/movies/liked")
async def list_liked(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await _list(session, user, "liked")


@router.get("/movies/disliked")
async def list_disliked(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await _list(session, user, "disliked")


# Clear routes are registered before the /{tmdb_id} ones so "clear" is not
# parsed as an ID.
@router.delete("/movies/liked/clear")
async def clear_liked(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await ReactionsRepo(session).clear_reactions(user.user_id, "liked")
    logger.info(f"User {user.user_id} cleared {removed} liked movies")
    return {"ok": True, "removed": removed}


@router.delete("/movies/disliked/clear")
async def clear_disliked(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await ReactionsRepo(session).clear_reactions(user.user_id, "disliked")
    logger.info(f"User {user.user_id} cleared {removed} disliked movies")
    return {"ok": True, "removed": removed}


@router.delete("/movies/liked/{tmdb_id}")
async def remove_liked(
    tmdb_id: int = Path(ge=1),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await ReactionsRepo(session).remove_reaction(user.user_id, tmdb_id, "liked")
    return {"ok": True, "removed": removed}


@router.delete("/movies/disliked/{tmdb_id}")
async def remove_disliked(
    tmdb_id: int = Path(ge=1),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await ReactionsRepo(session).remove_reaction(user.user_id, tmdb_id, "disliked")
    return {"ok": True, "removed": removed}


# -- favorites ------------------------------------------------------------------


@router.get("/movies/favorites")
async def list_favorites(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    rows = await FavoritesRepo(session).list_favorites(user.user_id)
    return {"movies": _entries(rows)}


@router.post("/movies/favorites")
async def add_favorite(
    body: MovieRef,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    """Favorite a movie; it becomes liked if it was not already."""
    await MoviesRepo(session).upsert_movie(body.movie_id, body.movie_data())
    added = await FavoritesRepo(session).add_favorite(user.user_id, body.movie_id)
    if added:
        await EventsRepo(session).log_event("favorite", user_id=user.user_id, tmdb_id=body.movie_id)
    return {"ok": True, "added": added}


@router.delete("/movies/favorites/{tmdb_id}")
async def remove_favorite(
    tmdb_id: int = Path(ge=1),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await FavoritesRepo(session).remove_favorite(user.user_id, tmdb_id)
    if removed:
        await EventsRepo(session).log_event("unfavorite", user_id=user.user_id, tmdb_id=tmdb_id)
    return {"ok": True, "removed": removed}


# -- moves ----------------------------------------------------------------------


async def _move(session: AsyncSession, user: User, tmdb_id: int, destination: Reaction) -> dict:
    reactions = ReactionsRepo(session)
    current = await reactions.get_reaction(user.user_id, tmdb_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Movie is not in your lists")

    moved = await reactions.move(user.user_id, tmdb_id, destination)
    if moved:
        await EventsRepo(session).log_event(
            "move",
            user_id=user.user_id,
            tmdb_id=tmdb_id,
            payload={"from": current, "to": destination},
        )
    return {"ok": True, "moved": moved}


@router.post("/movies/move-to-disliked")
async def move_to_disliked(
    body: MoveBody,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await _move(session, user, body.movie_id, "disliked")


@router.post("/movies/move-to-liked")
async def move_to_liked(
    body: MoveBody,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await _move(session, user, body.movie_id, "liked")


# -- watched --------------------------------------------------------------------


@router.get("/movies/watched")
async def list_watched(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    rows = await WatchedRepo(session).list_watched(user.user_id)
    return {
        "movies": [
            collection_entry(
                row.movie,
                row.watched_at,
                rating=row.rating,
                watchedAt=row.watched_at.isoformat(),
            )
            for row in rows
            if row.movie is not None
        ]
    }


@router.post("/movies/watched")
async def add_watched(
    body: WatchedBody,
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    await MoviesRepo(session).upsert_movie(body.movie_id, body.movie_data())
    created = await WatchedRepo(session).add_watched(user.user_id, body.movie_id, body.rating)
    await EventsRepo(session).log_event(
        "watched",
        user_id=user.user_id,
        tmdb_id=body.movie_id,
        payload={"rating": body.rating},
    )
    return {"ok": True, "created": created, "rating": body.rating}


@router.put("/movies/watched/{tmdb_id}")
async def update_watched_rating(
    body: RatingBody,
    tmdb_id: int = Path(ge=1),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    updated = await WatchedRepo(session).update_rating(user.user_id, tmdb_id, body.rating)
    if not updated:
        raise HTTPException(status_code=404, detail="Movie is not marked as watched")
    return {"ok": True, "rating": body.rating}


@router.delete("/movies/watched/{tmdb_id}")
async def remove_watched(
    tmdb_id: int = Path(ge=1),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    removed = await WatchedRepo(session).remove_watched(user.user_id, tmdb_id)
    return {"ok": True, "removed": removed}
