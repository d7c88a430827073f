"""Catalog routes: random picks, preference search, movie detail."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.api.deps import get_catalog
from reelswipe.catalog.service import MAX_RESULT_COUNT, CatalogService, card_to_movie_data
from reelswipe.core.contracts import UserPreferences
from reelswipe.logging import get_logger
from reelswipe.storage.db import get_db_session
from reelswipe.storage.repo_movies import MoviesRepo

logger = get_logger(__name__)

router = APIRouter(prefix="/api/movies", tags=["movies"])


@router.get("/random")
async def random_movies(
    count: int = Query(10, ge=1, le=MAX_RESULT_COUNT),
    catalog: CatalogService = Depends(get_catalog),
) -> dict:
    cards = await catalog.random(count)
    return {"movies": [card.to_payload() for card in cards]}


@router.post("/search")
async def search_movies(
    payload: dict[str, Any] = Body(default_factory=dict),
    catalog: CatalogService = Depends(get_catalog),
) -> dict:
    """Search with a preference payload plus an optional "count"."""
    count = payload.get("count")
    if not isinstance(count, int) or isinstance(count, bool) or count < 1:
        count = None

    prefs = UserPreferences.from_payload(payload)
    cards = await catalog.search(prefs, count)
    logger.info(f"Search returned {len(cards)} movies")
    return {"movies": [card.to_payload() for card in cards]}


@router.get("/{tmdb_id}")
async def movie_detail(
    tmdb_id: int = Path(ge=1),
    catalog: CatalogService = Depends(get_catalog),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    card = await catalog.detail(tmdb_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Movie not found")

    await MoviesRepo(session).upsert_movie(card.tmdb_id, card_to_movie_data(card))
    return {"movie": card.to_payload()}
