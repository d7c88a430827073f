"""Repository for watched movies and their ratings."""

from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from reelswipe.storage.models import WatchedMovie


class WatchedRepo:
    """Repository for user watched movies (rated 0-5 in half steps)."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_watched(self, user_id: str, tmdb_id: int, rating: float) -> bool:
        """Mark a movie as watched; an existing record keeps its watch date.

        Args:
            user_id: User ID
            tmdb_id: Catalog ID
            rating: Star rating

        Returns:
            True if a new record was created, False if an existing one was re-rated
        """
        now = datetime.now(timezone.utc)
        existing = await self.get_rating(user_id, tmdb_id)

        insert_stmt = sqlite_insert(WatchedMovie).values(
            user_id=user_id,
            tmdb_id=tmdb_id,
            rating=rating,
            watched_at=now,
            updated_at=now,
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["user_id", "tmdb_id"],
            set_={"rating": rating, "updated_at": now},
        )
        await self.session.execute(upsert_stmt)
        await self.session.commit()
        return existing is None

    async def update_rating(self, user_id: str, tmdb_id: int, rating: float) -> bool:
        """Change the rating of an already watched movie.

        Returns:
            True if updated, False if the movie is not marked as watched
        """
        now = datetime.now(timezone.utc)
        stmt = (
            update(WatchedMovie)
            .where(
                WatchedMovie.user_id == user_id,
                WatchedMovie.tmdb_id == tmdb_id,
            )
            .values(rating=rating, updated_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def remove_watched(self, user_id: str, tmdb_id: int) -> bool:
        """Unmark a movie as watched.

        Returns:
            True if removed, False if not found
        """
        stmt = delete(WatchedMovie).where(
            WatchedMovie.user_id == user_id,
            WatchedMovie.tmdb_id == tmdb_id,
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def get_rating(self, user_id: str, tmdb_id: int) -> float | None:
        """Get the user's rating, or None if not watched."""
        stmt = select(WatchedMovie.rating).where(
            WatchedMovie.user_id == user_id,
            WatchedMovie.tmdb_id == tmdb_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_watched(self, user_id: str, limit: int = 500) -> list[WatchedMovie]:
        """Get watched movies with metadata loaded, most recent first."""
        stmt = (
            select(WatchedMovie)
            .options(joinedload(WatchedMovie.movie))
            .where(WatchedMovie.user_id == user_id)
            .order_by(WatchedMovie.watched_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())
