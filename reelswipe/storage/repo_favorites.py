"""Repository for favorites operations."""

from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from reelswipe.storage.models import Favorite, MovieReaction


class FavoritesRepo:
    """Repository for user favorites operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_favorite(self, user_id: str, tmdb_id: int) -> bool:
        """Add a movie to the user's favorites.

        Favorites are a subset of liked movies: the liked row is written
        (or a dislike flipped) in the same commit.

        Args:
            user_id: User ID
            tmdb_id: Catalog ID

        Returns:
            True if added, False if already favorited
        """
        now = datetime.now(timezone.utc)

        like_stmt = sqlite_insert(MovieReaction).values(
            user_id=user_id,
            tmdb_id=tmdb_id,
            reaction="liked",
            created_at=now,
        )
        await self.session.execute(
            like_stmt.on_conflict_do_update(
                index_elements=["user_id", "tmdb_id"],
                set_={"reaction": "liked"},
            )
        )

        insert_stmt = sqlite_insert(Favorite).values(
            user_id=user_id,
            tmdb_id=tmdb_id,
            created_at=now,
        )
        # Ignore conflict (already favorited)
        upsert_stmt = insert_stmt.on_conflict_do_nothing(
            index_elements=["user_id", "tmdb_id"]
        )
        result = await self.session.execute(upsert_stmt)
        await self.session.commit()

        return result.rowcount > 0

    async def remove_favorite(self, user_id: str, tmdb_id: int) -> bool:
        """Remove a movie from favorites; it stays liked.

        Returns:
            True if removed, False if not found
        """
        stmt = delete(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.tmdb_id == tmdb_id,
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def list_favorites(
        self,
        user_id: str,
        limit: int = 500,
    ) -> list[Favorite]:
        """Get user's favorites with movies loaded, newest first."""
        stmt = (
            select(Favorite)
            .options(joinedload(Favorite.movie))
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def is_favorited(self, user_id: str, tmdb_id: int) -> bool:
        """Check if a movie is in the user's favorites."""
        stmt = select(Favorite.id).where(
            Favorite.user_id == user_id,
            Favorite.tmdb_id == tmdb_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def count_favorites(self, user_id: str) -> int:
        """Count user's favorites."""
        stmt = (
            select(func.count())
            .select_from(Favorite)
            .where(Favorite.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
