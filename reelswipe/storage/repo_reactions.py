"""Repository for liked / disliked movie lists."""

from datetime import datetime, timezone
from typing import Literal

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from reelswipe.storage.models import Favorite, MovieReaction

Reaction = Literal["liked", "disliked"]


class ReactionsRepo:
    """Repository for a user's liked and disliked movies.

    A movie holds at most one reaction per user, so it can never be both
    liked and disliked. Any write that leaves a movie not-liked also drops
    it from favorites in the same commit.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_reaction(self, user_id: str, tmdb_id: int) -> str | None:
        """Get the current reaction for a movie.

        Args:
            user_id: User ID
            tmdb_id: Catalog ID

        Returns:
            "liked", "disliked" or None
        """
        stmt = select(MovieReaction.reaction).where(
            MovieReaction.user_id == user_id,
            MovieReaction.tmdb_id == tmdb_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_reaction(self, user_id: str, tmdb_id: int, reaction: Reaction) -> str | None:
        """Record a like or dislike, replacing the opposite reaction.

        Re-recording the same reaction keeps the original timestamp.

        Args:
            user_id: User ID
            tmdb_id: Catalog ID
            reaction: "liked" or "disliked"

        Returns:
            The previous reaction, or None if there was none
        """
        previous = await self.get_reaction(user_id, tmdb_id)
        if previous == reaction:
            return previous

        now = datetime.now(timezone.utc)
        insert_stmt = sqlite_insert(MovieReaction).values(
            user_id=user_id,
            tmdb_id=tmdb_id,
            reaction=reaction,
            created_at=now,
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["user_id", "tmdb_id"],
            set_={"reaction": reaction, "created_at": now},
        )
        await self.session.execute(upsert_stmt)

        if reaction == "disliked":
            await self._drop_favorite(user_id, tmdb_id)

        await self.session.commit()
        return previous

    async def move(self, user_id: str, tmdb_id: int, destination: Reaction) -> bool:
        """Move a movie to the other list.

        The source row, any favorite, and the destination row change in one
        transaction.

        Args:
            user_id: User ID
            tmdb_id: Catalog ID
            destination: List the movie must end up in

        Returns:
            True if the movie changed list, False if it was already there
        """
        previous = await self.set_reaction(user_id, tmdb_id, destination)
        return previous != destination

    async def remove_reaction(
        self,
        user_id: str,
        tmdb_id: int,
        reaction: Reaction,
    ) -> bool:
        """Remove a movie from one list.

        Removing a liked movie also removes it from favorites.

        Returns:
            True if removed, False if not found
        """
        stmt = delete(MovieReaction).where(
            MovieReaction.user_id == user_id,
            MovieReaction.tmdb_id == tmdb_id,
            MovieReaction.reaction == reaction,
        )
        result = await self.session.execute(stmt)
        if reaction == "liked" and result.rowcount > 0:
            await self._drop_favorite(user_id, tmdb_id)

        await self.session.commit()
        return result.rowcount > 0

    async def clear_reactions(self, user_id: str, reaction: Reaction) -> int:
        """Remove every movie from one list.

        Returns:
            Number of removed rows
        """
        if reaction == "liked":
            await self.session.execute(delete(Favorite).where(Favorite.user_id == user_id))

        stmt = delete(MovieReaction).where(
            MovieReaction.user_id == user_id,
            MovieReaction.reaction == reaction,
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def list_reactions(
        self,
        user_id: str,
        reaction: Reaction,
        limit: int = 500,
    ) -> list[MovieReaction]:
        """Get one list with movies loaded, newest first."""
        stmt = (
            select(MovieReaction)
            .options(joinedload(MovieReaction.movie))
            .where(
                MovieReaction.user_id == user_id,
                MovieReaction.reaction == reaction,
            )
            .order_by(MovieReaction.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def count_reactions(self, user_id: str, reaction: Reaction) -> int:
        """Count one list."""
        stmt = (
            select(func.count())
            .select_from(MovieReaction)
            .where(
                MovieReaction.user_id == user_id,
                MovieReaction.reaction == reaction,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def _drop_favorite(self, user_id: str, tmdb_id: int) -> None:
        await self.session.execute(
            delete(Favorite).where(
                Favorite.user_id == user_id,
                Favorite.tmdb_id == tmdb_id,
            )
        )
