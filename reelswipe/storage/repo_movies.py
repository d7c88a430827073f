"""Repository for cached catalog metadata."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.storage.json_utils import safe_json_dumps
from reelswipe.storage.models import Movie

_UPDATABLE_FIELDS = (
    "title",
    "poster_path",
    "overview",
    "release_date",
    "vote_average",
    "runtime",
    "language",
    "age_rating",
    "director",
)


class MoviesRepo:
    """Repository for the movie metadata cache."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_movie(self, tmdb_id: int) -> Movie | None:
        """Get cached movie metadata.

        Args:
            tmdb_id: Catalog ID

        Returns:
            Movie instance or None
        """
        stmt = select(Movie).where(Movie.tmdb_id == tmdb_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_movie(self, tmdb_id: int, data: dict[str, Any]) -> None:
        """Insert or refresh movie metadata.

        Only non-empty fields overwrite existing values, so a stub written
        from a bare like request never erases richer catalog data.

        Args:
            tmdb_id: Catalog ID
            data: Snake-case fields (title, poster_path, genres, keywords, ...)
        """
        now = datetime.now(timezone.utc)
        values: dict[str, Any] = {
            field: data.get(field) for field in _UPDATABLE_FIELDS
        }
        values["title"] = values["title"] or ""
        if data.get("genres"):
            values["genres_json"] = safe_json_dumps(list(data["genres"]), default="[]")
        if data.get("keywords"):
            values["keywords_json"] = safe_json_dumps(list(data["keywords"]), default="[]")

        insert_stmt = sqlite_insert(Movie).values(tmdb_id=tmdb_id, updated_at=now, **values)

        update_values: dict[str, Any] = {"updated_at": now}
        for field, value in values.items():
            if value not in (None, "", []):
                update_values[field] = value

        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["tmdb_id"],
            set_=update_values,
        )
        await self.session.execute(upsert_stmt)
        await self.session.commit()
