"""Append-only audit trail of user actions."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.logging import get_logger
from reelswipe.storage.json_utils import safe_json_dumps
from reelswipe.storage.models import Event

logger = get_logger(__name__)

EVENT_NAMES = frozenset(
    {"login", "like", "dislike", "favorite", "unfavorite", "move", "watched", "share"}
)


def _filtered(stmt: Select, event_name: str | None, user_id: str | None, tmdb_id: int | None) -> Select:
    if event_name:
        stmt = stmt.where(Event.event_name == event_name)
    if user_id:
        stmt = stmt.where(Event.user_id == user_id)
    if tmdb_id is not None:
        stmt = stmt.where(Event.tmdb_id == tmdb_id)
    return stmt


class EventsRepo:
    """Writes and queries the events table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def log_event(
        self,
        event_name: str,
        user_id: str | None = None,
        tmdb_id: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Event:
        """Record one user action.

        Args:
            event_name: One of EVENT_NAMES; others are stored but warned about
            user_id: Acting user
            tmdb_id: Movie the action is about, if any
            payload: Extra details, stored as compact JSON

        Returns:
            The stored Event
        """
        if event_name not in EVENT_NAMES:
            logger.warning(f"Logging unknown event name: {event_name}")

        event = Event(
            event_name=event_name,
            user_id=user_id,
            tmdb_id=tmdb_id,
            payload_json=safe_json_dumps(payload or {}),
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(event)
        await self.session.commit()
        await self.session.refresh(event)
        return event

    async def list_events(
        self,
        event_name: str | None = None,
        user_id: str | None = None,
        tmdb_id: int | None = None,
        limit: int = 200,
    ) -> list[Event]:
        """Newest first."""
        stmt = _filtered(select(Event), event_name, user_id, tmdb_id)
        stmt = stmt.order_by(Event.created_at.desc(), Event.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_events(
        self,
        event_name: str | None = None,
        user_id: str | None = None,
        tmdb_id: int | None = None,
    ) -> int:
        stmt = _filtered(select(func.count()).select_from(Event), event_name, user_id, tmdb_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
