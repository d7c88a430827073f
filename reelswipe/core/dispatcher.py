"""Decision dispatcher: optimistic local updates plus remote mutations."""

from typing import Any, Awaitable, Callable, Coroutine

from reelswipe.core.contracts import BUSY_WINDOW, CollectionsGateway, Decision, MovieCard
from reelswipe.core.timers import BackgroundTasks, Scheduler, TimerHandle
from reelswipe.logging import get_logger

logger = get_logger(__name__)


def validate_rating(rating: float) -> float:
    """Check a star rating: half steps from 0.5 to 5.

    Raises:
        ValueError: If the rating is out of range or not a half step
    """
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise ValueError(f"Rating must be a number, got {rating!r}")
    if not 0 < rating <= 5 or (rating * 2) != int(rating * 2):
        raise ValueError(f"Rating must be 0.5-5 in 0.5 steps, got {rating}")
    return float(rating)


class SessionDecisionSets:
    """Liked and disliked catalog IDs for the current session.

    Insertion ordered; an ID is never in both sets. Cards are kept where
    known so the summary view can render them.
    """

    def __init__(self) -> None:
        self._liked: dict[int, MovieCard | None] = {}
        self._disliked: dict[int, MovieCard | None] = {}

    @property
    def liked(self) -> frozenset[int]:
        return frozenset(self._liked)

    @property
    def disliked(self) -> frozenset[int]:
        return frozenset(self._disliked)

    @property
    def liked_ids(self) -> list[int]:
        return list(self._liked)

    @property
    def disliked_ids(self) -> list[int]:
        return list(self._disliked)

    @property
    def liked_cards(self) -> list[MovieCard]:
        return [card for card in self._liked.values() if card is not None]

    @property
    def disliked_cards(self) -> list[MovieCard]:
        return [card for card in self._disliked.values() if card is not None]

    def card(self, tmdb_id: int) -> MovieCard | None:
        return self._liked.get(tmdb_id) or self._disliked.get(tmdb_id)

    def add_liked(self, card: MovieCard) -> bool:
        """Returns False if already liked this session."""
        return self._put(self._liked, self._disliked, card.tmdb_id, card)

    def add_disliked(self, card: MovieCard) -> bool:
        """Returns False if already disliked this session."""
        return self._put(self._disliked, self._liked, card.tmdb_id, card)

    def move_to_liked(self, tmdb_id: int, card: MovieCard | None = None) -> None:
        self._put(self._liked, self._disliked, tmdb_id, card)

    def move_to_disliked(self, tmdb_id: int, card: MovieCard | None = None) -> None:
        self._put(self._disliked, self._liked, tmdb_id, card)

    def discard(self, tmdb_id: int) -> None:
        self._liked.pop(tmdb_id, None)
        self._disliked.pop(tmdb_id, None)

    def clear(self) -> None:
        self._liked.clear()
        self._disliked.clear()

    def _put(
        self,
        target: dict[int, MovieCard | None],
        other: dict[int, MovieCard | None],
        tmdb_id: int,
        card: MovieCard | None,
    ) -> bool:
        moved = other.pop(tmdb_id, None)
        if tmdb_id in target:
            if target[tmdb_id] is None:
                target[tmdb_id] = card or moved
            return False
        target[tmdb_id] = card or moved
        return True


class DecisionDispatcher:
    """Applies decisions locally first, then issues remote mutations.

    like/dislike/watch/favorite mutations are fire-and-forget: failures are
    logged and local state is kept. A per-ID busy marker suppresses repeat
    dispatch for the same card until the busy window elapses. Moves between
    collections are awaited and fall back to a full resync on failure.
    """

    def __init__(
        self,
        gateway: CollectionsGateway,
        scheduler: Scheduler,
        busy_window: float = BUSY_WINDOW,
        resync: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.gateway = gateway
        self.scheduler = scheduler
        self.busy_window = busy_window
        self.resync = resync
        self.sessions = SessionDecisionSets()
        # FavoriteMembership: catalog IDs as strings
        self.favorites: set[str] = set()
        self.persisted_liked: set[int] = set()
        self.persisted_disliked: set[int] = set()
        self.watched_ratings: dict[int, float] = {}
        self.refresh_counter = 0
        self._observers: list[Callable[[int], None]] = []
        self._busy: dict[int, TimerHandle] = {}
        self._tasks = BackgroundTasks()

    # -- observers / state sync ------------------------------------------

    def subscribe(self, callback: Callable[[int], None]) -> None:
        """Call callback(counter) whenever the refresh counter moves."""
        self._observers.append(callback)

    def bump_refresh(self) -> int:
        self.refresh_counter += 1
        for callback in list(self._observers):
            callback(self.refresh_counter)
        return self.refresh_counter

    def sync_persisted(
        self,
        liked: set[int] | None = None,
        disliked: set[int] | None = None,
        favorites: set[str] | None = None,
        watched: dict[int, float] | None = None,
    ) -> None:
        """Replace cached server truth after a reconciliation fetch."""
        if liked is not None:
            self.persisted_liked = set(liked)
        if disliked is not None:
            self.persisted_disliked = set(disliked)
        if favorites is not None:
            self.favorites = set(favorites)
        if watched is not None:
            self.watched_ratings = dict(watched)

    def is_liked(self, tmdb_id: int) -> bool:
        if tmdb_id in self.sessions.liked:
            return True
        return tmdb_id in self.persisted_liked and tmdb_id not in self.sessions.disliked

    def is_favorite(self, tmdb_id: int) -> bool:
        return str(tmdb_id) in self.favorites

    def is_busy(self, tmdb_id: int) -> bool:
        return tmdb_id in self._busy

    # -- busy markers / background tasks ---------------------------------

    def _claim(self, tmdb_id: int) -> bool:
        if tmdb_id in self._busy:
            logger.debug(f"Movie {tmdb_id} is busy, ignoring repeat action")
            return False
        self._busy[tmdb_id] = self.scheduler.call_later(
            self.busy_window, lambda: self._busy.pop(tmdb_id, None)
        )
        return True

    def _fire(
        self,
        coro: Coroutine[Any, Any, Any],
        label: str,
        on_success: Callable[[], None] | None = None,
    ) -> None:
        async def run() -> None:
            try:
                await coro
            except Exception as e:
                logger.warning(f"{label} failed, keeping local state: {e}")
                return
            if on_success is not None:
                on_success()

        self._tasks.spawn(run(), name=label)

    async def drain(self) -> None:
        """Wait for all in-flight mutations."""
        await self._tasks.drain()

    # -- decisions -------------------------------------------------------

    def like(self, card: MovieCard) -> bool:
        """Like a card. Returns True if a remote mutation was issued."""
        if not self._claim(card.tmdb_id):
            return False
        return self._like(card)

    def dislike(self, card: MovieCard) -> bool:
        """Dislike a card. Returns True if a remote mutation was issued."""
        if not self._claim(card.tmdb_id):
            return False
        return self._dislike(card)

    def _like(self, card: MovieCard) -> bool:
        if not self.sessions.add_liked(card):
            return False
        self._fire(self.gateway.like(card), f"Like {card.tmdb_id}")
        return True

    def _dislike(self, card: MovieCard) -> bool:
        if not self.sessions.add_disliked(card):
            return False
        self.favorites.discard(str(card.tmdb_id))
        self._fire(self.gateway.dislike(card), f"Dislike {card.tmdb_id}")
        return True

    def decide(self, card: MovieCard, decision: Decision, rating: float | None = None) -> bool:
        """Dispatch a committed swipe decision."""
        if decision == Decision.LIKE:
            return self.like(card)
        if decision == Decision.DISLIKE:
            return self.dislike(card)
        if rating is None:
            raise ValueError("A watch decision needs a rating")
        return self.watch(card, rating)

    def watch(
        self,
        card: MovieCard,
        rating: float,
        preference: Decision | None = None,
    ) -> bool:
        """Record a watched rating, optionally with a like/dislike.

        An already-watched movie gets a rating update instead of a new record.

        Raises:
            ValueError: If the rating is invalid
        """
        rating = validate_rating(rating)
        if not self._claim(card.tmdb_id):
            return False

        if card.tmdb_id in self.watched_ratings:
            remote = self.gateway.update_watched_rating(card.tmdb_id, rating)
            label = f"Update rating {card.tmdb_id}"
        else:
            remote = self.gateway.add_watched(card, rating)
            label = f"Mark watched {card.tmdb_id}"
        self.watched_ratings[card.tmdb_id] = rating
        self._fire(remote, label)

        if preference == Decision.LIKE:
            self._like(card)
        elif preference == Decision.DISLIKE:
            self._dislike(card)
        return True

    def unwatch(self, tmdb_id: int) -> bool:
        if tmdb_id not in self.watched_ratings or not self._claim(tmdb_id):
            return False
        del self.watched_ratings[tmdb_id]
        self._fire(self.gateway.remove_watched(tmdb_id), f"Unwatch {tmdb_id}")
        return True

    def toggle_favorite(self, card: MovieCard) -> bool:
        """Flip favorite membership for a liked card.

        Returns:
            True if membership changed, False if refused or busy
        """
        key = str(card.tmdb_id)
        if key not in self.favorites and not self.is_liked(card.tmdb_id):
            logger.info(f"Refusing to favorite {card.tmdb_id}: not liked")
            return False
        if not self._claim(card.tmdb_id):
            return False

        if key in self.favorites:
            self.favorites.discard(key)
            remote = self.gateway.remove_favorite(card.tmdb_id)
            label = f"Unfavorite {card.tmdb_id}"
        else:
            self.favorites.add(key)
            remote = self.gateway.add_favorite(card)
            label = f"Favorite {card.tmdb_id}"
        self._fire(remote, label, on_success=self.bump_refresh)
        return True

    # -- collection moves (awaited) --------------------------------------

    async def move_to_disliked(self, tmdb_id: int, card: MovieCard | None = None) -> bool:
        """Move a liked (possibly favorited) movie to disliked."""
        if not self._claim(tmdb_id):
            return False
        try:
            await self.gateway.move_to_disliked(tmdb_id)
        except Exception as e:
            logger.warning(f"Move {tmdb_id} to disliked failed, resyncing: {e}")
            await self._resync()
            return False

        self.sessions.move_to_disliked(tmdb_id, card)
        self.favorites.discard(str(tmdb_id))
        self.persisted_liked.discard(tmdb_id)
        self.persisted_disliked.add(tmdb_id)
        self.bump_refresh()
        return True

    async def move_to_liked(self, tmdb_id: int, card: MovieCard | None = None) -> bool:
        """Move a disliked movie to liked."""
        if not self._claim(tmdb_id):
            return False
        try:
            await self.gateway.move_to_liked(tmdb_id)
        except Exception as e:
            logger.warning(f"Move {tmdb_id} to liked failed, resyncing: {e}")
            await self._resync()
            return False

        self.sessions.move_to_liked(tmdb_id, card)
        self.persisted_disliked.discard(tmdb_id)
        self.persisted_liked.add(tmdb_id)
        self.bump_refresh()
        return True

    async def remove(self, tmdb_id: int) -> bool:
        """Remove a movie from liked or disliked; liked removal drops the favorite."""
        if not self._claim(tmdb_id):
            return False
        liked = self.is_liked(tmdb_id)
        try:
            if liked:
                await self.gateway.remove_liked(tmdb_id)
            else:
                await self.gateway.remove_disliked(tmdb_id)
        except Exception as e:
            logger.warning(f"Remove {tmdb_id} failed, resyncing: {e}")
            await self._resync()
            return False

        self.sessions.discard(tmdb_id)
        self.favorites.discard(str(tmdb_id))
        self.persisted_liked.discard(tmdb_id)
        self.persisted_disliked.discard(tmdb_id)
        self.bump_refresh()
        return True

    async def clear(self, decision: Decision) -> bool:
        """Clear the whole liked or disliked collection."""
        try:
            if decision == Decision.LIKE:
                await self.gateway.clear_liked()
            else:
                await self.gateway.clear_disliked()
        except Exception as e:
            logger.warning(f"Clearing {decision.value} collection failed, resyncing: {e}")
            await self._resync()
            return False

        if decision == Decision.LIKE:
            for tmdb_id in self.sessions.liked_ids:
                self.sessions.discard(tmdb_id)
            self.persisted_liked.clear()
            self.favorites.clear()
        else:
            for tmdb_id in self.sessions.disliked_ids:
                self.sessions.discard(tmdb_id)
            self.persisted_disliked.clear()
        self.bump_refresh()
        return True

    async def _resync(self) -> None:
        if self.resync is None:
            self.bump_refresh()
            return
        try:
            await self.resync()
        except Exception as e:
            logger.error(f"Resync after failed move also failed: {e}")

    def reset_session(self) -> None:
        """Forget session decisions (new search / home)."""
        self.sessions.clear()
