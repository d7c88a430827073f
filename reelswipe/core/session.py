"""Session controller: single owner of the swipe session state.

Views read state from the controller and act only through its methods;
all mutations of decisions and favorites go through the dispatcher.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal

from reelswipe.client.api_client import ApiClient, ApiError, ServiceUnavailableError
from reelswipe.core.autosave import PreferenceAutoSave
from reelswipe.core.contracts import (
    MOVIE_CACHE_TTL,
    Decision,
    Identity,
    MovieCard,
    SwipeDirection,
)
from reelswipe.core.cards import normalize_card, normalize_cards
from reelswipe.core.dispatcher import DecisionDispatcher, validate_rating
from reelswipe.core.gesture import SwipeGestureEngine
from reelswipe.core.queue import EMPTY, SessionQueue
from reelswipe.core.reconciler import CollectionReconciler, DisplayGroups
from reelswipe.core.timers import BackgroundTasks, LoopScheduler, Scheduler
from reelswipe.logging import get_logger

logger = get_logger(__name__)

View = Literal["preferences", "loading", "swiping", "summary", "collections", "profile"]
FetchKind = Literal["search", "random"]


@dataclass(frozen=True)
class SearchFailure:
    """Why a search could not start; rendered as a blocking dialog."""

    kind: Literal["unavailable", "error", "empty"]
    message: str


class MovieCache:
    """Short-lived cache of fetched card lists, keyed by request."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, ttl: float = MOVIE_CACHE_TTL):
        self.clock = clock
        self.ttl = ttl
        self._entries: dict[str, tuple[float, list[MovieCard]]] = {}

    def put(self, key: str, cards: list[MovieCard]) -> None:
        self._entries[key] = (self.clock() + self.ttl, list(cards))

    def get(self, key: str) -> list[MovieCard] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, cards = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return list(cards)

    def take(self, key: str) -> list[MovieCard] | None:
        """Get and remove an entry so one preload feeds one session."""
        cards = self.get(key)
        self._entries.pop(key, None)
        return cards

    def clear(self) -> None:
        self._entries.clear()


class SessionController:
    """Drives one browser session: restore, search, swipe, summary, collections."""

    def __init__(
        self,
        api: ApiClient,
        scheduler: Scheduler | None = None,
        result_count: int = 10,
        cache_ttl: float = MOVIE_CACHE_TTL,
    ) -> None:
        self.api = api
        self.scheduler = scheduler or LoopScheduler()
        self.result_count = result_count
        self.identity: Identity | None = None
        self.view: View = "preferences"
        self.failure: SearchFailure | None = None
        self.share_status: str | None = None
        self.autosave = PreferenceAutoSave(api, self.scheduler)
        self.dispatcher = DecisionDispatcher(api, self.scheduler, resync=self.refresh_collections)
        self.dispatcher.subscribe(self._on_refresh)
        self.reconciler = CollectionReconciler()
        self.queue: SessionQueue | None = None
        self.gesture: SwipeGestureEngine | None = None
        self.cache = MovieCache(self.scheduler.now, ttl=cache_ttl)
        self._preload: asyncio.Task | None = None
        self._pending_rating: tuple[float, Decision | None] | None = None
        self._tasks = BackgroundTasks()

    # -- identity ---------------------------------------------------------

    @property
    def logged_in(self) -> bool:
        return self.identity is not None

    async def restore(self) -> Identity | None:
        """Resume a signed-in session: identity, preferences, collections."""
        try:
            self.identity = await self.api.who_am_i()
        except ApiError as e:
            logger.warning(f"Could not restore session: {e}")
            self.identity = None

        if self.identity is not None:
            logger.info(f"Restored session for {self.identity.user_id}")
            await self.autosave.load()
            await self.refresh_collections()
        return self.identity

    async def logout(self) -> None:
        await self.autosave.flush()
        try:
            await self.api.logout()
        except ApiError as e:
            logger.warning(f"Logout request failed: {e}")
        self.identity = None
        self.autosave.reset()
        self.dispatcher.sync_persisted(liked=set(), disliked=set(), favorites=set(), watched={})
        self.reconciler = CollectionReconciler()
        self.go_home()

    async def view_profile(self) -> dict[str, Any] | None:
        await self.autosave.flush()
        self.view = "profile"
        try:
            return await self.api.profile()
        except ApiError as e:
            logger.warning(f"Loading profile failed: {e}")
            return None

    async def before_unload(self) -> None:
        await self.autosave.flush()

    # -- preferences ------------------------------------------------------

    def update_preferences(self, **changes: Any) -> None:
        self.autosave.update(**changes)

    def set_genre_weight(self, name: str, weight: int) -> None:
        self.autosave.set_genre_weight(name, weight)

    def search_payload(self) -> dict[str, Any]:
        payload = self.autosave.preferences.to_payload()
        payload["count"] = self.result_count
        return payload

    # -- search -----------------------------------------------------------

    def _cache_key(self, kind: FetchKind) -> str:
        if kind == "random":
            return f"random:{self.result_count}"
        return "search:" + json.dumps(self.search_payload(), sort_keys=True)

    async def _fetch(self, kind: FetchKind) -> list[MovieCard]:
        if kind == "random":
            return await self.api.fetch_random(self.result_count)
        return await self.api.search(self.search_payload())

    async def start_search(self, dev_mode: bool = False) -> bool:
        """Fetch cards for a new session and start swiping.

        Returns:
            True if a queue was started; otherwise self.failure says why
        """
        kind: FetchKind = "random" if dev_mode else "search"
        self.cancel_preload()
        self._reset_session()
        self.failure = None
        self.view = "loading"

        await self.autosave.flush()

        cards = self.cache.take(self._cache_key(kind))
        if cards is None:
            try:
                cards = await self._fetch(kind)
            except ServiceUnavailableError as e:
                return self._fail("unavailable", str(e))
            except ApiError as e:
                logger.error(f"Movie {kind} failed: {e}")
                return self._fail("error", str(e))
        else:
            logger.debug(f"Using preloaded {kind} results")

        if not cards:
            return self._fail("empty", "No movies matched your preferences")

        self.queue = SessionQueue(cards, on_complete=self._on_queue_complete)
        self.gesture = SwipeGestureEngine(self._on_commit, self.scheduler)
        self.view = "swiping"
        logger.info(f"Started {kind} session with {len(cards)} cards")
        return True

    def _fail(self, kind: str, message: str) -> bool:
        self.failure = SearchFailure(kind=kind, message=message)
        self.view = "preferences"
        return False

    def dismiss_failure(self) -> None:
        self.failure = None

    # -- preload ----------------------------------------------------------

    def preload(self, kind: FetchKind = "search") -> asyncio.Task:
        """Speculatively fetch results for the next start_search."""
        self.cancel_preload()
        key = self._cache_key(kind)
        task = asyncio.get_running_loop().create_task(self._run_preload(kind, key))
        self._preload = task
        return task

    async def _run_preload(self, kind: FetchKind, key: str) -> None:
        try:
            cards = await self._fetch(kind)
        except ApiError as e:
            logger.debug(f"Preload {kind} failed: {e}")
            return
        if self._preload is not asyncio.current_task():
            logger.debug(f"Discarding superseded {kind} preload")
            return
        self.cache.put(key, cards)
        self._preload = None

    def cancel_preload(self) -> None:
        if self._preload is not None and not self._preload.done():
            self._preload.cancel()
        self._preload = None

    # -- swiping ----------------------------------------------------------

    @property
    def current_card(self) -> MovieCard | None:
        if self.queue is None:
            return None
        card = self.queue.current()
        return card if card is not EMPTY else None

    def pointer_down(self, x: float, y: float) -> bool:
        return self.gesture is not None and self.gesture.start(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        if self.gesture is not None:
            self.gesture.move(x, y)

    def pointer_up(self) -> SwipeDirection | None:
        if self.gesture is None:
            return None
        return self.gesture.release()

    def press_like(self) -> bool:
        return self._press(SwipeDirection.RIGHT)

    def press_dislike(self) -> bool:
        return self._press(SwipeDirection.LEFT)

    def press_watch(self) -> bool:
        """Open the rating dialog for the current card."""
        return self._press(SwipeDirection.UP)

    def _press(self, direction: SwipeDirection) -> bool:
        if self.gesture is None or self.current_card is None:
            return False
        return self.gesture.commit(direction)

    @property
    def awaiting_rating(self) -> bool:
        return self.gesture is not None and self.gesture.awaiting_rating

    def submit_rating(self, rating: float, preference: Decision | None = None) -> bool:
        """Confirm the watched rating and animate the card out.

        Raises:
            ValueError: If the rating is invalid
        """
        validate_rating(rating)
        if not self.awaiting_rating:
            return False
        self._pending_rating = (rating, preference)
        return self.gesture.resolve_rating()

    def cancel_rating(self) -> bool:
        return self.gesture is not None and self.gesture.cancel_rating()

    def _on_commit(self, direction: SwipeDirection) -> None:
        card = self.current_card
        if card is None:
            return
        decision = direction.decision
        if decision == Decision.WATCH:
            if self._pending_rating is not None:
                rating, preference = self._pending_rating
                self._pending_rating = None
                self.dispatcher.watch(card, rating, preference)
        else:
            self.dispatcher.decide(card, decision)
        self.queue.advance()

    def _on_queue_complete(self) -> None:
        logger.info("Session queue finished")
        self.view = "summary"

    def summary(self) -> DisplayGroups:
        """This session's decisions, grouped for the summary view."""
        summary = CollectionReconciler()
        summary.load(
            session_liked=self.dispatcher.sessions.liked_cards,
            session_disliked=self.dispatcher.sessions.disliked_cards,
            favorite_ids=self.dispatcher.favorites,
        )
        return summary.groups()

    # -- collections ------------------------------------------------------

    async def open_collections(self) -> DisplayGroups:
        self.view = "collections"
        await self.refresh_collections()
        return self.reconciler.groups()

    async def refresh_collections(self) -> bool:
        """Re-fetch persisted collections and rebuild the reconciler inputs."""
        if not self.logged_in:
            return False
        try:
            liked, disliked, favorites, watched = await asyncio.gather(
                self.api.list_liked(),
                self.api.list_disliked(),
                self.api.list_favorites(),
                self.api.list_watched(),
            )
        except ApiError as e:
            logger.warning(f"Refreshing collections failed: {e}")
            return False

        favorite_ids = {str(card.tmdb_id) for card in normalize_cards(favorites)}
        watched_ratings = {}
        for raw in watched:
            card = normalize_card(raw)
            if card is not None and isinstance(raw, dict) and isinstance(raw.get("rating"), (int, float)):
                watched_ratings[card.tmdb_id] = float(raw["rating"])

        self.dispatcher.sync_persisted(
            liked={card.tmdb_id for card in normalize_cards(liked)},
            disliked={card.tmdb_id for card in normalize_cards(disliked)},
            favorites=favorite_ids,
            watched=watched_ratings,
        )
        self._load_reconciler(liked=liked, disliked=disliked, favorites=favorites)
        return True

    def _load_reconciler(self, **persisted: list[Any]) -> None:
        self.reconciler.load(
            session_liked=self.dispatcher.sessions.liked_cards,
            session_disliked=self.dispatcher.sessions.disliked_cards,
            persisted_liked=persisted.get("liked"),
            persisted_disliked=persisted.get("disliked"),
            persisted_favorites=persisted.get("favorites"),
            favorite_ids=self.dispatcher.favorites,
        )

    def _on_refresh(self, counter: int) -> None:
        self._load_reconciler()
        if self.view == "collections":
            self._tasks.spawn(self.refresh_collections(), name=f"refresh-{counter}")

    def _find_card(self, tmdb_id: int) -> MovieCard | None:
        for entry in self.reconciler.unfiltered_groups().all():
            if entry.tmdb_id == tmdb_id:
                return entry.card
        return self.dispatcher.sessions.card(tmdb_id)

    def toggle_favorite(self, tmdb_id: int) -> bool:
        card = self._find_card(tmdb_id)
        if card is None:
            logger.warning(f"Cannot favorite unknown movie {tmdb_id}")
            return False
        changed = self.dispatcher.toggle_favorite(card)
        if changed:
            self._load_reconciler()
        return changed

    async def move_to_disliked(self, tmdb_id: int) -> bool:
        return await self.dispatcher.move_to_disliked(tmdb_id, self._find_card(tmdb_id))

    async def move_to_liked(self, tmdb_id: int) -> bool:
        return await self.dispatcher.move_to_liked(tmdb_id, self._find_card(tmdb_id))

    async def remove_from_collection(self, tmdb_id: int) -> bool:
        return await self.dispatcher.remove(tmdb_id)

    # -- navigation / share ----------------------------------------------

    def _reset_session(self) -> None:
        if self.gesture is not None:
            self.gesture.reset()
        self.gesture = None
        self.queue = None
        self._pending_rating = None
        self.dispatcher.reset_session()

    def go_home(self) -> None:
        """Abandon the current session and return to the preference form."""
        self.cancel_preload()
        self._reset_session()
        self.failure = None
        self.view = "preferences"

    async def share(self, card: MovieCard, recipient_email: str, message: str = "") -> bool:
        try:
            await self.api.share(card.tmdb_id, recipient_email, message)
        except ServiceUnavailableError as e:
            logger.warning(f"Share unavailable: {e}")
            self.share_status = "unavailable"
            return False
        except ApiError as e:
            logger.warning(f"Share failed: {e}")
            self.share_status = "failed"
            return False
        self.share_status = "sent"
        return True

    async def drain(self) -> None:
        """Wait for background mutations, saves and refreshes."""
        await self.dispatcher.drain()
        await self.autosave.drain()
        await self._tasks.drain()
