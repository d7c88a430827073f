"""Debounced preference auto-save with explicit flush points."""

from enum import Enum
from typing import Any

from reelswipe.core.contracts import AUTOSAVE_DEBOUNCE, PreferencesGateway, UserPreferences
from reelswipe.core.timers import BackgroundTasks, Debouncer, Scheduler
from reelswipe.logging import get_logger

logger = get_logger(__name__)


class PreferenceLoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED_DEFAULTS = "loaded_defaults"
    LOADED_FROM_SERVER = "loaded_from_server"


class PreferenceAutoSave:
    """Keeps the preference object in sync with the server.

    Every mutation restarts the debounce timer; the object is sent after a
    quiet period. Nothing is sent until the initial load has finished, so
    client defaults never overwrite stored preferences. Edits made while the
    load is in flight are replayed over the loaded object and then saved.
    flush() bypasses the debounce for logout, profile view and page unload.
    """

    def __init__(
        self,
        gateway: PreferencesGateway,
        scheduler: Scheduler,
        debounce: float = AUTOSAVE_DEBOUNCE,
    ) -> None:
        self.gateway = gateway
        self.preferences = UserPreferences()
        self.state = PreferenceLoadState.UNLOADED
        self._debouncer = Debouncer(scheduler, debounce, self._save_in_background)
        self._tasks = BackgroundTasks()
        self._pending_changes: dict[str, Any] = {}
        self._pending_genres: dict[str, int] = {}

    @property
    def loaded(self) -> bool:
        return self.state in (
            PreferenceLoadState.LOADED_DEFAULTS,
            PreferenceLoadState.LOADED_FROM_SERVER,
        )

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    async def load(self) -> UserPreferences:
        """Fetch stored preferences; failures and empty payloads give defaults."""
        self._debouncer.cancel()
        self._clear_pending()
        self.state = PreferenceLoadState.LOADING
        try:
            payload = await self.gateway.load_preferences()
        except Exception as e:
            logger.warning(f"Loading preferences failed, using defaults: {e}")
            payload = None

        if payload:
            self.preferences = UserPreferences.from_payload(payload)
            self.state = PreferenceLoadState.LOADED_FROM_SERVER
        else:
            self.preferences = UserPreferences()
            self.state = PreferenceLoadState.LOADED_DEFAULTS
        logger.debug(f"Preferences {self.state.value}")
        self._replay_pending()
        return self.preferences

    def update(self, **changes: Any) -> UserPreferences:
        """Apply field changes and restart the debounce timer."""
        self.preferences = self.preferences.updated(**changes)
        if self.state is PreferenceLoadState.LOADING:
            self._pending_changes.update(changes)
        elif self.loaded:
            self._debouncer.trigger()
        return self.preferences

    def set_genre_weight(self, name: str, weight: int) -> UserPreferences:
        genres = dict(self.preferences.genres)
        genres[name] = weight
        self.preferences = self.preferences.updated(genres=genres)
        if self.state is PreferenceLoadState.LOADING:
            self._pending_genres[name] = weight
        elif self.loaded:
            self._debouncer.trigger()
        return self.preferences

    async def flush(self) -> bool:
        """Send now, cancelling any pending timer.

        Returns:
            False before the initial load has finished, otherwise whether
            the save succeeded
        """
        if not self.loaded:
            return False
        self._debouncer.cancel()
        return await self._save()

    def close(self) -> None:
        self._debouncer.cancel()

    async def drain(self) -> None:
        await self._tasks.drain()

    def reset(self) -> None:
        """Back to unloaded defaults (logout)."""
        self.close()
        self._clear_pending()
        self.preferences = UserPreferences()
        self.state = PreferenceLoadState.UNLOADED

    def _clear_pending(self) -> None:
        self._pending_changes = {}
        self._pending_genres = {}

    def _replay_pending(self) -> None:
        if not self._pending_changes and not self._pending_genres:
            return
        changes = dict(self._pending_changes)
        if self._pending_genres:
            genres = dict(changes.get("genres", self.preferences.genres))
            genres.update(self._pending_genres)
            changes["genres"] = genres
        self._clear_pending()
        self.preferences = self.preferences.updated(**changes)
        logger.debug(f"Replayed edits made during load: {sorted(changes)}")
        self._debouncer.trigger()

    def _save_in_background(self) -> None:
        self._tasks.spawn(self._save(), name="save-preferences")

    async def _save(self) -> bool:
        try:
            await self.gateway.save_preferences(self.preferences.to_payload())
        except Exception as e:
            logger.warning(f"Saving preferences failed: {e}")
            return False
        return True
