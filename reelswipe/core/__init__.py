"""Core module: swipe session state machine and domain types.

The session controller lives in reelswipe.core.session and is imported
from there directly, since it depends on the HTTP client.
"""

from reelswipe.core.autosave import PreferenceAutoSave, PreferenceLoadState
from reelswipe.core.cards import card_key, normalize_card, normalize_cards, parse_catalog_id
from reelswipe.core.contracts import (
    AGE_RATINGS,
    Decision,
    Identity,
    MovieCard,
    SwipeDirection,
    UserPreferences,
)
from reelswipe.core.dispatcher import DecisionDispatcher, SessionDecisionSets, validate_rating
from reelswipe.core.gesture import GestureState, SwipeGestureEngine, classify_release
from reelswipe.core.queue import EMPTY, SessionQueue
from reelswipe.core.reconciler import (
    CollectionFilters,
    CollectionReconciler,
    DisplayCard,
    DisplayGroups,
)
from reelswipe.core.timers import BackgroundTasks, Debouncer, LoopScheduler, Scheduler

__all__ = [
    # Contracts/Types
    "AGE_RATINGS",
    "Decision",
    "Identity",
    "MovieCard",
    "SwipeDirection",
    "UserPreferences",
    # Cards
    "card_key",
    "normalize_card",
    "normalize_cards",
    "parse_catalog_id",
    # Session pieces
    "SwipeGestureEngine",
    "GestureState",
    "classify_release",
    "SessionQueue",
    "EMPTY",
    "DecisionDispatcher",
    "SessionDecisionSets",
    "validate_rating",
    "CollectionReconciler",
    "CollectionFilters",
    "DisplayCard",
    "DisplayGroups",
    "PreferenceAutoSave",
    "PreferenceLoadState",
    # Timers
    "Scheduler",
    "LoopScheduler",
    "Debouncer",
    "BackgroundTasks",
]
