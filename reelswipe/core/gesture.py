"""Swipe gesture engine: pointer movement to committed card decisions."""

from enum import Enum
from typing import Callable

from reelswipe.core.contracts import (
    COMMIT_ANIMATION,
    ROTATION_DIVISOR,
    SWIPE_THRESHOLD,
    SwipeDirection,
)
from reelswipe.core.timers import Scheduler, TimerHandle
from reelswipe.logging import get_logger

logger = get_logger(__name__)

# How far a committed card is flung off screen
FLING_DISTANCE = 1000.0


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    AWAITING_RATING = "awaiting_rating"


def classify_release(dx: float, dy: float, threshold: float = SWIPE_THRESHOLD) -> SwipeDirection | None:
    """Classify a released drag offset.

    Horizontal wins when it is past the threshold and at least as large as
    the vertical offset; an upward drag past the threshold with a small
    horizontal component is UP. Anything else cancels.
    """
    if abs(dx) > threshold and abs(dx) >= abs(dy):
        return SwipeDirection.RIGHT if dx > 0 else SwipeDirection.LEFT
    if dy < -threshold and abs(dx) < threshold:
        return SwipeDirection.UP
    return None


class SwipeGestureEngine:
    """Tracks one card's drag and commits decisions through a single path.

    Button presses call commit() directly; gesture releases reach the same
    method, so both produce identical downstream effects. While a commit
    animation runs (or an UP swipe waits for its rating) new starts are
    rejected and moves are ignored.
    """

    def __init__(
        self,
        on_commit: Callable[[SwipeDirection], None],
        scheduler: Scheduler,
        threshold: float = SWIPE_THRESHOLD,
        animation: float = COMMIT_ANIMATION,
    ) -> None:
        self.on_commit = on_commit
        self.scheduler = scheduler
        self.threshold = threshold
        self.animation = animation
        self.state = GestureState.IDLE
        self.offset: tuple[float, float] = (0.0, 0.0)
        self._origin: tuple[float, float] = (0.0, 0.0)
        self._handle: TimerHandle | None = None

    @property
    def rotation(self) -> float:
        return self.offset[0] / ROTATION_DIVISOR

    @property
    def locked(self) -> bool:
        return self.state in (GestureState.COMMITTING, GestureState.AWAITING_RATING)

    @property
    def awaiting_rating(self) -> bool:
        return self.state == GestureState.AWAITING_RATING

    def start(self, x: float, y: float) -> bool:
        """Pointer-down / touch-start. Returns False while locked."""
        if self.locked:
            return False
        self.state = GestureState.DRAGGING
        self._origin = (x, y)
        self.offset = (0.0, 0.0)
        return True

    def move(self, x: float, y: float) -> None:
        if self.state != GestureState.DRAGGING:
            return
        self.offset = (x - self._origin[0], y - self._origin[1])

    def release(self) -> SwipeDirection | None:
        """Pointer-up / touch-end: commit or snap back."""
        if self.state != GestureState.DRAGGING:
            return None
        direction = classify_release(self.offset[0], self.offset[1], self.threshold)
        if direction is None:
            self.state = GestureState.IDLE
            self.offset = (0.0, 0.0)
            return None
        self.state = GestureState.IDLE
        self.commit(direction)
        return direction

    def commit(self, direction: SwipeDirection) -> bool:
        """Commit a decision. Returns False if one is already in flight."""
        if self.locked:
            logger.debug(f"Ignoring {direction.value} commit while {self.state.value}")
            return False
        if direction == SwipeDirection.UP:
            self.state = GestureState.AWAITING_RATING
            return True
        self._animate_out(direction)
        return True

    def resolve_rating(self) -> bool:
        """Rating submitted: fling the card up and fire the UP commit."""
        if self.state != GestureState.AWAITING_RATING:
            return False
        self.state = GestureState.IDLE
        self._animate_out(SwipeDirection.UP)
        return True

    def cancel_rating(self) -> bool:
        """Rating dismissed: slide the card back."""
        if self.state != GestureState.AWAITING_RATING:
            return False
        self.state = GestureState.IDLE
        self.offset = (0.0, 0.0)
        return True

    def reset(self) -> None:
        """Drop any in-flight animation without firing it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.state = GestureState.IDLE
        self.offset = (0.0, 0.0)

    def _animate_out(self, direction: SwipeDirection) -> None:
        self.state = GestureState.COMMITTING
        if direction == SwipeDirection.UP:
            self.offset = (0.0, -FLING_DISTANCE)
        elif direction == SwipeDirection.RIGHT:
            self.offset = (FLING_DISTANCE, self.offset[1])
        else:
            self.offset = (-FLING_DISTANCE, self.offset[1])
        self._handle = self.scheduler.call_later(self.animation, lambda: self._finish(direction))

    def _finish(self, direction: SwipeDirection) -> None:
        self._handle = None
        self.state = GestureState.IDLE
        self.offset = (0.0, 0.0)
        self.on_commit(direction)
