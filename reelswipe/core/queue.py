"""Session queue: an ordered walk over a fixed list of cards."""

from typing import Callable, Iterable

from reelswipe.core.contracts import MovieCard


class _Empty:
    """Sentinel returned by SessionQueue.current() once the queue is exhausted."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = _Empty()


class SessionQueue:
    """Cursor over an immutable tuple of cards.

    The cursor only moves forward, one position per advance(). The
    completion callback fires exactly once, on the transition that moves
    the cursor onto the end of the list.
    """

    def __init__(
        self,
        cards: Iterable[MovieCard],
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        self.cards: tuple[MovieCard, ...] = tuple(cards)
        self.cursor = 0
        self._on_complete = on_complete
        self._completed = False

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def is_complete(self) -> bool:
        return self.cursor >= len(self.cards)

    @property
    def remaining(self) -> int:
        return max(0, len(self.cards) - self.cursor)

    @property
    def position(self) -> str:
        """1-based "n / total" label for the current card."""
        total = len(self.cards)
        return f"{min(self.cursor + 1, total)} / {total}"

    def current(self) -> MovieCard | _Empty:
        if self.is_complete:
            return EMPTY
        return self.cards[self.cursor]

    def peek_next(self) -> MovieCard | _Empty:
        """Card behind the current one, for the stacked preview."""
        if self.cursor + 1 >= len(self.cards):
            return EMPTY
        return self.cards[self.cursor + 1]

    def advance(self) -> MovieCard | _Empty:
        """Move to the next card; a no-op once complete."""
        if self.is_complete:
            return EMPTY
        self.cursor += 1
        if self.is_complete and not self._completed:
            self._completed = True
            if self._on_complete is not None:
                self._on_complete()
        return self.current()
