"""Pytest configuration and shared fixtures."""

import os

# Set test environment variables before any imports
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_reelswipe.db"
os.environ["LLM_ENABLED"] = "false"
os.environ["DEV_LOGIN_ENABLED"] = "true"
os.environ["TMDB_BEARER_TOKEN"] = ""
os.environ["SMTP_HOST"] = ""

import pytest

from reelswipe.core.contracts import MovieCard


class ManualTimer:
    def __init__(self, due: float, callback) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by advance() instead of the event loop."""

    def __init__(self) -> None:
        self.time = 0.0
        self.timers: list[ManualTimer] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(self.time + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self.timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.time + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.time = timer.due
            timer.callback()
        self.time = target


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def cards():
    return [
        MovieCard(tmdb_id=1, title="Alien", genres=("Horror", "Science Fiction"), release_date="1979-05-25", vote_average=8.2),
        MovieCard(tmdb_id=2, title="Heat", genres=("Crime", "Thriller"), release_date="1995-12-15", vote_average=7.9),
        MovieCard(tmdb_id=3, title="Up", genres=("Animation", "Comedy"), release_date="2009-05-28", vote_average=7.9),
    ]
