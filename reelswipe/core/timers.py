"""Cancellable timers and background task tracking for the session core.

All session timing (commit animation, busy window, preference debounce)
goes through a Scheduler so it can be driven by a manual clock in tests.
"""

import asyncio
from typing import Any, Callable, Coroutine, Protocol

from reelswipe.logging import get_logger

logger = get_logger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Schedules plain callbacks after a delay."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class LoopScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(delay, callback)


class Debouncer:
    """Runs a callback after a quiet period; every trigger restarts the wait."""

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        callback: Callable[[], None],
    ) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self._callback = callback
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """Start or restart the timer."""
        self.cancel()
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Cancel the pending run. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def flush(self) -> bool:
        """Run the pending callback now. Returns True if one was pending."""
        if not self.cancel():
            return False
        self._callback()
        return True

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class BackgroundTasks:
    """Keeps references to fire-and-forget tasks so they can be drained."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every tracked task, including ones spawned while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
