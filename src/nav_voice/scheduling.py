"""Event-loop scheduling seam shared by the voice services."""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    """Cancellable handle returned for a delayed callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""


class Scheduler(Protocol):
    """Single-threaded callback scheduler.

    Services never block: every continuation (inter-utterance gaps, retries,
    auto-restarts) is a delayed callback, and backend worker threads hand
    their results back through ``call_soon_threadsafe``.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds on the scheduler thread."""

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the scheduler thread as soon as possible."""

    def time(self) -> float:
        """Monotonic clock in seconds."""


class AsyncioScheduler:
    """Scheduler backed by a running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0.0, delay), callback)

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self._loop.call_soon_threadsafe(callback)

    def time(self) -> float:
        return self._loop.time()
