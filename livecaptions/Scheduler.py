"""Cancellable deferred actions for session timers.

Every timer a caption session owns (debounce, inactivity clear, idiom card
clear) is a DeferredAction obtained from a Scheduler. Two schedulers exist:
- AsyncioScheduler: wraps loop.call_later for live sessions
- ManualScheduler: virtual clock advanced explicitly, for replay and tests
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class DeferredAction:
    """Handle for a scheduled callback.

    cancel() is idempotent: cancelling twice or after the callback has run is
    a no-op.
    """

    def __init__(self, callback: Callable[[], None], due_time: float) -> None:
        self._callback: Callable[[], None] = callback
        self.due_time: float = due_time
        self._cancelled: bool = False
        self._done: bool = False
        self._cancel_hook: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        """True while the callback is still waiting to run."""
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        if not self.active:
            return
        self._cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()

    def run(self) -> None:
        """Invoke the callback once if still active.

        Exceptions are logged so a failing timer can't break the scheduler.
        """
        if not self.active:
            return
        self._done = True
        try:
            self._callback()
        except Exception:
            logger.exception("DeferredAction: callback failed")


class Scheduler(Protocol):
    """Clock plus delayed-callback factory."""

    def now(self) -> float:
        """Current time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> DeferredAction:
        """Schedule callback to run after delay seconds.

        Args:
            delay: Seconds from now; negative values run as soon as possible
            callback: Zero-argument callable

        Returns:
            DeferredAction that can cancel the call
        """
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Args:
        loop: Event loop running the sessions; defaults to the running loop
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop: Optional[asyncio.AbstractEventLoop] = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> DeferredAction:
        loop = self._get_loop()
        delay = max(0.0, delay)
        action = DeferredAction(callback, loop.time() + delay)
        handle = loop.call_later(delay, action.run)
        action._cancel_hook = handle.cancel
        return action


class ManualScheduler:
    """Deterministic scheduler with a virtual clock.

    Time only moves when advance() or advance_to() is called; due callbacks
    run in due-time order (ties in scheduling order).

    Args:
        start_time: Initial clock value in seconds
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self._now: float = start_time
        self._queue: list[tuple[float, int, DeferredAction]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> DeferredAction:
        action = DeferredAction(callback, self._now + max(0.0, delay))
        heapq.heappush(self._queue, (action.due_time, next(self._sequence), action))
        return action

    @property
    def pending_count(self) -> int:
        """Number of scheduled actions that are still active."""
        return sum(1 for _, _, action in self._queue if action.active)

    @property
    def next_due_time(self) -> Optional[float]:
        """Due time of the earliest active action, None when idle."""
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def advance(self, seconds: float) -> None:
        """Move the clock forward by seconds, running everything that becomes due."""
        self.advance_to(self._now + seconds)

    def advance_to(self, target_time: float) -> None:
        """Move the clock to target_time, running due callbacks in order.

        Callbacks scheduled by callbacks are honoured if they fall due before
        target_time. The clock never moves backwards.
        """
        while self._queue and self._queue[0][0] <= target_time:
            due_time, _, action = heapq.heappop(self._queue)
            self._now = max(self._now, due_time)
            action.run()
        self._now = max(self._now, target_time)
