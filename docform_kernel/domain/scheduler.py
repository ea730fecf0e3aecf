"""
Scheduler -- Injectable delayed-task abstraction.

Responsibility:
    Provides the one suspension primitive the sync layer needs: run a
    callback after a delay, with a handle that can cancel it. Code that
    debounces never touches an event loop or a timer directly.

Architecture position:
    Kernel > Domain. AsyncioScheduler is the sanctioned boundary to the
    event loop; ManualScheduler is fully deterministic.

Invariants enforced:
    - A cancelled handle never fires.
    - ManualScheduler fires due callbacks in (due time, scheduling order)
      and only from advance()/run_all(), on the caller's thread.

Failure modes:
    - AsyncioScheduler() outside a running loop, with no loop supplied,
      raises RuntimeError from its constructor.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable


class TimerHandle(ABC):
    """Handle to a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback if it has not fired yet."""
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """
    Abstract scheduler interface.

    Contract:
        Controllers that delay work receive a Scheduler via constructor
        injection and never create timers themselves.
    """

    @abstractmethod
    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> TimerHandle:
        """Schedule ``callback`` to run after ``delay`` seconds."""
        ...


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Production scheduler backed by an asyncio event loop.

    Single-threaded and cooperative: callbacks run on the loop thread
    between other events, never concurrently with them.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        # Bound at construction so a missing loop fails here, not in a callback.
        self._loop = loop or asyncio.get_running_loop()

    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> TimerHandle:
        return _AsyncioTimerHandle(self._loop.call_later(delay, callback))


class _ManualTimerHandle(TimerHandle):
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Test scheduler with controlled time.

    Contract:
        Used in tests and replay for deterministic behavior. Time only moves
        when advance() is called.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._queue: list[tuple[float, int, _ManualTimerHandle]] = []

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending_count(self) -> int:
        """Number of scheduled callbacks that are neither fired nor cancelled."""
        return sum(
            1 for _, _, h in self._queue if not h.cancelled and not h.fired
        )

    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> TimerHandle:
        handle = _ManualTimerHandle(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every callback that comes due. Returns fired count."""
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            handle.fired = True
            handle.callback()
            fired += 1
        self._now = target
        return fired

    def run_all(self) -> int:
        """Fire everything outstanding, advancing time as needed."""
        fired = 0
        while self._queue:
            fired += self.advance(max(self._queue[0][0] - self._now, 0.0))
        return fired
