"""
Debouncer -- coalesce bursts of triggers into one delayed callback.

Each trigger() cancels the outstanding timer and schedules a new one, so
the callback runs once, ``delay`` seconds after the last trigger.  Last
write wins over the schedule, not over the data: the callback reads
whatever state is current when it fires.
"""

from __future__ import annotations

from collections.abc import Callable

from docform_kernel.domain.scheduler import Scheduler, TimerHandle


class Debouncer:
    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        callback: Callable[[], None],
    ):
        self._scheduler = scheduler
        self.delay = delay
        self._callback = callback
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """(Re)start the delay."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._scheduler.call_later(self.delay, self._fire)

    def flush(self) -> bool:
        """Run a pending callback now. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()
