"""
Observer primitive decoupled from any UI or data-binding framework.

    changes = Observable("document.changes")
    sub = changes.subscribe(on_change)
    changes.notify(event)
    sub.cancel()

Delivery is synchronous and in subscription order.  A subscriber that
raises is logged with its traceback and the remaining subscribers still
receive the event; notify() itself never raises.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from docform_kernel.logging_config import get_logger

logger = get_logger("services.observable")

T = TypeVar("T")


class Subscription(Generic[T]):
    """Handle returned by Observable.subscribe()."""

    def __init__(self, observable: Observable[T], callback: Callable[[T], None]):
        self._observable = observable
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._observable._remove(self)


class Observable(Generic[T]):
    """Synchronous publish/subscribe channel."""

    def __init__(self, name: str = "observable"):
        self.name = name
        self._subscriptions: list[Subscription[T]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription[T]:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def notify(self, event: T) -> None:
        # Snapshot: callbacks may subscribe or cancel while we deliver.
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.callback(event)
            except Exception as exc:
                logger.exception(
                    "subscriber_failed",
                    extra={
                        "observable": self.name,
                        "event_type": type(event).__name__,
                        "error": str(exc),
                    },
                )

    def _remove(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
