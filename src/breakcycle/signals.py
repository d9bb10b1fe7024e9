"""Observer slots used to fan controller events out to collaborators."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional


class Subscription:
    """Opaque handle returned by `Signal.subscribe`."""

    def __init__(self, signal: "Signal", callback: Callable[..., None]):
        self._signal = signal
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._signal._has(self)

    def cancel(self) -> None:
        self._signal._remove(self)


class Signal:
    """Named fire-and-forget notification slot.

    Subscribers run synchronously in subscription order. A subscriber that
    raises is logged and skipped; the emitter never sees the exception.
    """

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self._logger = logger or logging.getLogger("breakcycle.signals")
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[..., None]) -> Subscription:
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def emit(self, *args: Any) -> None:
        with self._lock:
            subscriptions = tuple(self._subscriptions)

        for subscription in subscriptions:
            try:
                subscription._callback(*args)
            except Exception as error:
                self._logger.error(
                    "Subscriber of %s failed: %s",
                    self.name,
                    error,
                    exc_info=True,
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _has(self, subscription: Subscription) -> bool:
        with self._lock:
            return subscription in self._subscriptions

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
