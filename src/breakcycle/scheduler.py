"""Scheduler handles that drive the break-cycle ticker and timed-pause expiry."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol


class ScheduledCall(Protocol):
    """Handle for a pending one-shot or repeating callback."""

    @property
    def active(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Clock plus callback scheduling used by the controller and presenter."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledCall:
        ...


class _ThreadedCall:
    def __init__(
        self,
        *,
        delay: float,
        callback: Callable[[], None],
        repeat: bool,
        logger: logging.Logger,
        name: str,
    ):
        self._delay = max(0.0, float(delay))
        self._callback = callback
        self._repeat = repeat
        self._logger = logger
        self._cancelled = threading.Event()
        self._finished = False
        self._thread = threading.Thread(target=self._run, daemon=True, name=name)

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set() and not self._finished

    def cancel(self) -> None:
        self._cancelled.set()

    def _start(self) -> "_ThreadedCall":
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._cancelled.wait(self._delay):
            try:
                self._callback()
            except Exception as error:
                self._logger.error("Scheduled callback failed: %s", error, exc_info=True)
            if not self._repeat:
                self._finished = True
                return


class ThreadingScheduler:
    """Scheduler backed by daemon threads.

    `now()` is wall-clock time so deadlines such as the timed pause keep
    counting while the machine is suspended; the waits themselves are
    relative delays.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("breakcycle.scheduler")
        self._counter = itertools.count(1)

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        return _ThreadedCall(
            delay=delay,
            callback=callback,
            repeat=False,
            logger=self._logger,
            name=f"scheduler-once-{next(self._counter)}",
        )._start()

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledCall:
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        return _ThreadedCall(
            delay=interval,
            callback=callback,
            repeat=True,
            logger=self._logger,
            name=f"scheduler-every-{next(self._counter)}",
        )._start()


@dataclass(eq=False)
class _ManualCall:
    due: float
    sequence: int
    callback: Callable[[], None]
    interval: Optional[float] = None
    cancelled: bool = field(default=False)
    finished: bool = field(default=False)

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.finished

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler; callbacks only run inside `advance`."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._sequence = itertools.count()
        self._calls: list[_ManualCall] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        return self._add(self._now + max(0.0, float(delay)), callback, None)

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledCall:
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        return self._add(self._now + float(interval), callback, float(interval))

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self._calls if call.active)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self._now + max(0.0, float(seconds))
        while True:
            self._calls = [call for call in self._calls if call.active]
            due = [call for call in self._calls if call.due <= target]
            if not due:
                break
            call = min(due, key=lambda item: (item.due, item.sequence))
            self._now = max(self._now, call.due)
            if call.interval is None:
                call.finished = True
            else:
                call.due += call.interval
            call.callback()
        self._now = target

    def _add(
        self,
        due: float,
        callback: Callable[[], None],
        interval: Optional[float],
    ) -> _ManualCall:
        call = _ManualCall(
            due=due,
            sequence=next(self._sequence),
            callback=callback,
            interval=interval,
        )
        self._calls.append(call)
        return call
