"""Break overlay countdown that reports completion back to the cycle."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from breakcycle import ScheduledCall, Scheduler, Signal
from breakcycle.constants import BREAK_DURATION_SECONDS


class BreakCountdown:
    """Drives the break overlay: counts down, then reports the break as done.

    Completion is reported once per `show()`, whether the countdown runs out
    or the user dismisses the overlay. `hide()` tears the overlay down without
    reporting completion.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        on_finished: Optional[Callable[[], None]] = None,
        duration_seconds: int = BREAK_DURATION_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be greater than zero")

        self._scheduler = scheduler
        self._duration_seconds = int(duration_seconds)
        self._logger = logger or logging.getLogger("overlay")
        self._lock = threading.Lock()

        self._showing = False
        self._allow_dismissal = False
        self._remaining = self._duration_seconds
        self._ticker: Optional[ScheduledCall] = None

        self.on_tick = Signal("overlay.on_tick")
        self.on_visibility = Signal("overlay.on_visibility")
        self.on_finished = Signal("overlay.on_finished")
        if on_finished is not None:
            self.on_finished.subscribe(on_finished)

    @property
    def is_showing(self) -> bool:
        with self._lock:
            return self._showing

    @property
    def allow_dismissal(self) -> bool:
        with self._lock:
            return self._allow_dismissal

    @property
    def remaining_seconds(self) -> int:
        with self._lock:
            return self._remaining

    def show(self, allow_dismissal: bool = False) -> None:
        with self._lock:
            if self._showing:
                self._logger.warning("Break overlay already showing")
                return
            self._showing = True
            self._allow_dismissal = bool(allow_dismissal)
            self._remaining = self._duration_seconds
            ticker: list[ScheduledCall] = []
            ticker.append(self._scheduler.call_every(1, lambda: self._tick(ticker[0])))
            self._ticker = ticker[0]
            remaining = self._remaining

        self._logger.info(
            "Break overlay shown (dismissal allowed: %s)", allow_dismissal
        )
        self.on_visibility.emit(True, remaining)

    def dismiss(self) -> bool:
        """End the break early; ignored unless dismissal was allowed."""
        with self._lock:
            if not self._showing:
                return False
            if not self._allow_dismissal:
                self._logger.info("Break overlay dismissal not allowed")
                return False
            self._close_locked()

        self._logger.info("Break overlay dismissed by user")
        self.on_visibility.emit(False, 0)
        self.on_finished.emit()
        return True

    def hide(self) -> None:
        with self._lock:
            if not self._showing:
                return
            self._close_locked()
            remaining = self._remaining

        self._logger.info("Break overlay hidden")
        self.on_visibility.emit(False, remaining)

    def _tick(self, ticker: ScheduledCall) -> None:
        finished = False
        with self._lock:
            if not self._showing or ticker is not self._ticker:
                return
            self._remaining = max(0, self._remaining - 1)
            remaining = self._remaining
            if remaining <= 0:
                self._close_locked()
                finished = True

        self.on_tick.emit(remaining)
        if finished:
            self._logger.info("Break countdown finished")
            self.on_visibility.emit(False, 0)
            self.on_finished.emit()

    def _close_locked(self) -> None:
        self._showing = False
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
