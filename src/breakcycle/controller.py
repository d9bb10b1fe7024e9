"""Thread-safe break-cycle state machine with ticker and timed-pause handling."""

from __future__ import annotations

import itertools
import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional

from .constants import (
    ACTION_BREAK_COMPLETED,
    ACTION_PAUSE,
    ACTION_PAUSE_FOR_ONE_HOUR,
    ACTION_RESET_TIMER,
    ACTION_RESUME_FROM_PAUSE,
    ACTION_SET_DEBUG_MODE,
    ACTION_START,
    ACTION_STOP,
    DEBUG_WORK_DURATION_SECONDS,
    PAUSE_EXPIRY_CHECK_SECONDS,
    PHASE_ACTIVE,
    PHASE_ON_BREAK,
    PHASE_PAUSED,
    REASON_BREAK_COMPLETED,
    REASON_DEBUG_MODE_CHANGED,
    REASON_DEBUG_MODE_UNCHANGED,
    REASON_INVALID_ARGUMENT,
    REASON_PAUSED,
    REASON_PAUSED_FOR_HOUR,
    REASON_RESET,
    REASON_RESUMED,
    REASON_STARTED,
    REASON_STOPPED,
    REASON_TIMED_PAUSE_ACTIVE,
    REASON_UNSUPPORTED_ACTION,
    TICK_INTERVAL_SECONDS,
    TIMED_PAUSE_SECONDS,
    WARNING_LEAD_SECONDS,
    WORK_DURATION_SECONDS,
)
from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler
from .signals import Signal

CyclePhase = Literal["active", "on_break", "paused"]


def format_remaining(seconds: int) -> str:
    """Format remaining seconds as zero-padded `mm:ss`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


@dataclass(frozen=True)
class CycleSnapshot:
    """Immutable read-only view of the cycle state handed to shells."""
    phase: CyclePhase
    remaining_seconds: int
    work_duration_seconds: int
    debug_mode: bool
    warning_fired: bool
    pause_remaining_seconds: Optional[int] = None
    # Taken under the controller lock; a higher version is newer state.
    version: int = field(default=0, compare=False)

    @property
    def remaining_formatted(self) -> str:
        return format_remaining(self.remaining_seconds)

    @property
    def is_paused_for_hour(self) -> bool:
        return self.pause_remaining_seconds is not None


@dataclass(frozen=True)
class CycleActionResult:
    """Outcome of an inbound operation; `accepted=False` marks a tolerated no-op."""
    action: str
    accepted: bool
    reason: str
    snapshot: CycleSnapshot


_Pending = list[tuple[Signal, tuple[Any, ...]]]


class BreakCycleController:
    """Single authority for phase, remaining time, and break signals.

    All state is guarded by one re-entrant lock. Signals raised by an
    operation or a tick are queued while the lock is held and emitted after
    it is released, in the order they were queued, followed by `on_update`.
    At most one ticker handle and one pause-expiry handle are live at a time.
    """

    def __init__(
        self,
        *,
        debug_mode: bool = False,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._logger = logger or logging.getLogger("breakcycle")
        self._lock = threading.RLock()

        self._debug_mode = bool(debug_mode)
        self._phase: CyclePhase = PHASE_ACTIVE
        self._remaining = self._work_duration_locked()
        self._pause_until: Optional[float] = None
        self._warning_fired = False

        self._generations = itertools.count(1)
        self._versions = itertools.count(1)
        self._ticker: Optional[ScheduledCall] = None
        self._ticker_generation = 0
        self._pause_expiry: Optional[ScheduledCall] = None
        self._pause_expiry_generation = 0

        self.on_break_warning = Signal("on_break_warning")
        self.on_break_started = Signal("on_break_started")
        self.on_break_ended = Signal("on_break_ended")
        self.on_update = Signal("on_update")

    # ----- Read-only state -----
    @property
    def phase(self) -> CyclePhase:
        with self._lock:
            return self._phase

    @property
    def remaining_seconds(self) -> int:
        with self._lock:
            return self._remaining

    @property
    def remaining_formatted(self) -> str:
        return format_remaining(self.remaining_seconds)

    @property
    def is_paused_for_hour(self) -> bool:
        with self._lock:
            return self._timed_pause_active_locked()

    @property
    def debug_mode(self) -> bool:
        with self._lock:
            return self._debug_mode

    @property
    def warning_fired(self) -> bool:
        with self._lock:
            return self._warning_fired

    @property
    def work_duration_seconds(self) -> int:
        with self._lock:
            return self._work_duration_locked()

    @property
    def ticker_armed(self) -> bool:
        with self._lock:
            return self._ticker is not None and self._ticker.active

    def snapshot(self) -> CycleSnapshot:
        with self._lock:
            return self._snapshot_locked()

    # ----- Operations -----
    def start(self) -> CycleActionResult:
        return self._run(ACTION_START, self._start_locked)

    def pause(self) -> CycleActionResult:
        return self._run(ACTION_PAUSE, self._pause_locked)

    def pause_for_one_hour(self) -> CycleActionResult:
        return self._run(ACTION_PAUSE_FOR_ONE_HOUR, self._pause_for_one_hour_locked)

    def resume_from_pause(self) -> CycleActionResult:
        return self._run(ACTION_RESUME_FROM_PAUSE, self._resume_from_pause_locked)

    def reset_timer(self) -> CycleActionResult:
        return self._run(ACTION_RESET_TIMER, self._reset_timer_locked)

    def stop(self) -> CycleActionResult:
        return self._run(ACTION_STOP, self._stop_locked)

    def break_completed(self) -> CycleActionResult:
        return self._run(ACTION_BREAK_COMPLETED, self._break_completed_locked)

    def set_debug_mode(self, enabled: bool) -> CycleActionResult:
        return self._run(
            ACTION_SET_DEBUG_MODE,
            lambda pending: self._set_debug_mode_locked(pending, bool(enabled)),
        )

    def apply(self, action: str, *, enabled: Any = None) -> CycleActionResult:
        """Dispatch an operation by name; unknown names are rejected, not raised."""
        if action == ACTION_SET_DEBUG_MODE:
            if not isinstance(enabled, bool):
                return self._reject(action, REASON_INVALID_ARGUMENT)
            return self.set_debug_mode(enabled)

        operation = {
            ACTION_START: self.start,
            ACTION_PAUSE: self.pause,
            ACTION_PAUSE_FOR_ONE_HOUR: self.pause_for_one_hour,
            ACTION_RESUME_FROM_PAUSE: self.resume_from_pause,
            ACTION_RESET_TIMER: self.reset_timer,
            ACTION_STOP: self.stop,
            ACTION_BREAK_COMPLETED: self.break_completed,
        }.get(action)
        if operation is None:
            return self._reject(action, REASON_UNSUPPORTED_ACTION)
        return operation()

    # ----- Operation bodies (lock held) -----
    def _start_locked(self, pending: _Pending) -> tuple[bool, str]:
        if self._timed_pause_active_locked():
            self._logger.info("Start ignored: timed pause is active")
            return False, REASON_TIMED_PAUSE_ACTIVE

        self._phase = PHASE_ACTIVE
        self._clear_timed_pause_locked()
        if self._remaining <= 0:
            self._begin_interval_locked()
        self._arm_ticker_locked()
        self._logger.info("Break cycle started: remaining=%ss", self._remaining)
        return True, REASON_STARTED

    def _pause_locked(self, pending: _Pending) -> tuple[bool, str]:
        self._phase = PHASE_PAUSED
        self._disarm_ticker_locked()
        self._clear_timed_pause_locked()
        self._logger.info("Break cycle paused: remaining=%ss", self._remaining)
        return True, REASON_PAUSED

    def _pause_for_one_hour_locked(self, pending: _Pending) -> tuple[bool, str]:
        self._pause_locked(pending)
        self._pause_until = self._scheduler.now() + TIMED_PAUSE_SECONDS
        self._arm_pause_expiry_locked(TIMED_PAUSE_SECONDS)
        self._logger.info("Break cycle paused for %ss", TIMED_PAUSE_SECONDS)
        return True, REASON_PAUSED_FOR_HOUR

    def _resume_from_pause_locked(self, pending: _Pending) -> tuple[bool, str]:
        self._clear_timed_pause_locked()
        self._start_locked(pending)
        return True, REASON_RESUMED

    def _reset_timer_locked(self, pending: _Pending) -> tuple[bool, str]:
        self._disarm_ticker_locked()
        self._begin_interval_locked()
        self._rearm_unless_timed_pause_locked()
        self._logger.info("Break cycle reset: remaining=%ss", self._remaining)
        return True, REASON_RESET

    def _stop_locked(self, pending: _Pending) -> tuple[bool, str]:
        self._disarm_ticker_locked()
        self._clear_timed_pause_locked()
        self._phase = PHASE_PAUSED
        self._begin_interval_locked()
        self._logger.info("Break cycle stopped")
        return True, REASON_STOPPED

    def _break_completed_locked(self, pending: _Pending) -> tuple[bool, str]:
        self._disarm_ticker_locked()
        self._begin_interval_locked()
        pending.append((self.on_break_ended, ()))
        self._rearm_unless_timed_pause_locked()
        self._logger.info("Break completed: next break in %ss", self._remaining)
        return True, REASON_BREAK_COMPLETED

    def _set_debug_mode_locked(self, pending: _Pending, enabled: bool) -> tuple[bool, str]:
        if enabled == self._debug_mode:
            return False, REASON_DEBUG_MODE_UNCHANGED

        self._debug_mode = enabled
        self._disarm_ticker_locked()
        self._begin_interval_locked()
        self._rearm_unless_timed_pause_locked()
        self._logger.info(
            "Debug mode %s: work interval=%ss",
            "enabled" if enabled else "disabled",
            self._remaining,
        )
        return True, REASON_DEBUG_MODE_CHANGED

    # ----- Scheduled callbacks -----
    def _on_tick(self, generation: int) -> None:
        pending: _Pending = []
        with self._lock:
            if generation != self._ticker_generation or self._ticker is None:
                return

            # Timed pauses disarm the ticker, so this only catches a tick that
            # was already queued when the deadline passed.
            if self._timed_pause_expired_locked():
                self._logger.info("Timed pause expired on tick")
                self._resume_from_pause_locked(pending)
            elif self._phase != PHASE_ACTIVE:
                return
            else:
                self._remaining = max(0, self._remaining - TICK_INTERVAL_SECONDS)

                if (
                    not self._warning_fired
                    and not self._debug_mode
                    and 0 < self._remaining <= WARNING_LEAD_SECONDS
                ):
                    self._warning_fired = True
                    self._logger.info("Break warning: %ss left", self._remaining)
                    pending.append((self.on_break_warning, ()))

                if self._remaining <= 0:
                    self._phase = PHASE_ON_BREAK
                    self._disarm_ticker_locked()
                    self._logger.info("Work interval finished: break started")
                    pending.append((self.on_break_started, ()))

            snapshot = self._snapshot_locked()
        self._flush(pending, snapshot)

    def _on_pause_expiry(self, generation: int) -> None:
        pending: _Pending = []
        with self._lock:
            if generation != self._pause_expiry_generation or self._pause_until is None:
                return

            left = self._pause_until - self._scheduler.now()
            if left > 0:
                # Waits are capped, and timers may wake early against the deadline.
                self._arm_pause_expiry_locked(left)
                return

            self._logger.info("Timed pause expired: resuming")
            self._resume_from_pause_locked(pending)
            snapshot = self._snapshot_locked()
        self._flush(pending, snapshot)

    # ----- Internals -----
    def _run(
        self,
        action: str,
        operation: Callable[[_Pending], tuple[bool, str]],
    ) -> CycleActionResult:
        pending: _Pending = []
        with self._lock:
            accepted, reason = operation(pending)
            snapshot = self._snapshot_locked()
        self._flush(pending, snapshot)
        return CycleActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=snapshot,
        )

    def _reject(self, action: str, reason: str) -> CycleActionResult:
        self._logger.warning("Rejected cycle action %r: %s", action, reason)
        return CycleActionResult(
            action=action,
            accepted=False,
            reason=reason,
            snapshot=self.snapshot(),
        )

    def _flush(self, pending: _Pending, snapshot: CycleSnapshot) -> None:
        for signal, args in pending:
            signal.emit(*args)
        self.on_update.emit(snapshot)

    def _work_duration_locked(self) -> int:
        return DEBUG_WORK_DURATION_SECONDS if self._debug_mode else WORK_DURATION_SECONDS

    def _begin_interval_locked(self) -> None:
        self._remaining = self._work_duration_locked()
        self._warning_fired = False

    def _rearm_unless_timed_pause_locked(self) -> None:
        if self._timed_pause_active_locked():
            self._phase = PHASE_PAUSED
            return
        self._phase = PHASE_ACTIVE
        self._clear_timed_pause_locked()
        self._arm_ticker_locked()

    def _timed_pause_active_locked(self) -> bool:
        return self._pause_until is not None and self._scheduler.now() < self._pause_until

    def _timed_pause_expired_locked(self) -> bool:
        return self._pause_until is not None and self._scheduler.now() >= self._pause_until

    def _clear_timed_pause_locked(self) -> None:
        self._pause_until = None
        if self._pause_expiry is not None:
            self._pause_expiry.cancel()
            self._pause_expiry = None
        self._pause_expiry_generation = next(self._generations)

    def _arm_ticker_locked(self) -> None:
        self._disarm_ticker_locked()
        generation = next(self._generations)
        self._ticker_generation = generation
        self._ticker = self._scheduler.call_every(
            TICK_INTERVAL_SECONDS,
            lambda: self._on_tick(generation),
        )

    def _disarm_ticker_locked(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._ticker_generation = next(self._generations)

    def _arm_pause_expiry_locked(self, delay: float) -> None:
        if self._pause_expiry is not None:
            self._pause_expiry.cancel()
        generation = next(self._generations)
        self._pause_expiry_generation = generation
        self._pause_expiry = self._scheduler.call_later(
            min(delay, PAUSE_EXPIRY_CHECK_SECONDS),
            lambda: self._on_pause_expiry(generation),
        )

    def _snapshot_locked(self) -> CycleSnapshot:
        pause_remaining: Optional[int] = None
        if self._timed_pause_active_locked() and self._pause_until is not None:
            pause_remaining = int(math.ceil(self._pause_until - self._scheduler.now()))
        return CycleSnapshot(
            phase=self._phase,
            remaining_seconds=self._remaining,
            work_duration_seconds=self._work_duration_locked(),
            debug_mode=self._debug_mode,
            warning_fired=self._warning_fired,
            pause_remaining_seconds=pause_remaining,
            version=next(self._versions),
        )
