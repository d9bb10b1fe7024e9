"""Durations, phase, action, and reason constants used by break-cycle logic."""

from __future__ import annotations

WORK_DURATION_SECONDS = 20 * 60
DEBUG_WORK_DURATION_SECONDS = 5
BREAK_DURATION_SECONDS = 20
WARNING_LEAD_SECONDS = 30
TIMED_PAUSE_SECONDS = 60 * 60
# Longest single wait for the timed-pause deadline, so a suspended machine
# notices the wall-clock deadline soon after it wakes up.
PAUSE_EXPIRY_CHECK_SECONDS = 60
TICK_INTERVAL_SECONDS = 1

PHASE_ACTIVE = "active"
PHASE_ON_BREAK = "on_break"
PHASE_PAUSED = "paused"

ACTION_START = "start"
ACTION_PAUSE = "pause"
ACTION_PAUSE_FOR_ONE_HOUR = "pause_for_one_hour"
ACTION_RESUME_FROM_PAUSE = "resume_from_pause"
ACTION_RESET_TIMER = "reset_timer"
ACTION_STOP = "stop"
ACTION_BREAK_COMPLETED = "break_completed"
ACTION_SET_DEBUG_MODE = "set_debug_mode"

CYCLE_ACTIONS: frozenset[str] = frozenset(
    {
        ACTION_START,
        ACTION_PAUSE,
        ACTION_PAUSE_FOR_ONE_HOUR,
        ACTION_RESUME_FROM_PAUSE,
        ACTION_RESET_TIMER,
        ACTION_STOP,
        ACTION_BREAK_COMPLETED,
        ACTION_SET_DEBUG_MODE,
    }
)

REASON_STARTED = "started"
REASON_RESUMED = "resumed"
REASON_PAUSED = "paused"
REASON_PAUSED_FOR_HOUR = "paused_for_hour"
REASON_RESET = "reset"
REASON_STOPPED = "stopped"
REASON_BREAK_COMPLETED = "break_completed"
REASON_DEBUG_MODE_CHANGED = "debug_mode_changed"
REASON_DEBUG_MODE_UNCHANGED = "debug_mode_unchanged"
REASON_TIMED_PAUSE_ACTIVE = "timed_pause_active"
REASON_UNSUPPORTED_ACTION = "unsupported_action"
REASON_INVALID_ARGUMENT = "invalid_argument"

WARNING_TITLE = "Break Coming Soon"
WARNING_BODY = (
    f"Your {BREAK_DURATION_SECONDS}-second eye break starts in "
    f"{WARNING_LEAD_SECONDS} seconds"
)
