"""Shell UI websocket event, state, and command constants."""

from __future__ import annotations

# Outbound websocket event types
EVENT_HELLO = "hello"
EVENT_CYCLE = "cycle"
EVENT_BREAK_OVERLAY = "break_overlay"
EVENT_BREAK_WARNING = "break_warning"
EVENT_COMMAND_RESULT = "command_result"
EVENT_ERROR = "error"

# Inbound websocket message types
MESSAGE_COMMAND = "command"

# Shell status labels
STATUS_ACTIVE = "Active"
STATUS_ON_BREAK = "On Break"
STATUS_PAUSED = "Paused"
STATUS_PAUSED_FOR_HOUR = "Paused for an hour"

STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_CYCLE,
        EVENT_BREAK_OVERLAY,
        EVENT_BREAK_WARNING,
        EVENT_ERROR,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_CYCLE,
    EVENT_BREAK_WARNING,
    EVENT_BREAK_OVERLAY,
    EVENT_ERROR,
)

# Shell-only commands handled by the runtime rather than the cycle controller
COMMAND_DISMISS_BREAK = "dismiss_break"
