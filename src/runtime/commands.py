"""Validation of inbound shell UI command messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from breakcycle.constants import ACTION_SET_DEBUG_MODE, CYCLE_ACTIONS
from contracts.ui_protocol import COMMAND_DISMISS_BREAK, MESSAGE_COMMAND

SHELL_COMMANDS: frozenset[str] = frozenset(CYCLE_ACTIONS | {COMMAND_DISMISS_BREAK})


class CommandError(Exception):
    """Raised when a shell UI message is not a valid command."""


@dataclass(frozen=True)
class CycleCommand:
    """Normalized command forwarded from the shell UI."""
    action: str
    enabled: Optional[bool] = None


def parse_command(payload: Mapping[str, Any]) -> CycleCommand:
    """Validate `{"type": "command", "command": ..., "enabled": ...}` payloads."""
    if payload.get("type") != MESSAGE_COMMAND:
        raise CommandError(f"Unsupported message type: {payload.get('type')!r}")

    action = payload.get("command")
    if not isinstance(action, str) or not action.strip():
        raise CommandError("command must be a non-empty string")
    action = action.strip().lower()
    if action not in SHELL_COMMANDS:
        raise CommandError(f"Unknown command: {action}")

    if action != ACTION_SET_DEBUG_MODE:
        return CycleCommand(action=action)

    enabled = payload.get("enabled")
    if not isinstance(enabled, bool):
        raise CommandError("set_debug_mode requires a boolean 'enabled' field")
    return CycleCommand(action=action, enabled=enabled)
