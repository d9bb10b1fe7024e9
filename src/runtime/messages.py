"""Status texts shown by shell UIs for cycle snapshots."""

from __future__ import annotations

from breakcycle import CycleSnapshot
from breakcycle.constants import PHASE_ACTIVE, PHASE_ON_BREAK
from contracts.ui_protocol import (
    STATUS_ACTIVE,
    STATUS_ON_BREAK,
    STATUS_PAUSED,
    STATUS_PAUSED_FOR_HOUR,
)


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as `MM:SS`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def status_label(snapshot: CycleSnapshot) -> str:
    if snapshot.phase == PHASE_ACTIVE:
        return STATUS_ACTIVE
    if snapshot.phase == PHASE_ON_BREAK:
        return STATUS_ON_BREAK
    if snapshot.is_paused_for_hour:
        return STATUS_PAUSED_FOR_HOUR
    return STATUS_PAUSED


def status_message(snapshot: CycleSnapshot) -> str:
    """Build the one-line status shown next to the tray icon."""
    if snapshot.phase == PHASE_ACTIVE:
        return f"Next break in {snapshot.remaining_formatted}"
    if snapshot.phase == PHASE_ON_BREAK:
        return "Look at something 20 feet away"
    if snapshot.is_paused_for_hour and snapshot.pause_remaining_seconds is not None:
        return f"Resuming in {format_duration(snapshot.pause_remaining_seconds)}"
    return f"Paused ({snapshot.remaining_formatted} left)"
