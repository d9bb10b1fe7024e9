from __future__ import annotations

import threading
from typing import Any, Optional, Protocol

from breakcycle import CycleActionResult, CycleSnapshot
from contracts.ui_protocol import (
    EVENT_BREAK_OVERLAY,
    EVENT_BREAK_WARNING,
    EVENT_COMMAND_RESULT,
    EVENT_CYCLE,
    EVENT_ERROR,
)

from .messages import status_label, status_message


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...

    def forget_sticky(self, event_type: str) -> None:
        ...


class RuntimeUIPublisher:
    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server
        self._cycle_lock = threading.Lock()
        self._last_cycle_version = -1

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_cycle_update(self, snapshot: CycleSnapshot) -> bool:
        """Publish a cycle snapshot unless a newer one already went out.

        Ticks and commands emit from different threads after the controller
        lock is released, so snapshots can arrive here out of order.
        """
        with self._cycle_lock:
            if snapshot.version <= self._last_cycle_version:
                return False
            self._last_cycle_version = snapshot.version
            self._publish_cycle_locked(snapshot)
        return True

    def _publish_cycle_locked(self, snapshot: CycleSnapshot) -> None:
        payload: dict[str, Any] = {
            "phase": snapshot.phase,
            "status": status_label(snapshot),
            "message": status_message(snapshot),
            "remaining_seconds": snapshot.remaining_seconds,
            "remaining_formatted": snapshot.remaining_formatted,
            "work_duration_seconds": snapshot.work_duration_seconds,
            "debug_mode": snapshot.debug_mode,
            "is_paused_for_hour": snapshot.is_paused_for_hour,
        }
        if snapshot.pause_remaining_seconds is not None:
            payload["pause_remaining_seconds"] = snapshot.pause_remaining_seconds
        self.publish(EVENT_CYCLE, **payload)

    def publish_command_result(self, result: CycleActionResult) -> None:
        if result.accepted and self._ui_server:
            # A later accepted command supersedes the last rejection.
            self._ui_server.forget_sticky(EVENT_ERROR)
        self.publish(
            EVENT_COMMAND_RESULT,
            command=result.action,
            accepted=result.accepted,
            reason=result.reason,
        )

    def publish_overlay_update(
        self,
        *,
        showing: bool,
        remaining_seconds: int,
        allow_dismissal: bool = False,
    ) -> None:
        self.publish(
            EVENT_BREAK_OVERLAY,
            showing=showing,
            remaining_seconds=remaining_seconds,
            allow_dismissal=allow_dismissal,
        )

    def publish_warning(self, *, active: bool, title: str = "", body: str = "") -> None:
        payload: dict[str, Any] = {"active": active}
        if title:
            payload["title"] = title
        if body:
            payload["body"] = body
        self.publish(EVENT_BREAK_WARNING, **payload)

    def publish_error(self, message: str) -> None:
        self.publish(EVENT_ERROR, message=message)
